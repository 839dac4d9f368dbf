# Copyright (c) Nex-AGI. All rights reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Result values returned by newsroom services.

Services report failures as data instead of raising, so every caller has to
look at ``error`` before using ``data``.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ServiceResult[T]:
    """Outcome of a service call: ``data`` on success, ``error`` text otherwise."""

    data: T | None = None
    error: str | None = None
    not_found: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: T | None = None) -> ServiceResult[T]:
        return cls(data=data, error=None)

    @classmethod
    def failure(cls, error: str, *, not_found: bool = False) -> ServiceResult[T]:
        """Build a failed result; ``not_found`` marks a missing record rather than a storage error."""
        return cls(data=None, error=error, not_found=not_found)
