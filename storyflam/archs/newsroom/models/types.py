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

"""Custom column types and time helpers shared by the newsroom models."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import TypeAdapter
from sqlalchemy.types import JSON, TypeDecorator


def utc_now() -> datetime:
    """Current time as a naive UTC datetime.

    All persisted timestamps are naive UTC so that values read back from
    SQLite (which drops tzinfo) compare cleanly with freshly created ones.
    """
    return datetime.now(UTC).replace(tzinfo=None)


class PydanticJson[T](TypeDecorator[T]):
    """SQLAlchemy TypeDecorator for Pydantic models.

    Handles serialization/deserialization of Pydantic models to/from JSON
    at the SQLAlchemy level using TypeAdapter.
    """

    impl = JSON()
    cache_ok = True

    def __init__(self, pydantic_type: Any) -> None:
        super().__init__()
        self._adapter: TypeAdapter[T] = TypeAdapter(pydantic_type)
        self.coerce_compared_value = self.impl.coerce_compared_value  # type: ignore[method-assign]

    def bind_processor(self, dialect: Any) -> Any:
        def process(value: T | None) -> str | None:
            return self._adapter.dump_json(value).decode("utf-8") if value is not None else None

        return process

    def result_processor(self, dialect: Any, coltype: Any) -> Any:
        def process(value: str | bytes | None) -> T | None:
            return self._adapter.validate_json(value) if value is not None else None

        return process
