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

"""ID generation utilities using ULID with type prefixes.

Format: {prefix}_{ULID}
Example: story_01HQZX3Y4K5M6N7P8Q9R0S1T2V

ULIDs sort by creation time, so story ids double as a stable tiebreaker.
"""

from __future__ import annotations

from ulid import ULID


def generate_story_id() -> str:
    """Generate a story ID with 'story_' prefix."""
    return f"story_{ULID()}"


def generate_activity_id() -> str:
    """Generate an activity log entry ID with 'act_' prefix."""
    return f"act_{ULID()}"
