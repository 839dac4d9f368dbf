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

"""
Test utilities and helper functions.

Builders for stories in a known lock state, shared by the unit tests.
"""

from datetime import datetime, timedelta

from storyflam.archs.newsroom.models import StoryModel, utc_now
from storyflam.archs.newsroom.orm import DatabaseEngine


def make_story(story_id: str = "story_1", **overrides) -> StoryModel:
    """Build an unsaved draft story."""
    fields = {
        "id": story_id,
        "course_id": "course_1",
        "publication_name": "The Daily",
        "author_name": "alice",
        "title": f"Story {story_id}",
    }
    fields.update(overrides)
    return StoryModel(**fields)


def minutes_ago(minutes: float) -> datetime:
    return utc_now() - timedelta(minutes=minutes)


async def seed_story(
    engine: DatabaseEngine,
    story_id: str = "story_1",
    *,
    locked_by: str | None = None,
    locked_at: datetime | None = None,
    **overrides,
) -> StoryModel:
    """Store a story, optionally holding a lock taken at ``locked_at``."""
    await engine.setup_models([StoryModel])
    return await engine.create(make_story(story_id, locked_by=locked_by, locked_at=locked_at, **overrides))
