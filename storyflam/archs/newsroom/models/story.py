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

"""Story data model."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlmodel import Column, Field, SQLModel

from ..id_generator import generate_story_id
from .content import BlockContent, HtmlContent, StoryContent
from .types import PydanticJson, utc_now


class StoryStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class StoryModel(SQLModel, table=True):
    """A story written by a journalist for one publication of a newslab.

    The editing lock is not a separate record: it is the (``locked_by``,
    ``locked_at``) pair on the story row. Both are ``None`` when nobody is
    editing. See StoryLockService for the protocol.

    Attributes:
        id: Story identifier, format "story_{ULID}" (primary key)
        course_id: Newslab the story belongs to
        publication_name: Publication that owns the story stream
        author_name: Journalist byline
        title: Headline
        summary: Optional standfirst
        featured_image_url: Optional hero image
        content: Body, either editor blocks or rich-text HTML
        status: "draft" or "published"
        is_pinned: Whether the story is pinned to the top of its stream
        pin_timestamp: When the story was pinned
        locked_by: Journalist currently holding the edit lock
        locked_at: When the edit lock was acquired or last refreshed (UTC)
        created_at: Creation time (UTC)
        updated_at: Last content change (UTC)
    """

    __tablename__ = "stories"  # type: ignore[assignment]

    id: str = Field(default_factory=generate_story_id, primary_key=True)
    course_id: str = Field(index=True)
    publication_name: str = Field(index=True)
    author_name: str
    title: str
    summary: str | None = Field(default=None)
    featured_image_url: str | None = Field(default=None)
    content: BlockContent | HtmlContent | None = Field(default=None, sa_column=Column(PydanticJson(StoryContent)))
    status: str = Field(default=StoryStatus.DRAFT.value)

    is_pinned: bool = Field(default=False)
    pin_timestamp: datetime | None = Field(default=None)

    locked_by: str | None = Field(default=None)
    locked_at: datetime | None = Field(default=None)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
