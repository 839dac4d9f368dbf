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

"""Activity log data model."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import JSON
from sqlmodel import Column, Field, SQLModel

from ..id_generator import generate_activity_id
from .types import utc_now


class ActivityAction(str, Enum):
    PUBLISHED = "published"
    UNPUBLISHED = "unpublished"
    EDITED = "edited"
    PINNED = "pinned"
    UNPINNED = "unpinned"
    DELETED = "deleted"
    JOINED_PUBLICATION = "joined_publication"
    LEFT_PUBLICATION = "left_publication"
    PROMOTED_EDITOR = "promoted_editor"
    DEMOTED_EDITOR = "demoted_editor"


class ActivityLogModel(SQLModel, table=True):
    """Audit trail entry shown to trainers.

    Attributes:
        id: Entry identifier, format "act_{ULID}" (primary key)
        course_id: Newslab the action happened in
        publication_name: Publication involved, if any
        journalist_name: Who performed the action, if known
        action: One of ActivityAction values
        story_id: Story involved, if any
        story_title: Story title at the time of the action
        details: Free-form extra data
        created_at: When the action happened (UTC)
    """

    __tablename__ = "activity_log"  # type: ignore[assignment]

    id: str = Field(default_factory=generate_activity_id, primary_key=True)
    course_id: str = Field(index=True)
    publication_name: str | None = Field(default=None)
    journalist_name: str | None = Field(default=None)
    action: str
    story_id: str | None = Field(default=None)
    story_title: str | None = Field(default=None)
    details: dict[str, Any] | None = Field(default=None, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=utc_now)
