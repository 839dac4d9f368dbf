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

"""Newslab and publication data models."""

from __future__ import annotations

from datetime import datetime

from sqlmodel import Field, SQLModel

from .types import utc_now

DEFAULT_PRIMARY_COLOR = "5422b0"
DEFAULT_SECONDARY_COLOR = "f0e6f7"
DEFAULT_PUBLICATION_NAME = "StoryFlam Publication"


class NewslabModel(SQLModel, table=True):
    """A course-scoped workspace grouping publications and journalists."""

    __tablename__ = "newslabs"  # type: ignore[assignment]

    course_id: str = Field(primary_key=True)
    fallback_image_url: str | None = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class PublicationModel(SQLModel, table=True):
    """A named outlet inside a newslab that owns a stream of stories.

    Colors are hex strings without the leading "#".
    """

    __tablename__ = "publications"  # type: ignore[assignment]

    course_id: str = Field(primary_key=True)
    publication_name: str = Field(primary_key=True)
    primary_color: str = Field(default=DEFAULT_PRIMARY_COLOR)
    secondary_color: str = Field(default=DEFAULT_SECONDARY_COLOR)
    logo_url: str | None = Field(default=None)
    share_enabled: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
