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

"""Service for managing stories (StoryModel CRUD, publishing and pinning).

Writes go through ``update_where`` with only the changed columns, so editing
a story never overwrites the lock columns managed by StoryLockService.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from pydantic import BaseModel, field_validator

from .activity_service import ActivityService
from .models import (
    ActivityAction,
    BlockContent,
    HtmlContent,
    NewslabModel,
    PublicationModel,
    StoryModel,
    StoryStatus,
    utc_now,
)
from .models.publication import DEFAULT_PRIMARY_COLOR, DEFAULT_PUBLICATION_NAME, DEFAULT_SECONDARY_COLOR
from .orm import AndFilter, ComparisonFilter, DatabaseEngine
from .results import ServiceResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_PINNED = 3


class StoryInput(BaseModel):
    """Fields accepted when creating a story."""

    course_id: str
    publication_name: str
    author_name: str
    title: str
    summary: str | None = None
    featured_image_url: str | None = None
    content: BlockContent | HtmlContent | None = None
    status: StoryStatus = StoryStatus.DRAFT


class StoryUpdate(BaseModel):
    """Partial update; only fields explicitly set are written."""

    title: str | None = None
    summary: str | None = None
    featured_image_url: str | None = None
    content: BlockContent | HtmlContent | None = None
    status: StoryStatus | None = None
    publication_name: str | None = None

    @field_validator("title", "status", "publication_name")
    @classmethod
    def _reject_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("may be omitted but not set to null")
        return value


class PublicationInfo(BaseModel):
    publication_name: str
    primary_color: str
    secondary_color: str
    logo_url: str | None = None


class StoryService:
    """Service for managing stories.

    All methods return a ServiceResult; storage errors are logged and surfaced
    as ``error`` text.
    """

    def __init__(self, *, engine: DatabaseEngine, activity: ActivityService | None = None) -> None:
        """Initialize the service.

        Args:
            engine: Database engine for persistence
            activity: Optional activity log; edits, publishing, pinning and deletes are recorded when set
        """
        self._engine = engine
        self._activity = activity
        self._initialized = False

    async def _ensure_initialized(self) -> None:
        if not self._initialized:
            await self._engine.setup_models([StoryModel, PublicationModel, NewslabModel])
            self._initialized = True

    async def _guard(self, action: str, fn: Callable[[], Awaitable[ServiceResult[T]]]) -> ServiceResult[T]:
        try:
            await self._ensure_initialized()
            return await fn()
        except Exception as e:
            logger.error("%s failed: %s", action, e)
            return ServiceResult.failure(str(e))

    async def _find(self, story_id: str) -> StoryModel | None:
        return await self._engine.find_first(StoryModel, filters=ComparisonFilter.eq("id", story_id))

    async def _write(self, story_id: str, values: dict[str, Any]) -> ServiceResult[StoryModel]:
        updated = await self._engine.update_where(StoryModel, filters=ComparisonFilter.eq("id", story_id), values=values)
        if updated == 0:
            return ServiceResult.failure(f"Story {story_id} not found", not_found=True)
        return ServiceResult.success(await self._find(story_id))

    async def _record(self, story: StoryModel, action: ActivityAction, journalist_name: str | None = None) -> None:
        if self._activity is None:
            return
        result = await self._activity.log_activity(
            course_id=story.course_id,
            publication_name=story.publication_name,
            action=action,
            journalist_name=journalist_name or story.author_name,
            story_id=story.id,
            story_title=story.title,
        )
        if not result.ok:
            logger.warning("Activity not recorded for story=%s action=%s: %s", story.id, action.value, result.error)

    async def create_story(self, story_input: StoryInput) -> ServiceResult[StoryModel]:
        async def run() -> ServiceResult[StoryModel]:
            story = StoryModel(
                course_id=story_input.course_id,
                publication_name=story_input.publication_name,
                author_name=story_input.author_name,
                title=story_input.title,
                summary=story_input.summary or None,
                featured_image_url=story_input.featured_image_url or None,
                content=story_input.content,
                status=story_input.status.value,
            )
            created = await self._engine.create(story)
            logger.info("Story created: id=%s author=%s", created.id, created.author_name)
            return ServiceResult.success(created)

        return await self._guard("create_story", run)

    async def get_story(self, story_id: str) -> ServiceResult[StoryModel]:
        async def run() -> ServiceResult[StoryModel]:
            story = await self._find(story_id)
            if story is None:
                return ServiceResult.failure(f"Story {story_id} not found", not_found=True)
            return ServiceResult.success(story)

        return await self._guard("get_story", run)

    async def update_story(self, story_id: str, updates: StoryUpdate) -> ServiceResult[StoryModel]:
        async def run() -> ServiceResult[StoryModel]:
            values: dict[str, Any] = {"updated_at": utc_now()}
            for name in updates.model_fields_set:
                value = getattr(updates, name)
                values[name] = value.value if isinstance(value, StoryStatus) else value
            result = await self._write(story_id, values)
            if result.data is not None:
                await self._record(result.data, ActivityAction.EDITED)
            return result

        return await self._guard("update_story", run)

    async def delete_story(self, story_id: str) -> ServiceResult[None]:
        async def run() -> ServiceResult[None]:
            story = await self._find(story_id)
            if story is None:
                return ServiceResult.failure(f"Story {story_id} not found", not_found=True)
            await self._engine.delete(StoryModel, filters=ComparisonFilter.eq("id", story_id))
            logger.info("Story deleted: id=%s", story_id)
            await self._record(story, ActivityAction.DELETED)
            return ServiceResult.success()

        return await self._guard("delete_story", run)

    async def delete_stories(self, story_ids: list[str]) -> ServiceResult[int]:
        async def run() -> ServiceResult[int]:
            if not story_ids:
                return ServiceResult.success(0)
            deleted = await self._engine.delete(StoryModel, filters=ComparisonFilter.in_("id", list(story_ids)))
            logger.info("Deleted %d of %d requested stories", deleted, len(story_ids))
            return ServiceResult.success(deleted)

        return await self._guard("delete_stories", run)

    async def get_drafts(self, course_id: str, author_name: str) -> ServiceResult[list[StoryModel]]:
        """Drafts by one journalist, most recently edited first."""

        async def run() -> ServiceResult[list[StoryModel]]:
            stories = await self._engine.find_many(
                StoryModel,
                filters=AndFilter(
                    filters=[
                        ComparisonFilter.eq("course_id", course_id),
                        ComparisonFilter.eq("author_name", author_name),
                        ComparisonFilter.eq("status", StoryStatus.DRAFT.value),
                    ]
                ),
                order_by="-updated_at",
            )
            return ServiceResult.success(stories)

        return await self._guard("get_drafts", run)

    async def get_published(self, course_id: str, author_name: str) -> ServiceResult[list[StoryModel]]:
        """Published stories by one journalist, newest first."""

        async def run() -> ServiceResult[list[StoryModel]]:
            stories = await self._engine.find_many(
                StoryModel,
                filters=AndFilter(
                    filters=[
                        ComparisonFilter.eq("course_id", course_id),
                        ComparisonFilter.eq("author_name", author_name),
                        ComparisonFilter.eq("status", StoryStatus.PUBLISHED.value),
                    ]
                ),
                order_by="-created_at",
            )
            return ServiceResult.success(stories)

        return await self._guard("get_published", run)

    async def get_publication_stream(self, course_id: str, publication_name: str) -> ServiceResult[list[StoryModel]]:
        """Published stories of a publication: pinned first (latest pin on top), then newest."""

        async def run() -> ServiceResult[list[StoryModel]]:
            stories = await self._engine.find_many(
                StoryModel,
                filters=AndFilter(
                    filters=[
                        ComparisonFilter.eq("course_id", course_id),
                        ComparisonFilter.eq("publication_name", publication_name),
                        ComparisonFilter.eq("status", StoryStatus.PUBLISHED.value),
                    ]
                ),
                order_by=("-is_pinned", "-pin_timestamp", "-created_at"),
            )
            return ServiceResult.success(stories)

        return await self._guard("get_publication_stream", run)

    async def publish_story(self, story_id: str) -> ServiceResult[StoryModel]:
        async def run() -> ServiceResult[StoryModel]:
            result = await self._write(story_id, {"status": StoryStatus.PUBLISHED.value, "updated_at": utc_now()})
            if result.data is not None:
                await self._record(result.data, ActivityAction.PUBLISHED)
            return result

        return await self._guard("publish_story", run)

    async def unpublish_story(self, story_id: str) -> ServiceResult[StoryModel]:
        """Move a story back to drafts, dropping any pin."""

        async def run() -> ServiceResult[StoryModel]:
            result = await self._write(
                story_id,
                {
                    "status": StoryStatus.DRAFT.value,
                    "is_pinned": False,
                    "pin_timestamp": None,
                    "updated_at": utc_now(),
                },
            )
            if result.data is not None:
                await self._record(result.data, ActivityAction.UNPUBLISHED)
            return result

        return await self._guard("unpublish_story", run)

    async def pin_story(self, story_id: str, course_id: str, publication_name: str) -> ServiceResult[StoryModel]:
        """Pin a story to the top of its publication stream.

        At most MAX_PINNED stories stay pinned per publication; pinning one
        more unpins the story that has been pinned the longest.
        """

        async def run() -> ServiceResult[StoryModel]:
            if await self._find(story_id) is None:
                return ServiceResult.failure(f"Story {story_id} not found", not_found=True)

            pinned = await self._engine.find_many(
                StoryModel,
                filters=AndFilter(
                    filters=[
                        ComparisonFilter.eq("course_id", course_id),
                        ComparisonFilter.eq("publication_name", publication_name),
                        ComparisonFilter.eq("is_pinned", True),
                        ComparisonFilter.neq("id", story_id),
                    ]
                ),
                order_by="pin_timestamp",
            )
            overflow = len(pinned) - (MAX_PINNED - 1)
            for oldest in pinned[: max(overflow, 0)]:
                logger.info("Unpinning story=%s to make room in %s", oldest.id, publication_name)
                await self._engine.update_where(
                    StoryModel,
                    filters=ComparisonFilter.eq("id", oldest.id),
                    values={"is_pinned": False, "pin_timestamp": None},
                )

            now = utc_now()
            result = await self._write(story_id, {"is_pinned": True, "pin_timestamp": now, "updated_at": now})
            if result.data is not None:
                await self._record(result.data, ActivityAction.PINNED)
            return result

        return await self._guard("pin_story", run)

    async def unpin_story(self, story_id: str) -> ServiceResult[StoryModel]:
        async def run() -> ServiceResult[StoryModel]:
            result = await self._write(story_id, {"is_pinned": False, "pin_timestamp": None, "updated_at": utc_now()})
            if result.data is not None:
                await self._record(result.data, ActivityAction.UNPINNED)
            return result

        return await self._guard("unpin_story", run)

    async def get_publication_info(self, course_id: str, publication_name: str) -> ServiceResult[PublicationInfo]:
        """Branding for a publication, or the house defaults if it has none."""

        async def run() -> ServiceResult[PublicationInfo]:
            publication = await self._engine.find_first(
                PublicationModel,
                filters=AndFilter(
                    filters=[
                        ComparisonFilter.eq("course_id", course_id),
                        ComparisonFilter.eq("publication_name", publication_name),
                    ]
                ),
            )
            if publication is None:
                return ServiceResult.success(
                    PublicationInfo(
                        publication_name=publication_name or DEFAULT_PUBLICATION_NAME,
                        primary_color=DEFAULT_PRIMARY_COLOR,
                        secondary_color=DEFAULT_SECONDARY_COLOR,
                    )
                )
            return ServiceResult.success(
                PublicationInfo(
                    publication_name=publication.publication_name,
                    primary_color=publication.primary_color,
                    secondary_color=publication.secondary_color,
                    logo_url=publication.logo_url,
                )
            )

        return await self._guard("get_publication_info", run)

    async def get_fallback_image_url(self, course_id: str) -> ServiceResult[str]:
        """Newslab-wide image used for stories without a featured image."""

        async def run() -> ServiceResult[str]:
            newslab = await self._engine.find_first(NewslabModel, filters=ComparisonFilter.eq("course_id", course_id))
            return ServiceResult.success(newslab.fallback_image_url if newslab else None)

        return await self._guard("get_fallback_image_url", run)
