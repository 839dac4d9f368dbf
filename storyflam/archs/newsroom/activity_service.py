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

"""Service for the newslab activity log."""

from __future__ import annotations

import logging
from typing import Any

from .models import ActivityAction, ActivityLogModel
from .orm import ComparisonFilter, DatabaseEngine
from .results import ServiceResult

logger = logging.getLogger(__name__)


class ActivityService:
    """Append-only audit trail of newsroom actions, scoped by course_id."""

    def __init__(self, *, engine: DatabaseEngine) -> None:
        self._engine = engine
        self._initialized = False

    async def _ensure_initialized(self) -> None:
        if not self._initialized:
            await self._engine.setup_models([ActivityLogModel])
            self._initialized = True

    async def log_activity(
        self,
        *,
        course_id: str,
        action: ActivityAction,
        publication_name: str | None = None,
        journalist_name: str | None = None,
        story_id: str | None = None,
        story_title: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> ServiceResult[ActivityLogModel]:
        """Record one action.

        Returns:
            The stored entry, or the storage error message
        """
        try:
            await self._ensure_initialized()
            entry = await self._engine.create(
                ActivityLogModel(
                    course_id=course_id,
                    publication_name=publication_name,
                    journalist_name=journalist_name,
                    action=action.value,
                    story_id=story_id or None,
                    story_title=story_title or None,
                    details=details or None,
                )
            )
        except Exception as e:
            logger.error("Activity log error (course=%s, action=%s): %s", course_id, action.value, e)
            return ServiceResult.failure(str(e))

        logger.debug("Activity logged: course=%s action=%s story=%s", course_id, action.value, story_id)
        return ServiceResult.success(entry)

    async def get_activity_log(self, course_id: str, limit: int = 100) -> ServiceResult[list[ActivityLogModel]]:
        """Most recent entries first."""
        try:
            await self._ensure_initialized()
            entries = await self._engine.find_many(
                ActivityLogModel,
                filters=ComparisonFilter.eq("course_id", course_id),
                order_by=("-created_at", "-id"),
                limit=limit,
            )
        except Exception as e:
            logger.error("get_activity_log failed for course=%s: %s", course_id, e)
            return ServiceResult.failure(str(e))
        return ServiceResult.success(entries)
