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

"""Story edit lock service.

A story is locked for editing by writing the editor's name and the current
time into its ``locked_by`` / ``locked_at`` columns. There is no separate lock
record. Locks expire ``lock_timeout`` seconds after they were acquired or last
refreshed, so a closed browser tab never blocks a story for long.

Design principles:
- Acquire is a single conditional update: the row is only written when the
  lock is free, expired, or already held by the caller.
- Refresh only touches rows still held by the caller and reports when the
  lock has been lost.
- A blank ``locked_by`` counts as unlocked, for reads and writes alike.
- Release is unconditional so trainers and guest editors can break a lock.
- Failures are returned as LockResult values, never raised.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel

from .models import StoryModel, utc_now
from .orm import AndFilter, ComparisonFilter, OrFilter
from .results import ServiceResult

if TYPE_CHECKING:
    from .orm import DatabaseEngine

logger = logging.getLogger(__name__)

LOCK_TIMEOUT_SECONDS = 5 * 60

# One retry covers a lock that expired or was released between a failed
# conditional write and the follow-up read.
_ACQUIRE_ATTEMPTS = 2


def is_lock_expired(locked_at: datetime | None, *, now: datetime, timeout: timedelta) -> bool:
    """Return True if a lock taken at ``locked_at`` is no longer valid at ``now``.

    A missing timestamp means the story was never locked and counts as expired.
    """
    if locked_at is None:
        return True
    return now - locked_at > timeout


class LockOutcome(str, Enum):
    ACQUIRED = "acquired"
    REFRESHED = "refreshed"
    RELEASED = "released"
    CONFLICT = "conflict"
    INVALID_USER = "invalid_user"
    LOCK_NOT_HELD = "lock_not_held"
    NOT_FOUND = "not_found"
    STORAGE_ERROR = "storage_error"


class LockStatus(BaseModel):
    """Lock state of a story as seen by one user.

    ``is_locked`` is only True when someone else holds an unexpired lock; a
    user is never blocked by their own lock or by an expired one.
    """

    is_locked: bool
    locked_by: str | None
    locked_at: datetime | None
    is_expired: bool
    is_self: bool


class LockResult(BaseModel):
    """Outcome of a lock write."""

    success: bool
    outcome: LockOutcome
    error: str | None = None
    locked_by: str | None = None

    @classmethod
    def ok(cls, outcome: LockOutcome, *, locked_by: str | None = None) -> LockResult:
        return cls(success=True, outcome=outcome, locked_by=locked_by)

    @classmethod
    def fail(cls, outcome: LockOutcome, error: str, *, locked_by: str | None = None) -> LockResult:
        return cls(success=False, outcome=outcome, error=error, locked_by=locked_by)


def _blank_user_result(story_id: str) -> LockResult:
    logger.warning("Rejected edit lock write on story=%s with a blank user name", story_id)
    return LockResult.fail(LockOutcome.INVALID_USER, "user_name must not be empty")


class StoryLockService:
    """Cooperative edit locks on stories.

    Example:
        >>> from storyflam.archs.newsroom.orm import InMemoryDatabaseEngine
        >>> service = StoryLockService(engine=InMemoryDatabaseEngine())
        >>> result = await service.acquire_lock("story_1", "alice")
        >>> if not result.success:
        ...     print(result.error)  # "Story is being edited by bob"
    """

    def __init__(self, *, engine: DatabaseEngine, lock_timeout: float = LOCK_TIMEOUT_SECONDS) -> None:
        """Initialize story lock service.

        Args:
            engine: DatabaseEngine holding the stories table
            lock_timeout: Seconds after which an unrefreshed lock expires (default: 300)

        Raises:
            ValueError: If lock_timeout is not positive
        """
        if lock_timeout <= 0:
            raise ValueError(f"lock_timeout must be positive, got {lock_timeout}")

        self._engine = engine
        self._lock_timeout = timedelta(seconds=lock_timeout)
        self._initialized = False

    @property
    def lock_timeout(self) -> timedelta:
        return self._lock_timeout

    async def _ensure_initialized(self) -> None:
        """Ensure the stories table is initialized."""
        if not self._initialized:
            logger.debug("Initializing StoryLockService database models")
            await self._engine.setup_models([StoryModel])
            self._initialized = True

    async def _read_story(self, story_id: str) -> StoryModel | None:
        await self._ensure_initialized()
        return await self._engine.find_first(StoryModel, filters=ComparisonFilter.eq("id", story_id))

    def _status_for(self, story: StoryModel, current_user: str, now: datetime) -> LockStatus:
        is_expired = is_lock_expired(story.locked_at, now=now, timeout=self._lock_timeout)
        is_self = story.locked_by == current_user
        return LockStatus(
            is_locked=bool(story.locked_by) and not is_expired and not is_self,
            locked_by=story.locked_by,
            locked_at=story.locked_at,
            is_expired=is_expired,
            is_self=is_self,
        )

    async def check_lock(self, story_id: str, current_user: str) -> ServiceResult[LockStatus]:
        """Read the lock state of a story from ``current_user``'s point of view.

        Returns:
            ServiceResult with a LockStatus, or the storage error message if the
            story could not be read (including when it does not exist)
        """
        try:
            story = await self._read_story(story_id)
        except Exception as e:
            logger.error("check_lock failed for story=%s: %s", story_id, e)
            return ServiceResult.failure(str(e))

        if story is None:
            return ServiceResult.failure(f"Story {story_id} not found", not_found=True)

        status = self._status_for(story, current_user, utc_now())
        logger.debug(
            "check_lock story=%s user=%s locked_by=%s is_locked=%s is_expired=%s",
            story_id,
            current_user,
            status.locked_by,
            status.is_locked,
            status.is_expired,
        )
        return ServiceResult.success(status)

    async def acquire_lock(self, story_id: str, user_name: str) -> LockResult:
        """Take the edit lock on a story for ``user_name``.

        Succeeds when the story is unlocked, its lock has expired, or
        ``user_name`` already holds it (which also refreshes the timestamp).
        The check and the write happen in one conditional update, so two
        editors racing for the same story cannot both win.
        """
        if not user_name:
            return _blank_user_result(story_id)

        logger.info("Attempting to acquire edit lock for story=%s, user=%s", story_id, user_name)

        holder: str | None = None
        for _ in range(_ACQUIRE_ATTEMPTS):
            now = utc_now()
            cutoff = now - self._lock_timeout
            try:
                await self._ensure_initialized()
                updated = await self._engine.update_where(
                    StoryModel,
                    filters=AndFilter(
                        filters=[
                            ComparisonFilter.eq("id", story_id),
                            OrFilter(
                                filters=[
                                    ComparisonFilter.is_null("locked_by"),
                                    ComparisonFilter.eq("locked_by", ""),
                                    ComparisonFilter.is_null("locked_at"),
                                    ComparisonFilter.lt("locked_at", cutoff),
                                    ComparisonFilter.eq("locked_by", user_name),
                                ]
                            ),
                        ]
                    ),
                    values={"locked_by": user_name, "locked_at": now},
                )
            except Exception as e:
                logger.error("acquire_lock failed for story=%s, user=%s: %s", story_id, user_name, e)
                return LockResult.fail(LockOutcome.STORAGE_ERROR, str(e))

            if updated > 0:
                logger.info("Edit lock acquired for story=%s, user=%s", story_id, user_name)
                return LockResult.ok(LockOutcome.ACQUIRED, locked_by=user_name)

            try:
                story = await self._read_story(story_id)
            except Exception as e:
                logger.error("acquire_lock could not read story=%s after conflict: %s", story_id, e)
                return LockResult.fail(LockOutcome.STORAGE_ERROR, str(e))

            if story is None:
                return LockResult.fail(LockOutcome.NOT_FOUND, f"Story {story_id} not found")

            status = self._status_for(story, user_name, utc_now())
            if status.is_locked:
                logger.warning(
                    "Edit lock conflict: story %s is being edited by %s (requested by %s)",
                    story_id,
                    status.locked_by,
                    user_name,
                )
                return LockResult.fail(
                    LockOutcome.CONFLICT,
                    f"Story is being edited by {status.locked_by}",
                    locked_by=status.locked_by,
                )

            holder = story.locked_by or holder
            logger.debug("Lock on story=%s changed during acquire, retrying", story_id)

        if holder:
            return LockResult.fail(LockOutcome.CONFLICT, f"Story is being edited by {holder}", locked_by=holder)
        return LockResult.fail(LockOutcome.CONFLICT, f"Story {story_id} is being edited by another journalist")

    async def refresh_lock(self, story_id: str, user_name: str) -> LockResult:
        """Extend ``user_name``'s lock on a story to a full timeout from now.

        Only rows still held by ``user_name`` are touched. If the lock was
        released or taken over, the result is LOCK_NOT_HELD and the editor
        should re-acquire before saving.
        """
        if not user_name:
            return _blank_user_result(story_id)

        try:
            await self._ensure_initialized()
            updated = await self._engine.update_where(
                StoryModel,
                filters=AndFilter(
                    filters=[
                        ComparisonFilter.eq("id", story_id),
                        ComparisonFilter.eq("locked_by", user_name),
                    ]
                ),
                values={"locked_at": utc_now()},
            )
        except Exception as e:
            logger.error("refresh_lock failed for story=%s, user=%s: %s", story_id, user_name, e)
            return LockResult.fail(LockOutcome.STORAGE_ERROR, str(e))

        if updated == 0:
            logger.warning("Edit lock refresh skipped: story=%s is not locked by %s", story_id, user_name)
            return LockResult.fail(LockOutcome.LOCK_NOT_HELD, f"Story {story_id} is not locked by {user_name}")

        logger.debug("Edit lock refreshed for story=%s, user=%s", story_id, user_name)
        return LockResult.ok(LockOutcome.REFRESHED, locked_by=user_name)

    async def release_lock(self, story_id: str) -> LockResult:
        """Clear the lock on a story, whoever holds it."""
        try:
            await self._ensure_initialized()
            updated = await self._engine.update_where(
                StoryModel,
                filters=ComparisonFilter.eq("id", story_id),
                values={"locked_by": None, "locked_at": None},
            )
        except Exception as e:
            logger.error("release_lock failed for story=%s: %s", story_id, e)
            return LockResult.fail(LockOutcome.STORAGE_ERROR, str(e))

        if updated == 0:
            return LockResult.fail(LockOutcome.NOT_FOUND, f"Story {story_id} not found")

        logger.info("Edit lock released for story=%s", story_id)
        return LockResult.ok(LockOutcome.RELEASED)

    async def cleanup_stale_locks(self) -> int:
        """Clear every lock older than the timeout.

        Never raises: a failed sweep is logged and leaves the stale locks for
        the next run.

        Returns:
            Number of stories unlocked (0 on failure)
        """
        cutoff = utc_now() - self._lock_timeout
        try:
            await self._ensure_initialized()
            cleared = await self._engine.update_where(
                StoryModel,
                filters=ComparisonFilter.lt("locked_at", cutoff),
                values={"locked_by": None, "locked_at": None},
            )
        except Exception:
            logger.exception("Stale lock cleanup failed")
            return 0

        if cleared > 0:
            logger.info("Cleaned up %d stale edit lock(s)", cleared)
        else:
            logger.debug("Stale lock cleanup found nothing to clear")
        return cleared
