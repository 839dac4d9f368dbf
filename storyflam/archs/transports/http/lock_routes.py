"""FastAPI routes for story edit locks."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, status

from storyflam.archs.newsroom import LockOutcome, LockResult, LockStatus, LockSweeper, StoryLockService

from .models import LockRequest, SweepResponse

logger = logging.getLogger(__name__)

_FAILURE_STATUS = {
    LockOutcome.CONFLICT: status.HTTP_409_CONFLICT,
    LockOutcome.INVALID_USER: status.HTTP_422_UNPROCESSABLE_ENTITY,
    LockOutcome.LOCK_NOT_HELD: status.HTTP_409_CONFLICT,
    LockOutcome.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    LockOutcome.STORAGE_ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _raise_for_failure(result: LockResult) -> LockResult:
    if result.success:
        return result
    raise HTTPException(
        status_code=_FAILURE_STATUS.get(result.outcome, status.HTTP_500_INTERNAL_SERVER_ERROR),
        detail=result.model_dump(mode="json"),
    )


def create_lock_router(lock_service: StoryLockService, sweeper: LockSweeper) -> APIRouter:
    """Create the edit lock router.

    Failed lock writes are returned as HTTP errors whose ``detail`` is the
    LockResult, so clients can show ``error`` and ``locked_by`` either way.

    Args:
        lock_service: Service performing the lock reads and writes
        sweeper: Sweeper used by the manual sweep endpoint

    Returns:
        Configured APIRouter with the lock endpoints.
    """
    router = APIRouter(tags=["locks"])

    @router.get("/stories/{story_id}/lock")
    async def check_lock(story_id: str, user: str = Query(..., min_length=1)) -> LockStatus:
        result = await lock_service.check_lock(story_id, user)
        if result.not_found:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result.error)
        if not result.ok or result.data is None:
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=result.error)
        return result.data

    @router.post("/stories/{story_id}/lock")
    async def acquire_lock(story_id: str, request: LockRequest) -> LockResult:
        return _raise_for_failure(await lock_service.acquire_lock(story_id, request.user_name))

    @router.put("/stories/{story_id}/lock")
    async def refresh_lock(story_id: str, request: LockRequest) -> LockResult:
        """Heartbeat from an open editor."""
        return _raise_for_failure(await lock_service.refresh_lock(story_id, request.user_name))

    @router.delete("/stories/{story_id}/lock")
    async def release_lock(story_id: str) -> LockResult:
        return _raise_for_failure(await lock_service.release_lock(story_id))

    @router.post("/locks/sweep")
    async def sweep_locks() -> SweepResponse:
        """Run a stale lock sweep now instead of waiting for the next interval."""
        cleared = await sweeper.sweep_once()
        logger.info("Manual lock sweep cleared %d lock(s)", cleared)
        return SweepResponse(cleared=cleared)

    return router
