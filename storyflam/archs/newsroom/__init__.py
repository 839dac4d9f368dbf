"""Newsroom module: stories, edit locks and the activity log."""

from .activity_service import ActivityService
from .lock_service import (
    LOCK_TIMEOUT_SECONDS,
    LockOutcome,
    LockResult,
    LockStatus,
    StoryLockService,
    is_lock_expired,
)
from .lock_sweeper import SWEEP_INTERVAL_SECONDS, LockSweeper
from .models import (
    ActivityAction,
    ActivityLogModel,
    BlockContent,
    ContentBlock,
    HtmlContent,
    NewslabModel,
    PublicationModel,
    StoryModel,
    StoryStatus,
)
from .orm import (
    DatabaseEngine,
    InMemoryDatabaseEngine,
    SQLDatabaseEngine,
)
from .results import ServiceResult
from .story_service import MAX_PINNED, PublicationInfo, StoryInput, StoryService, StoryUpdate

__all__ = [
    # Models
    "StoryModel",
    "StoryStatus",
    "PublicationModel",
    "NewslabModel",
    "ActivityLogModel",
    "ActivityAction",
    "ContentBlock",
    "BlockContent",
    "HtmlContent",
    # ORM
    "DatabaseEngine",
    "InMemoryDatabaseEngine",
    "SQLDatabaseEngine",
    # Edit locks
    "StoryLockService",
    "LockSweeper",
    "LockStatus",
    "LockResult",
    "LockOutcome",
    "is_lock_expired",
    "LOCK_TIMEOUT_SECONDS",
    "SWEEP_INTERVAL_SECONDS",
    # Stories
    "StoryService",
    "StoryInput",
    "StoryUpdate",
    "PublicationInfo",
    "MAX_PINNED",
    # Activity
    "ActivityService",
    "ServiceResult",
]
