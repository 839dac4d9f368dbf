"""HTTP transport for StoryFlam.

- NewsroomServer: FastAPI app with the stale lock sweeper tied to its lifespan
- Router factories for the lock and story endpoints
- Request/response models shared by the routers
"""

from storyflam.archs.transports.http.config import HTTPConfig
from storyflam.archs.transports.http.lock_routes import create_lock_router
from storyflam.archs.transports.http.models import DeleteStoriesRequest, LockRequest, PinRequest, SweepResponse
from storyflam.archs.transports.http.server import NewsroomServer
from storyflam.archs.transports.http.story_routes import create_story_router

__all__ = [
    "HTTPConfig",
    "NewsroomServer",
    "create_lock_router",
    "create_story_router",
    "LockRequest",
    "PinRequest",
    "DeleteStoriesRequest",
    "SweepResponse",
]
