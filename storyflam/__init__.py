from .archs.config import LockConfig, NewsroomSettings
from .archs.newsroom import StoryLockService, StoryService
from .archs.transports.http import HTTPConfig, NewsroomServer

__version__ = "0.1.0"

__all__ = ["NewsroomSettings", "LockConfig", "StoryLockService", "StoryService", "NewsroomServer", "HTTPConfig"]
