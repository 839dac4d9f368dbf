"""FastAPI server for the StoryFlam newsroom.

The server owns one StoryLockService and one LockSweeper. The sweeper is
started in the app lifespan and stopped on shutdown, so tests that drive the
app through ``TestClient`` get the same startup sequence as production.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storyflam.archs.config import LockConfig
from storyflam.archs.newsroom import (
    ActivityService,
    DatabaseEngine,
    LockSweeper,
    StoryLockService,
    StoryService,
)
from storyflam.archs.newsroom.models import ALL_MODELS

from .config import HTTPConfig
from .lock_routes import create_lock_router
from .story_routes import create_story_router

logger = logging.getLogger(__name__)


class NewsroomServer:
    """HTTP server exposing stories and their edit locks.

    Example:
        >>> from storyflam.archs.newsroom import SQLDatabaseEngine
        >>> engine = SQLDatabaseEngine.from_url("sqlite+aiosqlite:///storyflam.db")
        >>> server = NewsroomServer(engine=engine, config=HTTPConfig(port=8000))
        >>> server.run()  # blocks
    """

    def __init__(
        self,
        *,
        engine: DatabaseEngine,
        config: HTTPConfig | None = None,
        lock_config: LockConfig | None = None,
    ):
        """Initialize the server.

        Args:
            engine: DatabaseEngine for all model storage
            config: HTTP-specific configuration (default: HTTPConfig())
            lock_config: Lock timeout and sweep interval (default: LockConfig())
        """
        self._engine = engine
        self._config = config or HTTPConfig()
        self._lock_config = lock_config or LockConfig()

        self.activity_service = ActivityService(engine=engine)
        self.story_service = StoryService(engine=engine, activity=self.activity_service)
        self.lock_service = StoryLockService(engine=engine, lock_timeout=self._lock_config.lock_timeout)
        self.sweeper = LockSweeper(self.lock_service, interval=self._lock_config.sweep_interval)

        self._is_running = False
        self.app = self._create_app()

    def _create_app(self) -> FastAPI:
        @asynccontextmanager
        async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
            await self._engine.setup_models(ALL_MODELS)
            self.sweeper.start()
            self._is_running = True
            logger.info("Newsroom server started on %s:%s", self.host, self.port)
            try:
                yield
            finally:
                self._is_running = False
                await self.sweeper.stop()
                logger.info("Newsroom server stopped")

        app = FastAPI(
            title="StoryFlam Newsroom",
            description="Stories, publications and cooperative edit locks",
            version="1.0.0",
            lifespan=lifespan,
        )

        app.add_middleware(
            CORSMiddleware,
            allow_origins=self._config.cors_origins,
            allow_credentials=self._config.cors_credentials,
            allow_methods=self._config.cors_methods,
            allow_headers=self._config.cors_headers,
        )

        self._add_routes(app)
        app.include_router(create_lock_router(self.lock_service, self.sweeper))
        app.include_router(create_story_router(self.story_service, self.activity_service))
        return app

    def _add_routes(self, app: FastAPI) -> None:
        @app.get("/")
        async def root():  # pyright: ignore[reportUnusedFunction]
            """Root endpoint with service info."""
            return {
                "service": "StoryFlam Newsroom",
                "version": app.version,
                "status": "running" if self.is_running else "uninitialized",
                "endpoints": {
                    "health": "/health",
                    "stories": "/stories",
                    "lock": "/stories/{story_id}/lock",
                    "sweep": "/locks/sweep",
                },
            }

        @app.get("/health")
        async def health():  # pyright: ignore[reportUnusedFunction]
            """Health check endpoint, including the lock sweeper state."""
            return {
                "status": "healthy" if self.is_running else "unhealthy",
                "sweeper": {
                    "running": self.sweeper.is_running,
                    "sweeps": self.sweeper.sweeps,
                    "last_cleared": self.sweeper.last_cleared,
                },
            }

    @property
    def host(self) -> str:
        return self._config.host

    @property
    def port(self) -> int:
        return self._config.port

    @property
    def health_url(self) -> str:
        return f"http://{self.host}:{self.port}/health"

    @property
    def is_running(self) -> bool:
        return self._is_running

    def run(self) -> None:
        """Run the server (blocking)."""
        import uvicorn

        uvicorn.run(
            self.app,
            host=self.host,
            port=self.port,
            log_level=self._config.log_level,
            loop="asyncio",
        )
