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

"""Background sweep that clears abandoned edit locks.

Readers already ignore expired locks, so the sweep only keeps the stored
``locked_by`` names tidy for views that show them. It runs once when started
and then every ``interval`` seconds until stopped.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .lock_service import StoryLockService

logger = logging.getLogger(__name__)

SWEEP_INTERVAL_SECONDS = 10 * 60


class LockSweeper:
    """Owns the periodic stale-lock cleanup task.

    The server creates one sweeper per process and ties ``start()`` and
    ``stop()`` to its startup and shutdown.

    Example:
        >>> sweeper = LockSweeper(lock_service, interval=600)
        >>> handle = sweeper.start()  # runs a sweep immediately
        >>> ...
        >>> await sweeper.stop()
    """

    def __init__(self, lock_service: StoryLockService, *, interval: float = SWEEP_INTERVAL_SECONDS) -> None:
        """Initialize the sweeper.

        Args:
            lock_service: Service whose cleanup_stale_locks() is run
            interval: Seconds between sweeps (default: 600)

        Raises:
            ValueError: If interval is not positive
        """
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")

        self._lock_service = lock_service
        self._interval = interval
        self._task: asyncio.Task[None] | None = None
        self._sweeps = 0
        self._last_cleared = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def sweeps(self) -> int:
        """Number of completed sweeps since construction."""
        return self._sweeps

    @property
    def last_cleared(self) -> int:
        """Locks cleared by the most recent sweep."""
        return self._last_cleared

    def start(self) -> asyncio.Task[None]:
        """Start sweeping in the running event loop.

        Calling start() while already running returns the live task.

        Returns:
            The background task; cancelling it stops the sweep
        """
        if self._task is None or self._task.done():
            logger.info("Starting stale lock sweeper (interval=%ss)", self._interval)
            self._task = asyncio.create_task(self._sweep_loop(), name="storyflam-lock-sweeper")
        return self._task

    async def sweep_once(self) -> int:
        """Run one sweep now and return the number of cleared locks."""
        cleared = await self._lock_service.cleanup_stale_locks()
        self._sweeps += 1
        self._last_cleared = cleared
        return cleared

    async def _sweep_loop(self) -> None:
        try:
            while True:
                await self.sweep_once()
                await asyncio.sleep(self._interval)
        except asyncio.CancelledError:
            pass

    async def stop(self) -> None:
        """Stop the sweep task and wait for it to finish."""
        if self._task and not self._task.done():
            logger.info("Stopping stale lock sweeper")
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            logger.info("Stale lock sweeper stopped")
        self._task = None
