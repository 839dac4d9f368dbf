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

"""Unit tests for StoryLockService.

Covers the expiry rule, the lock status matrix, atomic acquisition,
refresh ownership, release and the stale lock cleanup, against both the
in-memory and the SQLite engines.
"""

import asyncio
import logging
from datetime import timedelta

import pytest

from storyflam.archs.newsroom import LockOutcome, StoryLockService
from storyflam.archs.newsroom.models import StoryModel, utc_now
from storyflam.archs.newsroom.orm import ComparisonFilter, InMemoryDatabaseEngine, SQLDatabaseEngine
from tests.utils import minutes_ago, seed_story


def _memory_engine():
    return InMemoryDatabaseEngine()


def _sqlite_engine():
    return SQLDatabaseEngine.from_url("sqlite+aiosqlite:///:memory:")


ENGINE_FACTORIES = pytest.mark.parametrize(
    "make_engine",
    [_memory_engine, _sqlite_engine],
    ids=["memory", "sqlite"],
)


async def _read(engine, story_id: str = "story_1") -> StoryModel:
    story = await engine.find_first(StoryModel, filters=ComparisonFilter.eq("id", story_id))
    assert story is not None
    return story


class TestStoryLockServiceInit:
    def test_default_timeout_is_five_minutes(self):
        service = StoryLockService(engine=InMemoryDatabaseEngine())
        assert service.lock_timeout == timedelta(minutes=5)

    def test_non_positive_timeout_raises(self):
        with pytest.raises(ValueError, match="lock_timeout must be positive"):
            StoryLockService(engine=InMemoryDatabaseEngine(), lock_timeout=0)


@ENGINE_FACTORIES
class TestCheckLock:
    """Lock status as seen by the holder and by other journalists."""

    def test_unlocked_story_is_not_locked_even_with_timestamp(self, make_engine):
        async def run():
            engine = make_engine()
            await seed_story(engine, locked_by=None, locked_at=utc_now())
            service = StoryLockService(engine=engine)

            result = await service.check_lock("story_1", "bob")

            assert result.ok
            assert result.data.is_locked is False
            assert result.data.is_self is False

        asyncio.run(run())

    def test_fresh_lock_blocks_others_but_not_holder(self, make_engine):
        async def run():
            engine = make_engine()
            await seed_story(engine, locked_by="alice", locked_at=minutes_ago(1))
            service = StoryLockService(engine=engine)

            holder = (await service.check_lock("story_1", "alice")).data
            other = (await service.check_lock("story_1", "bob")).data

            assert holder.is_self is True
            assert holder.is_locked is False
            assert holder.is_expired is False
            assert other.is_self is False
            assert other.is_locked is True
            assert other.locked_by == "alice"

        asyncio.run(run())

    def test_expired_lock_blocks_nobody(self, make_engine):
        async def run():
            engine = make_engine()
            await seed_story(engine, locked_by="alice", locked_at=minutes_ago(6))
            service = StoryLockService(engine=engine)

            for user in ("alice", "bob"):
                status = (await service.check_lock("story_1", user)).data
                assert status.is_expired is True
                assert status.is_locked is False

        asyncio.run(run())

    def test_holder_without_timestamp_counts_as_expired(self, make_engine):
        async def run():
            engine = make_engine()
            await seed_story(engine, locked_by="alice", locked_at=None)
            service = StoryLockService(engine=engine)

            status = (await service.check_lock("story_1", "bob")).data

            assert status.is_expired is True
            assert status.is_locked is False

        asyncio.run(run())

    def test_missing_story_is_a_not_found_failure(self, make_engine):
        async def run():
            service = StoryLockService(engine=make_engine())

            result = await service.check_lock("missing", "alice")

            assert not result.ok
            assert result.not_found
            assert result.data is None
            assert "missing" in result.error

        asyncio.run(run())


@ENGINE_FACTORIES
class TestAcquireLock:
    def test_acquire_unlocked_story(self, make_engine):
        async def run():
            engine = make_engine()
            await seed_story(engine)
            service = StoryLockService(engine=engine)

            result = await service.acquire_lock("story_1", "alice")

            assert result.success
            assert result.outcome == LockOutcome.ACQUIRED
            story = await _read(engine)
            assert story.locked_by == "alice"
            assert abs(utc_now() - story.locked_at) < timedelta(seconds=5)

        asyncio.run(run())

    def test_acquire_fresh_foreign_lock_conflicts(self, make_engine):
        async def run():
            engine = make_engine()
            await seed_story(engine, locked_by="alice", locked_at=minutes_ago(1))
            service = StoryLockService(engine=engine)

            result = await service.acquire_lock("story_1", "bob")

            assert not result.success
            assert result.outcome == LockOutcome.CONFLICT
            assert result.error == "Story is being edited by alice"
            assert result.locked_by == "alice"
            assert (await _read(engine)).locked_by == "alice"

        asyncio.run(run())

    def test_acquire_expired_lock_succeeds(self, make_engine):
        async def run():
            engine = make_engine()
            await seed_story(engine, locked_by="alice", locked_at=minutes_ago(6))
            service = StoryLockService(engine=engine)

            result = await service.acquire_lock("story_1", "bob")

            assert result.success
            assert (await _read(engine)).locked_by == "bob"

        asyncio.run(run())

    def test_reacquire_own_lock_bumps_timestamp(self, make_engine):
        async def run():
            engine = make_engine()
            taken_at = minutes_ago(4)
            await seed_story(engine, locked_by="alice", locked_at=taken_at)
            service = StoryLockService(engine=engine)

            result = await service.acquire_lock("story_1", "alice")

            assert result.success
            assert (await _read(engine)).locked_at > taken_at

        asyncio.run(run())

    def test_acquire_missing_story(self, make_engine):
        async def run():
            engine = make_engine()
            await engine.setup_models([StoryModel])
            service = StoryLockService(engine=engine)

            result = await service.acquire_lock("missing", "alice")

            assert not result.success
            assert result.outcome == LockOutcome.NOT_FOUND

        asyncio.run(run())

    def test_acquire_then_check_round_trip(self, make_engine):
        async def run():
            engine = make_engine()
            await seed_story(engine)
            service = StoryLockService(engine=engine)

            await service.acquire_lock("story_1", "alice")
            status = (await service.check_lock("story_1", "alice")).data

            assert status.is_self is True
            assert status.is_locked is False

        asyncio.run(run())

    def test_acquire_does_not_touch_other_stories(self, make_engine):
        async def run():
            engine = make_engine()
            await seed_story(engine, "story_1")
            await seed_story(engine, "story_2", locked_by="carol", locked_at=minutes_ago(2))
            service = StoryLockService(engine=engine)

            await service.acquire_lock("story_1", "alice")

            assert (await _read(engine, "story_2")).locked_by == "carol"

        asyncio.run(run())

    def test_conflict_after_retries_names_last_holder(self, make_engine):
        class _LosingEngine(InMemoryDatabaseEngine):
            async def update_where(self, model_class, *, filters, values):
                return 0

        async def run():
            engine = _LosingEngine()
            await seed_story(engine, locked_by="alice", locked_at=minutes_ago(6))
            service = StoryLockService(engine=engine)

            result = await service.acquire_lock("story_1", "bob")

            assert not result.success
            assert result.outcome == LockOutcome.CONFLICT
            assert result.error == "Story is being edited by alice"
            assert result.locked_by == "alice"

        asyncio.run(run())


@ENGINE_FACTORIES
class TestBlankUserNames:
    def test_blank_holder_reads_and_acquires_as_unlocked(self, make_engine):
        async def run():
            engine = make_engine()
            await seed_story(engine, locked_by="", locked_at=minutes_ago(1))
            service = StoryLockService(engine=engine)

            status = (await service.check_lock("story_1", "bob")).data
            result = await service.acquire_lock("story_1", "bob")

            assert status.is_locked is False
            assert result.success
            assert result.outcome == LockOutcome.ACQUIRED
            assert (await _read(engine)).locked_by == "bob"

        asyncio.run(run())

    def test_blank_user_cannot_acquire_or_refresh(self, make_engine):
        async def run():
            engine = make_engine()
            await seed_story(engine)
            service = StoryLockService(engine=engine)

            for result in (
                await service.acquire_lock("story_1", ""),
                await service.refresh_lock("story_1", ""),
            ):
                assert not result.success
                assert result.outcome == LockOutcome.INVALID_USER

            story = await _read(engine)
            assert story.locked_by is None
            assert story.locked_at is None

        asyncio.run(run())


class TestAcquireLockConcurrency:
    def test_concurrent_acquires_have_one_winner(self):
        async def run():
            engine = InMemoryDatabaseEngine()
            await seed_story(engine)
            service = StoryLockService(engine=engine)

            users = [f"journalist_{i}" for i in range(10)]
            results = await asyncio.gather(*(service.acquire_lock("story_1", user) for user in users))

            winners = [user for user, result in zip(users, results) if result.success]
            assert len(winners) == 1
            assert (await _read(engine)).locked_by == winners[0]
            for result in results:
                if not result.success:
                    assert result.outcome == LockOutcome.CONFLICT
                    assert result.error == f"Story is being edited by {winners[0]}"

        asyncio.run(run())

    def test_concurrent_acquires_on_sqlite_file(self, tmp_path):
        async def run():
            engine = SQLDatabaseEngine.from_url(f"sqlite+aiosqlite:///{tmp_path / 'locks.db'}")
            try:
                await seed_story(engine)
                service = StoryLockService(engine=engine)
                await service.check_lock("story_1", "alice")  # tables ready before the race

                results = await asyncio.gather(
                    service.acquire_lock("story_1", "alice"),
                    service.acquire_lock("story_1", "bob"),
                )

                assert sum(1 for r in results if r.success) == 1
                holder = (await _read(engine)).locked_by
                assert holder in ("alice", "bob")
            finally:
                await engine.dispose()

        asyncio.run(run())


@ENGINE_FACTORIES
class TestRefreshLock:
    def test_holder_refresh_extends_lock(self, make_engine):
        async def run():
            engine = make_engine()
            taken_at = minutes_ago(4)
            await seed_story(engine, locked_by="alice", locked_at=taken_at)
            service = StoryLockService(engine=engine)

            result = await service.refresh_lock("story_1", "alice")

            assert result.success
            assert result.outcome == LockOutcome.REFRESHED
            story = await _read(engine)
            assert story.locked_by == "alice"
            assert story.locked_at > taken_at

        asyncio.run(run())

    def test_refresh_after_takeover_reports_not_held(self, make_engine):
        async def run():
            engine = make_engine()
            bob_at = minutes_ago(1)
            await seed_story(engine, locked_by="bob", locked_at=bob_at)
            service = StoryLockService(engine=engine)

            result = await service.refresh_lock("story_1", "alice")

            assert not result.success
            assert result.outcome == LockOutcome.LOCK_NOT_HELD
            story = await _read(engine)
            assert story.locked_by == "bob"
            assert story.locked_at == bob_at

        asyncio.run(run())

    def test_refresh_after_release_reports_not_held(self, make_engine):
        async def run():
            engine = make_engine()
            await seed_story(engine)
            service = StoryLockService(engine=engine)

            result = await service.refresh_lock("story_1", "alice")

            assert result.outcome == LockOutcome.LOCK_NOT_HELD
            assert (await _read(engine)).locked_at is None

        asyncio.run(run())


@ENGINE_FACTORIES
class TestReleaseLock:
    def test_release_clears_both_fields(self, make_engine):
        async def run():
            engine = make_engine()
            await seed_story(engine, locked_by="alice", locked_at=minutes_ago(1))
            service = StoryLockService(engine=engine)

            result = await service.release_lock("story_1")

            assert result.success
            assert result.outcome == LockOutcome.RELEASED
            story = await _read(engine)
            assert story.locked_by is None
            assert story.locked_at is None
            for user in ("alice", "bob"):
                assert (await service.check_lock("story_1", user)).data.is_locked is False

        asyncio.run(run())

    def test_anyone_can_release(self, make_engine):
        async def run():
            engine = make_engine()
            await seed_story(engine, locked_by="alice", locked_at=minutes_ago(1))
            service = StoryLockService(engine=engine)

            await service.release_lock("story_1")
            result = await service.acquire_lock("story_1", "trainer")

            assert result.success

        asyncio.run(run())

    def test_release_unlocked_story_succeeds(self, make_engine):
        async def run():
            engine = make_engine()
            await seed_story(engine)
            service = StoryLockService(engine=engine)

            assert (await service.release_lock("story_1")).success

        asyncio.run(run())

    def test_release_missing_story(self, make_engine):
        async def run():
            engine = make_engine()
            await engine.setup_models([StoryModel])
            service = StoryLockService(engine=engine)

            result = await service.release_lock("missing")

            assert result.outcome == LockOutcome.NOT_FOUND

        asyncio.run(run())


@ENGINE_FACTORIES
class TestCleanupStaleLocks:
    def test_clears_only_stale_locks(self, make_engine):
        async def run():
            engine = make_engine()
            await seed_story(engine, "stale_1", locked_by="alice", locked_at=minutes_ago(6))
            await seed_story(engine, "stale_2", locked_by="bob", locked_at=minutes_ago(30))
            await seed_story(engine, "fresh", locked_by="carol", locked_at=minutes_ago(2))
            await seed_story(engine, "unlocked")
            service = StoryLockService(engine=engine)

            cleared = await service.cleanup_stale_locks()

            assert cleared == 2
            for story_id in ("stale_1", "stale_2"):
                story = await _read(engine, story_id)
                assert story.locked_by is None
                assert story.locked_at is None
            fresh = await _read(engine, "fresh")
            assert fresh.locked_by == "carol"
            assert fresh.locked_at is not None

        asyncio.run(run())

    def test_second_sweep_is_a_no_op(self, make_engine):
        async def run():
            engine = make_engine()
            await seed_story(engine, locked_by="alice", locked_at=minutes_ago(6))
            service = StoryLockService(engine=engine)

            assert await service.cleanup_stale_locks() == 1
            assert await service.cleanup_stale_locks() == 0

        asyncio.run(run())


class TestStorageErrors:
    """Engine failures surface as results, never as exceptions."""

    class _BrokenEngine(InMemoryDatabaseEngine):
        async def find_first(self, model_class, *, filters):
            raise RuntimeError("store unavailable")

        async def update_where(self, model_class, *, filters, values):
            raise RuntimeError("store unavailable")

    def test_check_lock_reports_error(self):
        async def run():
            service = StoryLockService(engine=self._BrokenEngine())
            result = await service.check_lock("story_1", "alice")
            assert not result.ok
            assert not result.not_found
            assert result.error == "store unavailable"

        asyncio.run(run())

    def test_lock_writes_report_storage_error(self):
        async def run():
            service = StoryLockService(engine=self._BrokenEngine())
            for result in (
                await service.acquire_lock("story_1", "alice"),
                await service.refresh_lock("story_1", "alice"),
                await service.release_lock("story_1"),
            ):
                assert not result.success
                assert result.outcome == LockOutcome.STORAGE_ERROR
                assert result.error == "store unavailable"

        asyncio.run(run())

    def test_cleanup_logs_and_returns_zero(self, storyflam_caplog):
        async def run():
            service = StoryLockService(engine=self._BrokenEngine())
            assert await service.cleanup_stale_locks() == 0

        asyncio.run(run())
        errors = [r for r in storyflam_caplog.records if r.levelno == logging.ERROR]
        assert any("Stale lock cleanup failed" in r.getMessage() for r in errors)
        assert errors[-1].exc_info is not None


class TestLockLogging:
    def test_conflict_logs_warning(self, storyflam_caplog):
        async def run():
            engine = InMemoryDatabaseEngine()
            await seed_story(engine, locked_by="alice", locked_at=minutes_ago(1))
            await StoryLockService(engine=engine).acquire_lock("story_1", "bob")

        asyncio.run(run())
        warnings = [r for r in storyflam_caplog.records if r.levelno == logging.WARNING]
        assert any("alice" in r.getMessage() for r in warnings)
