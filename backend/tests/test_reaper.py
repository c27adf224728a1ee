"""
FeedHub Backend — Token Reaper Tests
=====================================

What we test:
    ✅ A sweep deactivates only expired sessions, in its own session
    ✅ A failing sweep is logged and swallowed (returns 0, counts the error)
    ✅ start() schedules one interval job that runs immediately; shutdown() stops it
"""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from feedhub.models import Token
from feedhub.scheduler import JOB_ID, TokenReaper


class TestSweep:

    @pytest.mark.asyncio
    async def test_sweep_deactivates_expired_sessions(self, database, db_session, token_service, clock, make_user):
        user = await make_user()
        expired = await token_service.issue(db_session, user.id)
        clock.advance(days=20)
        live = await token_service.issue(db_session, user.id)

        reaper = TokenReaper(database, token_service, interval_minutes=60)
        count = await reaper.sweep(now=clock.now + timedelta(days=15))

        assert count == 1
        assert reaper.stats["runs"] == 1
        assert reaper.stats["total_deactivated"] == 1

        db_session.expire_all()
        rows = {
            row.id: row.is_active
            for row in (await db_session.execute(select(Token))).scalars()
        }
        assert rows == {expired.record.id: False, live.record.id: True}

    @pytest.mark.asyncio
    async def test_second_sweep_finds_nothing(self, database, db_session, token_service, clock, make_user):
        user = await make_user()
        await token_service.issue(db_session, user.id)
        reaper = TokenReaper(database, token_service)
        later = clock.now + timedelta(days=31)

        assert await reaper.sweep(now=later) == 1
        assert await reaper.sweep(now=later) == 0

    @pytest.mark.asyncio
    async def test_failed_sweep_is_swallowed(self, database):
        token_service = MagicMock()
        token_service.deactivate_expired = AsyncMock(
            side_effect=OperationalError("UPDATE tokens", {}, Exception("database is locked"))
        )
        reaper = TokenReaper(database, token_service)

        assert await reaper.sweep() == 0
        assert reaper.stats["errors"] == 1
        assert reaper.stats["runs"] == 0


class TestScheduling:

    @pytest.mark.asyncio
    async def test_start_registers_single_immediate_job(self, database, token_service):
        reaper = TokenReaper(database, token_service, interval_minutes=15)
        reaper.start()
        try:
            assert reaper.running
            jobs = reaper.scheduler.get_jobs()
            assert [job.id for job in jobs] == [JOB_ID]
            assert jobs[0].max_instances == 1
            assert jobs[0].coalesce is True
            assert jobs[0].trigger.interval == timedelta(minutes=15)

            # Starting twice does not add a second scheduler or job
            reaper.start()
            assert len(reaper.scheduler.get_jobs()) == 1
        finally:
            reaper.shutdown()

        assert not reaper.running

    @pytest.mark.asyncio
    async def test_shutdown_without_start_is_noop(self, database, token_service):
        reaper = TokenReaper(database, token_service)
        reaper.shutdown()
        assert not reaper.running
