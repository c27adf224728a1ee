"""
FeedHub Backend — Token Reaper
===============================

What:  Background job that deactivates every session past its expiry.
How:   APScheduler AsyncIOScheduler with one interval job. The first sweep
       runs as soon as the scheduler starts, then every
       TOKEN_SWEEP_INTERVAL_MINUTES.
Who:   Started and stopped by the application lifespan.

Failure Handling:
    A failed sweep is logged and counted; the job stays scheduled and the
    next tick tries again. Lazy expiry in TokenService.verify() covers any
    session the reaper has not reached yet.
"""

import logging
from datetime import datetime
from typing import Dict, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from feedhub.database import Database, utcnow
from feedhub.services.token_service import TokenService

logger = logging.getLogger(__name__)

JOB_ID = "token_reaper"


class TokenReaper:
    """Periodic bulk deactivation of expired sessions."""

    def __init__(
        self,
        database: Database,
        token_service: TokenService,
        interval_minutes: int = 60,
    ):
        self.database = database
        self.token_service = token_service
        self.interval_minutes = interval_minutes
        self.scheduler: Optional[AsyncIOScheduler] = None
        self.stats: Dict = {
            "last_run": None,
            "last_deactivated": 0,
            "total_deactivated": 0,
            "runs": 0,
            "errors": 0,
        }

    @property
    def running(self) -> bool:
        return self.scheduler is not None and self.scheduler.running

    async def sweep(self, now: Optional[datetime] = None) -> int:
        """
        Run one sweep in its own session.

        Returns:
            Number of sessions deactivated; 0 when the sweep failed.
        """
        now = now or utcnow()
        self.stats["last_run"] = now.isoformat()
        try:
            async with self.database.session() as db:
                count = await self.token_service.deactivate_expired(db, now=now)
        except Exception as e:
            self.stats["errors"] += 1
            logger.error("Token sweep failed: %s", str(e), exc_info=True)
            return 0

        self.stats["runs"] += 1
        self.stats["last_deactivated"] = count
        self.stats["total_deactivated"] += count
        if count:
            logger.info("Token sweep deactivated %d expired session(s)", count)
        else:
            logger.debug("Token sweep found no expired sessions")
        return count

    def start(self) -> None:
        """Schedule the sweep; the first run fires immediately."""
        if self.running:
            return

        self.scheduler = AsyncIOScheduler(timezone="UTC")
        self.scheduler.add_job(
            self.sweep,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id=JOB_ID,
            name="Expired session sweep",
            next_run_time=utcnow(),
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.start()
        logger.info("Token reaper started (every %d min)", self.interval_minutes)

    def shutdown(self) -> None:
        """Stop the scheduler without waiting for a sweep in progress."""
        if not self.running:
            return
        self.scheduler.shutdown(wait=False)
        self.scheduler = None
        logger.info("Token reaper stopped")
