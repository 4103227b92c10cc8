"""Scheduled cleanup jobs."""

from __future__ import annotations

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from ao_wallet_bot.store.memory import ConversationMemory
from ao_wallet_bot.utils.logging import get_logger

logger = get_logger(__name__)

PURGE_INTERVAL_MINUTES = 15


class CleanupService:
    """Periodic eviction of idle conversation windows."""

    def __init__(
        self,
        memory: ConversationMemory,
        scheduler: AsyncIOScheduler,
        interval_minutes: int = PURGE_INTERVAL_MINUTES,
    ):
        self.memory = memory
        self.scheduler = scheduler
        self.interval_minutes = interval_minutes

    def start(self) -> None:
        """Register cleanup jobs with the scheduler."""
        if self.memory.ttl_seconds is None:
            logger.info("cleanup_jobs_skipped", reason="conversation ttl disabled")
            return
        self.scheduler.add_job(
            self._purge_conversations,
            trigger="interval",
            minutes=self.interval_minutes,
            id="purge_conversations",
            replace_existing=True,
        )
        logger.info("cleanup_jobs_started", jobs=["purge_conversations"])

    async def _purge_conversations(self) -> None:
        """Drop conversation windows idle for longer than the TTL."""
        try:
            removed = self.memory.purge_expired()
            logger.info("purge_conversations_success", removed=removed)
        except Exception as exc:
            logger.error("purge_conversations_failed", error=str(exc))
