import asyncio

import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from ao_wallet_bot.jobs.cleanup import CleanupService
from ao_wallet_bot.store.memory import ConversationMemory, ConversationTurn


@pytest.mark.asyncio
async def test_cleanup_service_registers_jobs() -> None:
    scheduler = AsyncIOScheduler(event_loop=asyncio.get_running_loop())
    memory = ConversationMemory(ttl_seconds=600)
    service = CleanupService(memory=memory, scheduler=scheduler)

    service.start()
    scheduler.start()

    assert scheduler.get_job("purge_conversations") is not None

    scheduler.shutdown(wait=False)


@pytest.mark.asyncio
async def test_cleanup_skipped_without_ttl() -> None:
    scheduler = AsyncIOScheduler(event_loop=asyncio.get_running_loop())
    service = CleanupService(memory=ConversationMemory(), scheduler=scheduler)

    service.start()

    assert scheduler.get_jobs() == []


@pytest.mark.asyncio
async def test_purge_drops_idle_windows() -> None:
    now = [0.0]
    memory = ConversationMemory(ttl_seconds=60, clock=lambda: now[0])
    memory.append(1, ConversationTurn("user", "hi"))
    now[0] = 120.0
    service = CleanupService(memory=memory, scheduler=AsyncIOScheduler())

    await service._purge_conversations()

    assert len(memory) == 0
