from types import SimpleNamespace

import pytest

from ao_wallet_bot.commands import SwapCommand, TransferCommand
from ao_wallet_bot.handlers.commands import (
    MARKDOWN,
    SEND_USAGE,
    WORKING_MESSAGE,
    HandlerContext,
    natural_language_handler,
    reset_command,
    send_command,
    start,
    swap_command,
)
from ao_wallet_bot.store.repository import WalletRecord
from ao_wallet_bot.utils.rate_limit import RateLimiter


class DummyDelivery:
    def __init__(self, reachable: bool = True) -> None:
        self.reachable = reachable
        self.sent = []
        self.replaced = []

    async def send(self, chat_id, text, parse_mode=None, **kwargs):
        if not self.reachable:
            return None
        self.sent.append((chat_id, text, parse_mode))
        return SimpleNamespace(message_id=len(self.sent))

    async def replace_or_send(self, chat_id, placeholder, text, parse_mode=None):
        self.replaced.append((chat_id, placeholder.message_id, text))
        return True


class DummyOrchestrator:
    def __init__(self, reply: str = "done") -> None:
        self.reply = reply
        self.executed = []
        self.messages = []
        self.resets = []

    async def execute(self, user_id, command):
        self.executed.append((user_id, command))
        return self.reply

    async def handle_message(self, user_id, text):
        self.messages.append((user_id, text))
        return self.reply

    def reset(self, user_id):
        self.resets.append(user_id)


class DummyDirectory:
    def __init__(self) -> None:
        self.created = False

    async def ensure_wallet(self, chat_id, username, vault):
        created = not self.created
        self.created = True
        return WalletRecord(owner_address="addr-123", stored_credential="iv:ct"), created


def make_update(text: str = "", user_id: int = 42):
    return SimpleNamespace(
        message=SimpleNamespace(text=text),
        effective_user=SimpleNamespace(id=user_id, username="alice", first_name="Alice"),
        effective_chat=SimpleNamespace(id=user_id),
    )


def make_context(args=None, delivery=None, orchestrator=None, rate_limiter=None):
    handler_context = HandlerContext(
        orchestrator=orchestrator or DummyOrchestrator(),
        wallets=DummyDirectory(),
        vault=object(),
        delivery=delivery or DummyDelivery(),
        rate_limiter=rate_limiter,
    )
    return SimpleNamespace(
        args=args or [],
        application=SimpleNamespace(bot_data={"ctx": handler_context}),
    )


@pytest.mark.asyncio
async def test_natural_language_uses_placeholder() -> None:
    context = make_context(orchestrator=DummyOrchestrator(reply="💰 AO balance: 1"))
    ctx = context.application.bot_data["ctx"]

    await natural_language_handler(make_update("what's my AO balance"), context)

    assert ctx.delivery.sent == [(42, WORKING_MESSAGE, None)]
    assert ctx.delivery.replaced == [(42, 1, "💰 AO balance: 1")]
    assert ctx.orchestrator.messages == [(42, "what's my AO balance")]


@pytest.mark.asyncio
async def test_unreachable_user_skips_work() -> None:
    context = make_context(delivery=DummyDelivery(reachable=False))
    ctx = context.application.bot_data["ctx"]

    await natural_language_handler(make_update("hello"), context)

    assert ctx.orchestrator.messages == []


@pytest.mark.asyncio
async def test_rate_limited_message() -> None:
    context = make_context(rate_limiter=RateLimiter(limit_per_minute=1))
    ctx = context.application.bot_data["ctx"]

    await natural_language_handler(make_update("one"), context)
    await natural_language_handler(make_update("two"), context)

    assert ctx.orchestrator.messages == [(42, "one")]
    assert ctx.delivery.sent[-1][1].startswith("Slow down, rate limit hit.")


@pytest.mark.asyncio
async def test_send_command_usage() -> None:
    context = make_context(args=["1", "AO"])
    ctx = context.application.bot_data["ctx"]

    await send_command(make_update(), context)

    assert ctx.delivery.sent == [(42, SEND_USAGE, None)]
    assert ctx.orchestrator.executed == []


@pytest.mark.asyncio
async def test_send_command_builds_transfer() -> None:
    context = make_context(args=["ALL", "ario", "recipient-address"])
    ctx = context.application.bot_data["ctx"]

    await send_command(make_update(), context)

    assert ctx.orchestrator.executed == [
        (42, TransferCommand(amount="all", token="ario", recipient="recipient-address", is_all=True))
    ]


@pytest.mark.asyncio
async def test_swap_command_builds_swap() -> None:
    context = make_context(args=["0.5", "AO", "ARIO"])
    ctx = context.application.bot_data["ctx"]

    await swap_command(make_update(), context)

    assert ctx.orchestrator.executed == [
        (42, SwapCommand(amount="0.5", from_token="AO", to_token="ARIO"))
    ]


@pytest.mark.asyncio
async def test_start_sends_wallet_card() -> None:
    context = make_context()
    ctx = context.application.bot_data["ctx"]

    await start(make_update(), context)
    await start(make_update(), context)

    first, second = ctx.delivery.sent
    assert "`addr-123`" in first[1]
    assert first[2] == MARKDOWN
    assert first[1] != second[1]


@pytest.mark.asyncio
async def test_reset_command() -> None:
    context = make_context()
    ctx = context.application.bot_data["ctx"]

    await reset_command(make_update(), context)

    assert ctx.orchestrator.resets == [42]
    assert ctx.delivery.sent[0][1] == "✅ Conversation cleared. Starting fresh!"
