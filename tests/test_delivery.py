from types import SimpleNamespace

import pytest
from telegram.error import BadRequest, Forbidden, NetworkError

from ao_wallet_bot.errors import TransportBlocked, TransportChatNotFound
from ao_wallet_bot.utils.delivery import SafeDelivery, classify_transport_error


class FakeBot:
    def __init__(self, send_errors=(), edit_errors=()) -> None:
        self.send_errors = list(send_errors)
        self.edit_errors = list(edit_errors)
        self.sent = []
        self.edited = []

    async def send_message(self, chat_id, text, parse_mode=None, **kwargs):
        if self.send_errors:
            raise self.send_errors.pop(0)
        self.sent.append((chat_id, text, parse_mode))
        return SimpleNamespace(message_id=len(self.sent), chat_id=chat_id)

    async def edit_message_text(self, text, chat_id, message_id, parse_mode=None, **kwargs):
        if self.edit_errors:
            raise self.edit_errors.pop(0)
        self.edited.append((chat_id, message_id, text, parse_mode))
        return True


def test_classification() -> None:
    assert isinstance(classify_transport_error(Forbidden("bot was blocked by the user")), TransportBlocked)
    assert isinstance(classify_transport_error(BadRequest("Chat not found")), TransportChatNotFound)
    assert classify_transport_error(BadRequest("can't parse entities")) is None
    assert classify_transport_error(NetworkError("boom")) is None


@pytest.mark.asyncio
async def test_send_success() -> None:
    bot = FakeBot()

    message = await SafeDelivery(bot).send(1, "hello")

    assert message.message_id == 1
    assert bot.sent == [(1, "hello", None)]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error", [Forbidden("Forbidden: bot was blocked by the user"), BadRequest("Chat not found")]
)
async def test_send_swallows_unreachable_recipient(error) -> None:
    bot = FakeBot(send_errors=[error])

    assert await SafeDelivery(bot).send(1, "hello") is None
    assert bot.sent == []


@pytest.mark.asyncio
async def test_markdown_failure_retries_plain() -> None:
    bot = FakeBot(send_errors=[BadRequest("Can't parse entities")])

    message = await SafeDelivery(bot).send(1, "*bold", parse_mode="MarkdownV2")

    assert message is not None
    assert bot.sent == [(1, "*bold", None)]


@pytest.mark.asyncio
async def test_other_errors_propagate() -> None:
    bot = FakeBot(send_errors=[NetworkError("timeout")])

    with pytest.raises(NetworkError):
        await SafeDelivery(bot).send(1, "hello")


@pytest.mark.asyncio
async def test_plain_bad_request_propagates() -> None:
    bot = FakeBot(send_errors=[BadRequest("Message is too long")])

    with pytest.raises(BadRequest):
        await SafeDelivery(bot).send(1, "hello")


@pytest.mark.asyncio
async def test_edit_outcomes() -> None:
    bot = FakeBot(
        edit_errors=[
            Forbidden("bot was blocked by the user"),
            BadRequest("Message is not modified"),
        ]
    )
    delivery = SafeDelivery(bot)

    assert await delivery.edit(1, 5, "x") is False
    assert await delivery.edit(1, 5, "x") is True
    assert await delivery.edit(1, 5, "y") is True
    assert bot.edited == [(1, 5, "y", None)]


@pytest.mark.asyncio
async def test_replace_or_send_falls_back_to_new_message() -> None:
    bot = FakeBot(edit_errors=[BadRequest("Message to edit not found")])
    delivery = SafeDelivery(bot)

    ok = await delivery.replace_or_send(1, SimpleNamespace(message_id=9), "result")

    assert ok is True
    assert bot.sent == [(1, "result", None)]


@pytest.mark.asyncio
async def test_replace_or_send_stops_when_blocked() -> None:
    bot = FakeBot(edit_errors=[Forbidden("blocked")])
    delivery = SafeDelivery(bot)

    ok = await delivery.replace_or_send(1, SimpleNamespace(message_id=9), "result")

    assert ok is False
    assert bot.sent == []
