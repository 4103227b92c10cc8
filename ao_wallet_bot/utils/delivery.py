"""Outbound Telegram delivery that tolerates unreachable chats."""

from __future__ import annotations

from typing import Any, Optional

from telegram import Bot, Message
from telegram.error import BadRequest, Forbidden, TelegramError

from ao_wallet_bot.errors import TransportBlocked, TransportChatNotFound, TransportError
from ao_wallet_bot.utils.logging import get_logger

logger = get_logger(__name__)


def classify_transport_error(exc: TelegramError) -> Optional[TransportError]:
    """Map Telegram errors that mean "recipient unreachable" to transport errors."""
    if isinstance(exc, Forbidden):
        return TransportBlocked(str(exc))
    if isinstance(exc, BadRequest) and "chat not found" in str(exc).lower():
        return TransportChatNotFound(str(exc))
    return None


def _is_not_modified(exc: TelegramError) -> bool:
    return isinstance(exc, BadRequest) and "message is not modified" in str(exc).lower()


class SafeDelivery:
    """Send and edit messages, swallowing blocked/deleted-chat failures.

    ``send`` returns the sent message or None, ``edit`` returns a bool. Other
    Telegram errors propagate to the caller.
    """

    def __init__(self, bot: Bot) -> None:
        self.bot = bot

    def _swallow(self, exc: TelegramError, chat_id: int, operation: str) -> bool:
        transport_error = classify_transport_error(exc)
        if transport_error is None:
            return False
        logger.warning(
            "delivery_skipped",
            chat_id=chat_id,
            operation=operation,
            reason=type(transport_error).__name__,
            error=str(exc),
        )
        return True

    async def send(
        self,
        chat_id: int,
        text: str,
        parse_mode: Optional[str] = None,
        **kwargs: Any,
    ) -> Optional[Message]:
        try:
            return await self.bot.send_message(
                chat_id=chat_id, text=text, parse_mode=parse_mode, **kwargs
            )
        except TelegramError as exc:
            if self._swallow(exc, chat_id, "send"):
                return None
            if parse_mode and isinstance(exc, BadRequest):
                logger.warning("markdown_send_failed", chat_id=chat_id, error=str(exc))
                try:
                    return await self.bot.send_message(
                        chat_id=chat_id, text=text, parse_mode=None, **kwargs
                    )
                except TelegramError as retry_exc:
                    if self._swallow(retry_exc, chat_id, "send"):
                        return None
                    raise
            raise

    async def edit(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        parse_mode: Optional[str] = None,
        **kwargs: Any,
    ) -> bool:
        try:
            await self.bot.edit_message_text(
                text=text,
                chat_id=chat_id,
                message_id=message_id,
                parse_mode=parse_mode,
                **kwargs,
            )
            return True
        except TelegramError as exc:
            if _is_not_modified(exc):
                return True
            if self._swallow(exc, chat_id, "edit"):
                return False
            if parse_mode and isinstance(exc, BadRequest):
                logger.warning("markdown_edit_failed", chat_id=chat_id, error=str(exc))
                try:
                    await self.bot.edit_message_text(
                        text=text,
                        chat_id=chat_id,
                        message_id=message_id,
                        parse_mode=None,
                        **kwargs,
                    )
                    return True
                except TelegramError as retry_exc:
                    if _is_not_modified(retry_exc):
                        return True
                    if self._swallow(retry_exc, chat_id, "edit"):
                        return False
                    raise
            raise

    async def replace_or_send(
        self,
        chat_id: int,
        placeholder: Optional[Message],
        text: str,
        parse_mode: Optional[str] = None,
    ) -> bool:
        """Edit a placeholder message with ``text``, sending a new one if that fails."""
        if placeholder is not None:
            try:
                return await self.edit(
                    chat_id, placeholder.message_id, text, parse_mode=parse_mode
                )
            except TelegramError as exc:
                logger.warning(
                    "placeholder_edit_failed", chat_id=chat_id, error=str(exc)
                )
        return await self.send(chat_id, text, parse_mode=parse_mode) is not None


__all__ = ["SafeDelivery", "classify_transport_error"]
