"""Telegram command handlers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from telegram import Update, constants
from telegram.error import TelegramError
from telegram.ext import (
    Application,
    CallbackContext,
    CommandHandler,
    MessageHandler,
    filters,
)

from ao_wallet_bot.commands import (
    CheckBalanceCommand,
    ListBalancesCommand,
    SwapCommand,
    TransferCommand,
    WalletInfoCommand,
)
from ao_wallet_bot.errors import GENERIC_ERROR_MESSAGE
from ao_wallet_bot.orchestrator import Orchestrator
from ao_wallet_bot.store.repository import WalletDirectory
from ao_wallet_bot.utils.amounts import is_all_keyword
from ao_wallet_bot.utils.delivery import SafeDelivery
from ao_wallet_bot.utils.formatting import format_help, format_wallet_card
from ao_wallet_bot.utils.key_vault import KeyVault
from ao_wallet_bot.utils.logging import get_logger
from ao_wallet_bot.utils.rate_limit import RateLimiter

logger = get_logger(__name__)

WORKING_MESSAGE = "⏳ Working on it..."
MARKDOWN = constants.ParseMode.MARKDOWN_V2

SEND_USAGE = "Usage: /send <amount|all> <token> <recipient>"
SWAP_USAGE = "Usage: /swap <amount> <from> <to>"
HOLDERS_USAGE = "Usage: /holders <token>"


@dataclass
class HandlerContext:
    orchestrator: Orchestrator
    wallets: WalletDirectory
    vault: KeyVault
    delivery: SafeDelivery
    rate_limiter: RateLimiter | None


def setup(application: Application, handler_context: HandlerContext) -> None:
    """Register handlers on the Telegram application."""
    application.bot_data["ctx"] = handler_context

    application.add_handler(CommandHandler("start", start))
    application.add_handler(CommandHandler("help", help_command))
    application.add_handler(CommandHandler("wallet", wallet_command))
    application.add_handler(CommandHandler("balance", balance_command))
    application.add_handler(CommandHandler("send", send_command))
    application.add_handler(CommandHandler("swap", swap_command))
    application.add_handler(CommandHandler("holders", holders_command))
    application.add_handler(CommandHandler(["reset", "clear"], reset_command))

    application.add_handler(
        MessageHandler(filters.TEXT & ~filters.COMMAND, natural_language_handler)
    )
    application.add_error_handler(error_handler)


def get_ctx(context: CallbackContext) -> HandlerContext:
    return context.application.bot_data["ctx"]


def _ids(update: Update) -> tuple[Optional[int], Optional[int]]:
    user_id = update.effective_user.id if update.effective_user else None
    chat_id = update.effective_chat.id if update.effective_chat else user_id
    return user_id, chat_id


async def reply(update: Update, context: CallbackContext, text: str, markdown: bool = False) -> None:
    _, chat_id = _ids(update)
    if chat_id is None:
        return
    await get_ctx(context).delivery.send(
        chat_id, text, parse_mode=MARKDOWN if markdown else None
    )


async def run_with_placeholder(
    update: Update,
    context: CallbackContext,
    operation: Callable[[int], Awaitable[str]],
) -> None:
    """Send a working notice, run ``operation`` and edit the notice with its reply."""
    ctx = get_ctx(context)
    user_id, chat_id = _ids(update)
    if user_id is None or chat_id is None:
        return

    placeholder = await ctx.delivery.send(chat_id, WORKING_MESSAGE)
    if placeholder is None:
        logger.info("user_unreachable", user_id=user_id, chat_id=chat_id)
        return

    text = await operation(user_id)
    await ctx.delivery.replace_or_send(chat_id, placeholder, text or GENERIC_ERROR_MESSAGE)


async def rate_limit(update: Update, context: CallbackContext) -> bool:
    ctx = get_ctx(context)
    user = update.effective_user
    if not user or not ctx.rate_limiter:
        return True
    if ctx.rate_limiter.allow(user.id):
        return True
    wait = max(int(ctx.rate_limiter.retry_after(user.id)), 1)
    await reply(update, context, f"Slow down, rate limit hit. Try again in {wait}s.")
    return False


async def start(update: Update, context: CallbackContext) -> None:
    ctx = get_ctx(context)
    user = update.effective_user
    if not user:
        return
    record, created = await ctx.wallets.ensure_wallet(user.id, user.username, ctx.vault)
    logger.info("start_command", user_id=user.id, created=created)
    await reply(
        update,
        context,
        format_wallet_card(record.owner_address, created=created, name=user.first_name),
        markdown=True,
    )


async def help_command(update: Update, context: CallbackContext) -> None:
    await reply(update, context, format_help(), markdown=True)


async def wallet_command(update: Update, context: CallbackContext) -> None:
    ctx = get_ctx(context)
    user_id, _ = _ids(update)
    if user_id is None:
        return
    await reply(update, context, await ctx.orchestrator.execute(user_id, WalletInfoCommand()))


async def balance_command(update: Update, context: CallbackContext) -> None:
    ctx = get_ctx(context)
    token = context.args[0] if context.args else None
    command = CheckBalanceCommand(token=token)
    await run_with_placeholder(
        update, context, lambda user_id: ctx.orchestrator.execute(user_id, command)
    )


async def send_command(update: Update, context: CallbackContext) -> None:
    ctx = get_ctx(context)
    args = context.args or []
    if len(args) != 3:
        await reply(update, context, SEND_USAGE)
        return
    amount, token, recipient = args
    command = TransferCommand(
        amount=amount.lower() if is_all_keyword(amount) else amount,
        token=token,
        recipient=recipient,
        is_all=is_all_keyword(amount),
    )
    await run_with_placeholder(
        update, context, lambda user_id: ctx.orchestrator.execute(user_id, command)
    )


async def swap_command(update: Update, context: CallbackContext) -> None:
    ctx = get_ctx(context)
    args = context.args or []
    if len(args) != 3:
        await reply(update, context, SWAP_USAGE)
        return
    amount, from_token, to_token = args
    command = SwapCommand(amount=amount, from_token=from_token, to_token=to_token)
    await run_with_placeholder(
        update, context, lambda user_id: ctx.orchestrator.execute(user_id, command)
    )


async def holders_command(update: Update, context: CallbackContext) -> None:
    ctx = get_ctx(context)
    if not context.args:
        await reply(update, context, HOLDERS_USAGE)
        return
    command = ListBalancesCommand(token=context.args[0])
    await run_with_placeholder(
        update, context, lambda user_id: ctx.orchestrator.execute(user_id, command)
    )


async def reset_command(update: Update, context: CallbackContext) -> None:
    ctx = get_ctx(context)
    user_id, _ = _ids(update)
    if user_id is None:
        return
    ctx.orchestrator.reset(user_id)
    await reply(update, context, "✅ Conversation cleared. Starting fresh!")


async def natural_language_handler(update: Update, context: CallbackContext) -> None:
    if not update.message or not update.message.text:
        return
    if not await rate_limit(update, context):
        return

    ctx = get_ctx(context)
    message = update.message.text
    logger.info("message_received", user_id=update.effective_user.id if update.effective_user else None)
    await run_with_placeholder(
        update,
        context,
        lambda user_id: ctx.orchestrator.handle_message(user_id, message),
    )


async def error_handler(update: object, context: CallbackContext) -> None:
    """Log errors that escaped a handler; the update loop keeps running."""
    error = context.error
    chat_id = None
    if isinstance(update, Update) and update.effective_chat:
        chat_id = update.effective_chat.id
    if isinstance(error, TelegramError):
        logger.error("telegram_error", chat_id=chat_id, error=str(error))
        return
    logger.error(
        "handler_failed",
        chat_id=chat_id,
        error=str(error),
        exc_info=error,
    )
