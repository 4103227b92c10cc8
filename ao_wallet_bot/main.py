"""Application entrypoint."""

from __future__ import annotations

import asyncio
import signal

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from telegram import BotCommand, BotCommandScopeDefault
from telegram.ext import ApplicationBuilder

from ao_wallet_bot.bootstrap import build_services
from ao_wallet_bot.config import load_settings
from ao_wallet_bot.handlers.commands import HandlerContext, setup as setup_handlers
from ao_wallet_bot.jobs.cleanup import CleanupService
from ao_wallet_bot.utils.delivery import SafeDelivery
from ao_wallet_bot.utils.logging import configure_logging, get_logger
from ao_wallet_bot.utils.rate_limit import RateLimiter

logger = get_logger(__name__)

BOT_COMMANDS = [
    BotCommand("start", "Create or show your wallet"),
    BotCommand("balance", "Show your balances"),
    BotCommand("send", "Send tokens"),
    BotCommand("swap", "Swap tokens"),
    BotCommand("holders", "Top holders of a token"),
    BotCommand("wallet", "Show your wallet address"),
    BotCommand("reset", "Clear conversation"),
    BotCommand("help", "Show what I can do"),
]


async def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)

    services = build_services(settings)
    services.db.connect()
    await services.db.init_models()

    application = ApplicationBuilder().token(settings.telegram_bot_token).build()
    await application.initialize()

    await application.bot.delete_my_commands(scope=BotCommandScopeDefault())
    await application.bot.set_my_commands(BOT_COMMANDS, scope=BotCommandScopeDefault())

    await services.mcp_manager.start()

    scheduler = AsyncIOScheduler()
    cleanup_service = CleanupService(memory=services.memory, scheduler=scheduler)

    handler_context = HandlerContext(
        orchestrator=services.orchestrator,
        wallets=services.wallets,
        vault=services.vault,
        delivery=SafeDelivery(application.bot),
        rate_limiter=RateLimiter(settings.rate_limit_per_user_per_min),
    )
    setup_handlers(application, handler_context)

    cleanup_service.start()
    scheduler.start()

    try:
        await application.start()
        if application.updater:
            await application.updater.start_polling()

        logger.info("bot_started", commands=len(BOT_COMMANDS), tokens=len(services.registry))

        stop_event = asyncio.Event()

        def signal_handler(signum, frame):
            logger.info("shutdown_signal_received", signal=signum)
            stop_event.set()

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

        await stop_event.wait()

    finally:
        logger.info("bot_stopping")
        scheduler.shutdown(wait=False)
        if application.updater:
            await application.updater.stop()
        await application.stop()
        await application.shutdown()
        await services.mcp_manager.shutdown()
        await services.db.dispose()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
