"""CLI interface for the AO wallet bot.

Drive the same orchestrator as the Telegram bot from a terminal.

Usage:
    python -m ao_wallet_bot.cli --user-id 42 "what's my AO balance"
    python -m ao_wallet_bot.cli --user-id 42 --interactive
    python -m ao_wallet_bot.cli --user-id 42 --output json "show my balances"
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Optional, TextIO

from ao_wallet_bot.bootstrap import Services, build_services
from ao_wallet_bot.config import load_settings
from ao_wallet_bot.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


class CLIOutput:
    """Plain text or JSON output for terminal use."""

    def __init__(self, as_json: bool = False, stream: Optional[TextIO] = None) -> None:
        self.as_json = as_json
        self.stream = stream or sys.stdout

    def reply(self, query: str, text: str) -> None:
        if self.as_json:
            print(json.dumps({"query": query, "reply": text}, ensure_ascii=False), file=self.stream)
        else:
            print(text, file=self.stream)

    def info(self, text: str) -> None:
        if not self.as_json:
            print(text, file=self.stream)

    def error(self, text: str) -> None:
        print(f"Error: {text}", file=sys.stderr)


async def run_single_query(
    services: Services, user_id: int, query: str, output: CLIOutput
) -> None:
    reply = await services.orchestrator.handle_message(user_id, query)
    output.reply(query, reply)


async def run_interactive(services: Services, user_id: int, output: CLIOutput) -> None:
    """Run interactive REPL session."""
    output.info("AO wallet bot CLI - Interactive Mode")
    output.info("Type your requests, or use /quit to exit, /reset to clear context")
    output.info("-" * 50)

    while True:
        try:
            query = input("\n> ").strip()
        except (EOFError, KeyboardInterrupt):
            output.info("\nGoodbye!")
            break

        if not query:
            continue

        cmd = query.lower()
        if cmd in ("/quit", "/exit", "/q"):
            output.info("Goodbye!")
            break
        if cmd in ("/reset", "/clear"):
            services.orchestrator.reset(user_id)
            output.info("Context cleared.")
            continue
        if cmd in ("/help", "/h"):
            output.info("Commands: /quit, /reset, /help. Anything else goes to the bot.")
            continue

        await run_single_query(services, user_id, query, output)


async def main(argv: Optional[list[str]] = None) -> int:
    """CLI entrypoint."""
    parser = argparse.ArgumentParser(
        description="AO wallet bot CLI - talk to your custodial wallet without Telegram",
    )
    parser.add_argument("query", nargs="?", help="Request, e.g. \"what's my AO balance\"")
    parser.add_argument("--user-id", type=int, required=True, help="Telegram user id to act as")
    parser.add_argument("-i", "--interactive", action="store_true", help="Start interactive REPL mode")
    parser.add_argument("-o", "--output", choices=["text", "json"], default="text")
    parser.add_argument("--create-wallet", action="store_true", help="Create the user's wallet if missing")
    parser.add_argument("--no-ai", action="store_true", help="Disable the agent fallback")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logs")

    args = parser.parse_args(argv)
    output = CLIOutput(as_json=args.output == "json")

    if not args.interactive and not args.query:
        parser.print_help()
        return 1

    try:
        settings = load_settings()
    except Exception as exc:
        output.error(f"Failed to load settings: {exc}")
        output.info("Ensure .env exists with TELEGRAM_BOT_TOKEN, GEMINI_API_KEY and ENCRYPTION_KEY")
        return 1

    configure_logging("DEBUG" if args.verbose else settings.log_level, console=args.verbose)

    services = build_services(settings, with_agent=not args.no_ai)
    services.db.connect()
    await services.db.init_models()

    if args.create_wallet:
        record, created = await services.wallets.ensure_wallet(args.user_id, None, services.vault)
        output.info(f"{'Created' if created else 'Using'} wallet {record.owner_address}")

    try:
        await services.mcp_manager.start()
    except Exception as exc:
        output.error(f"Failed to start MCP servers: {exc}")
        await services.db.dispose()
        return 1

    try:
        if args.interactive:
            await run_interactive(services, args.user_id, output)
        else:
            await run_single_query(services, args.user_id, args.query, output)
    except KeyboardInterrupt:
        output.info("\nInterrupted")
    finally:
        await services.mcp_manager.shutdown()
        await services.db.dispose()
    return 0


def cli_main() -> None:
    """Synchronous wrapper for CLI entry."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli_main()
