"""Helpers for Telegram-safe Markdown formatting."""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

COMMAND_DESCRIPTIONS: Sequence[Tuple[str, str]] = (
    ("start", "Create your wallet or show it again"),
    ("wallet", "Show your wallet address"),
    ("balance [token]", "Show all balances, or one token"),
    ("send <amount|all> <token> <recipient>", "Transfer tokens"),
    ("swap <amount> <from> <to>", "Swap tokens through the DEX aggregator"),
    ("holders <token>", "Top holders of a token"),
    ("reset", "Forget the conversation so far"),
    ("help", "Show this message"),
)


def escape_markdown(text: str) -> str:
    """Escape Telegram MarkdownV2 control characters."""
    if text is None:
        text = ""
    if not isinstance(text, str):
        text = str(text)
    special_chars = r"_*[]()~`>#+-=|{}.!\\"
    return "".join(f"\\{char}" if char in special_chars else char for char in text)


def escape_code(text: str) -> str:
    """Escape text placed inside a MarkdownV2 inline code span."""
    return (text or "").replace("\\", "\\\\").replace("`", "\\`")


def format_wallet_card(address: str, created: bool = False, name: Optional[str] = None) -> str:
    """Render the /start and /wallet reply."""
    who = escape_markdown(name or "there")
    if created:
        lines = [
            f"🎉 Welcome to the AO wallet bot, {who}\\!",
            "",
            "✅ Your secure wallet has been created\\.",
        ]
    else:
        lines = [f"👋 Welcome back, {who}\\!", ""]
    lines.append(format_address(address))
    lines.append("")
    lines.append("Type /help to see what I can do\\.")
    return "\n".join(lines)


def format_address(address: str) -> str:
    return f"🔐 Address: `{escape_code(address)}`"


def format_help() -> str:
    lines = ["*AO wallet bot*", ""]
    for usage, description in COMMAND_DESCRIPTIONS:
        lines.append(f"/{escape_markdown(usage)} \\- {escape_markdown(description)}")
    lines.append("")
    lines.append(
        escape_markdown(
            'You can also just ask, e.g. "what\'s my AO balance" or '
            '"send 0.1 AO to <address>".'
        )
    )
    return "\n".join(lines)


__all__ = [
    "COMMAND_DESCRIPTIONS",
    "escape_code",
    "escape_markdown",
    "format_address",
    "format_help",
    "format_wallet_card",
]
