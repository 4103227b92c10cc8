"""Pattern-based intent matching for fast command routing.

Rules are evaluated in a fixed order and the first match wins; anything that
falls through is handed to the agent.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple

from ao_wallet_bot.commands import (
    CheckBalanceCommand,
    Command,
    ListBalancesCommand,
    SwapCommand,
    TransferCommand,
    WalletInfoCommand,
)
from ao_wallet_bot.utils.amounts import is_all_keyword


class Intent(Enum):
    """Recognized user intents."""

    ADDRESS = "address"
    TOKEN_BALANCE = "token_balance"
    AGGREGATE_BALANCE = "aggregate_balance"
    LIST_BALANCES = "list_balances"
    TRANSFER = "transfer"
    SWAP = "swap"
    UNKNOWN = "unknown"  # Fallback to LLM


@dataclass(frozen=True)
class NormalizedMessage:
    """Quote-unified text; ``lower`` for matching, ``original`` for payloads."""

    original: str
    lower: str


@dataclass(frozen=True)
class MatchedIntent:
    """Result of intent matching."""

    intent: Intent
    command: Optional[Command] = None


@dataclass(frozen=True)
class IntentRule:
    intent: Intent
    predicate: Callable[[NormalizedMessage], bool]
    extractor: Callable[[NormalizedMessage], Optional[Command]]


QUOTE_TRANSLATION = str.maketrans(
    {
        "‘": "'",
        "’": "'",
        "‚": "'",
        "′": "'",
        "“": '"',
        "”": '"',
        "„": '"',
        "″": '"',
    }
)

AMOUNT = r"(all|max|\d+(?:\.\d+)?|\.\d+)"
ADDRESS_CHARS = r"[A-Za-z0-9_-]"

MY_ADDRESS_PATTERN = re.compile(r"\bmy\s+(?:ao\s+|wallet\s+)?address(?:es)?\b")
TOKEN_BALANCE_PATTERN = re.compile(
    r"\bwhat(?:'s|s|\s+is)\s+my\s+([A-Za-z0-9_-]+)\s+balance\b", re.IGNORECASE
)
MY_WORD_PATTERN = re.compile(r"\bmy\b")
LIST_BALANCES_PATTERN = re.compile(
    r"\b(?:list\s+balances\s+for|holders\s+(?:for|of))\s+([A-Za-z0-9_-]+)",
    re.IGNORECASE,
)
TRANSFER_PATTERN = re.compile(
    rf"\b(?:send|transfer)\s+{AMOUNT}\s+(?:of\s+)?(?:my\s+)?(?!to\s)([A-Za-z0-9_-]+)"
    rf"\s+(?:to\s+)?({ADDRESS_CHARS}{{20,}})(?!{ADDRESS_CHARS})",
    re.IGNORECASE,
)
SWAP_PATTERN = re.compile(
    rf"\bswap\s+{AMOUNT}\s+([A-Za-z0-9_-]+)\s+(?:to|for|into)\s+([A-Za-z0-9_-]+)",
    re.IGNORECASE,
)

# "what's my wallet balance" is an aggregate query, not a token named WALLET.
GENERIC_BALANCE_WORDS = {"wallet", "total", "token", "tokens", "account", "current", "overall"}


def normalize_message(text: str) -> NormalizedMessage:
    """Unify quote characters and whitespace before matching."""
    unified = " ".join((text or "").translate(QUOTE_TRANSLATION).split())
    return NormalizedMessage(original=unified, lower=unified.lower())


def _is_address_query(msg: NormalizedMessage) -> bool:
    if "wallet" in msg.lower and "address" in msg.lower:
        return True
    return bool(MY_ADDRESS_PATTERN.search(msg.lower))


def _token_balance_alias(msg: NormalizedMessage) -> Optional[str]:
    match = TOKEN_BALANCE_PATTERN.search(msg.original)
    if not match:
        return None
    alias = match.group(1)
    if alias.lower() in GENERIC_BALANCE_WORDS:
        return None
    return alias


def _is_aggregate_balance(msg: NormalizedMessage) -> bool:
    if "my balance" in msg.lower:
        return True
    return "balance" in msg.lower and bool(MY_WORD_PATTERN.search(msg.lower))


def _extract_transfer(msg: NormalizedMessage) -> Optional[Command]:
    match = TRANSFER_PATTERN.search(msg.original)
    if not match:
        return None
    amount, token, recipient = match.groups()
    is_all = is_all_keyword(amount)
    return TransferCommand(
        amount=amount.lower() if is_all else amount,
        token=token,
        recipient=recipient,
        is_all=is_all,
    )


def _extract_swap(msg: NormalizedMessage) -> Optional[Command]:
    match = SWAP_PATTERN.search(msg.original)
    if not match:
        return None
    amount, from_token, to_token = match.groups()
    return SwapCommand(amount=amount, from_token=from_token, to_token=to_token)


def _extract_list_balances(msg: NormalizedMessage) -> Optional[Command]:
    match = LIST_BALANCES_PATTERN.search(msg.original)
    return ListBalancesCommand(token=match.group(1)) if match else None


INTENT_RULES: Tuple[IntentRule, ...] = (
    IntentRule(
        Intent.ADDRESS,
        _is_address_query,
        lambda msg: WalletInfoCommand(),
    ),
    IntentRule(
        Intent.TOKEN_BALANCE,
        lambda msg: _token_balance_alias(msg) is not None,
        lambda msg: CheckBalanceCommand(token=_token_balance_alias(msg)),
    ),
    IntentRule(
        Intent.AGGREGATE_BALANCE,
        _is_aggregate_balance,
        lambda msg: CheckBalanceCommand(token=None),
    ),
    IntentRule(
        Intent.LIST_BALANCES,
        lambda msg: bool(LIST_BALANCES_PATTERN.search(msg.original)),
        _extract_list_balances,
    ),
    IntentRule(
        Intent.TRANSFER,
        lambda msg: bool(TRANSFER_PATTERN.search(msg.original)),
        _extract_transfer,
    ),
    IntentRule(
        Intent.SWAP,
        lambda msg: bool(SWAP_PATTERN.search(msg.original)),
        _extract_swap,
    ),
)


def match_intent(
    message: str, rules: Tuple[IntentRule, ...] = INTENT_RULES
) -> MatchedIntent:
    """Match user message to an intent using the ordered rules.

    Args:
        message: The user's input message.
        rules: Ordered rules; the first one whose predicate holds wins.

    Returns:
        MatchedIntent with the command to execute, or ``Intent.UNKNOWN``.
    """
    normalized = normalize_message(message)
    if not normalized.original:
        return MatchedIntent(intent=Intent.UNKNOWN)

    for rule in rules:
        if not rule.predicate(normalized):
            continue
        command = rule.extractor(normalized)
        if command is not None:
            return MatchedIntent(intent=rule.intent, command=command)

    return MatchedIntent(intent=Intent.UNKNOWN)


__all__ = [
    "INTENT_RULES",
    "Intent",
    "IntentRule",
    "MatchedIntent",
    "NormalizedMessage",
    "match_intent",
    "normalize_message",
]
