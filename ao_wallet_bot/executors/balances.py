"""Balance reads: one token, every tracked token, or a token's top holders."""

from __future__ import annotations

import asyncio
import json
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ao_wallet_bot.ao_network import AONetworkClient, NetworkMessage
from ao_wallet_bot.errors import InvalidAmount, UnsupportedToken
from ao_wallet_bot.executors.base import WalletAccess
from ao_wallet_bot.tokens import TokenDescriptor, TokenRegistry, shorten_id
from ao_wallet_bot.utils.amounts import is_base_units, is_positive, parse_decimal, to_display_units
from ao_wallet_bot.utils.logging import get_logger

logger = get_logger(__name__)

NO_BALANCES_MESSAGE = "No balances found."
DEFAULT_HOLDERS_TOP_N = 10
DEFAULT_HOLDERS_QUERY_LIMIT = 1000


def _balance_from_message(message: Optional[NetworkMessage]) -> str:
    if message is None:
        return "0"
    for value in (message.data, message.tags.get("Balance")):
        if value is None:
            continue
        text = str(value).strip()
        if is_base_units(text):
            return text
    # Non-integer payloads are passed through for the caller to reject.
    for value in (message.data, message.tags.get("Balance")):
        if value is not None and str(value).strip():
            return str(value).strip()
    return "0"


async def read_balance(
    network: AONetworkClient, token: TokenDescriptor, owner: str
) -> Tuple[str, Optional[str]]:
    """Dry-run ``Balance`` for ``owner`` and return (raw balance, ticker)."""
    result = await network.read_only_query(
        token.process_id,
        {"Action": "Balance", "Target": owner},
        owner=owner,
    )
    message = result.first
    ticker = message.tags.get("Ticker") if message else None
    return _balance_from_message(message), ticker


def _parse_holder_map(data: Any) -> Dict[str, str]:
    if isinstance(data, str):
        try:
            data = json.loads(data) if data.strip() else {}
        except json.JSONDecodeError:
            logger.warning("holders_payload_not_json", preview=data[:80])
            return {}
    if not isinstance(data, dict):
        return {}
    return {str(address): str(balance) for address, balance in data.items()}


class BalanceAggregator:
    """Read-only balance views over the AO network."""

    def __init__(
        self,
        registry: TokenRegistry,
        wallets: WalletAccess,
        network: AONetworkClient,
        tracked: Sequence[str] = (),
        holders_top_n: int = DEFAULT_HOLDERS_TOP_N,
        holders_query_limit: int = DEFAULT_HOLDERS_QUERY_LIMIT,
    ) -> None:
        self.registry = registry
        self.wallets = wallets
        self.network = network
        self.tracked = tuple(tracked)
        self.holders_top_n = holders_top_n
        self.holders_query_limit = holders_query_limit

    def _resolve(self, alias_or_id: Optional[str]) -> TokenDescriptor:
        token = self.registry.resolve(alias_or_id)
        if token is None:
            raise UnsupportedToken(alias_or_id or "")
        return token

    async def token_balance(self, user_id: int, alias_or_id: Optional[str]) -> str:
        """Balance of one token, shown even when zero."""
        token = self._resolve(alias_or_id)
        record = await self.wallets.record(user_id)
        raw, ticker = await read_balance(self.network, token, record.owner_address)
        label = token.alias if token.known else (ticker or token.alias)
        return f"💰 {label} balance: {to_display_units(raw, token.decimals)}"

    async def my_balances(self, user_id: int) -> str:
        """Non-zero balances across the tracked token set."""
        record = await self.wallets.record(user_id)
        tokens = self.registry.tracked(self.tracked)
        results = await asyncio.gather(
            *(read_balance(self.network, token, record.owner_address) for token in tokens),
            return_exceptions=True,
        )

        lines: List[str] = []
        for token, outcome in zip(tokens, results):
            if isinstance(outcome, BaseException):
                logger.warning(
                    "balance_read_failed",
                    user_id=user_id,
                    token=token.alias,
                    process_id=token.process_id,
                    error=str(outcome),
                )
                continue
            raw, ticker = outcome
            if not is_positive(raw):
                continue
            label = token.alias if token.known else (ticker or token.alias)
            lines.append(f"• {label}: {to_display_units(raw, token.decimals)}")

        if not lines:
            return NO_BALANCES_MESSAGE
        return "💰 Your balances:\n" + "\n".join(lines)

    async def holders(self, user_id: int, alias_or_id: str) -> str:
        """Top holders of a token, with the caller's own balance appended."""
        token = self._resolve(alias_or_id)
        record = await self.wallets.record(user_id)
        owner = record.owner_address

        result = await self.network.read_only_query(
            token.process_id,
            {"Action": "Balances", "Limit": str(self.holders_query_limit)},
            owner=owner,
        )
        holders = _parse_holder_map(result.first.data if result.first else None)

        ranked: List[Tuple[str, Decimal, str]] = []
        for address, raw in holders.items():
            try:
                ranked.append((address, parse_decimal(raw), raw))
            except InvalidAmount:
                logger.debug("holder_balance_skipped", address=address, raw=raw)
        ranked.sort(key=lambda entry: entry[1], reverse=True)

        if not ranked:
            return f"No holders found for {token.alias}."

        lines = [f"🏆 Top {token.alias} holders:"]
        for position, (address, _, raw) in enumerate(ranked[: self.holders_top_n], start=1):
            marker = " (you)" if address == owner else ""
            lines.append(
                f"{position}. {shorten_id(address)}: "
                f"{to_display_units(raw, token.decimals)}{marker}"
            )

        own_raw = holders.get(owner, "0")
        if not is_base_units(own_raw):
            own_raw = "0"
        lines.append("")
        lines.append(f"Your balance: {to_display_units(own_raw, token.decimals)} {token.alias}")
        return "\n".join(lines)


__all__ = ["BalanceAggregator", "NO_BALANCES_MESSAGE", "read_balance"]
