"""Closed set of wallet commands shared by fast-path intents and the agent."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from ao_wallet_bot.utils.amounts import is_all_keyword


@dataclass(frozen=True)
class TransferCommand:
    """Send ``amount`` of ``token`` to ``recipient``; ``token=None`` means native."""

    amount: str
    token: Optional[str]
    recipient: str
    is_all: bool = False


@dataclass(frozen=True)
class SwapCommand:
    amount: str
    from_token: str
    to_token: str


@dataclass(frozen=True)
class CheckBalanceCommand:
    """``token=None`` requests the aggregate multi-token view."""

    token: Optional[str] = None


@dataclass(frozen=True)
class ListBalancesCommand:
    token: str


@dataclass(frozen=True)
class WalletInfoCommand:
    pass


Command = Union[
    TransferCommand,
    SwapCommand,
    CheckBalanceCommand,
    ListBalancesCommand,
    WalletInfoCommand,
]


def _arg(args: Mapping[str, Any], *names: str) -> Optional[str]:
    for name in names:
        value = args.get(name)
        if value is None:
            continue
        text = str(value).strip()
        if text:
            return text
    return None


def command_from_tool_call(name: str, args: Mapping[str, Any] | None) -> Optional[Command]:
    """Map an agent tool call onto a command, or None if it is outside the set."""
    args = args or {}

    if name == "transfer_tokens":
        recipient = _arg(args, "recipient", "recipientAddress")
        amount = _arg(args, "amount")
        if not recipient or not amount:
            return None
        return TransferCommand(
            amount=amount,
            token=_arg(args, "token", "tokenProcessId"),
            recipient=recipient,
            is_all=is_all_keyword(amount),
        )

    if name == "swap_tokens":
        amount = _arg(args, "amount")
        from_token = _arg(args, "from_token")
        to_token = _arg(args, "to_token")
        if not amount or not from_token or not to_token:
            return None
        return SwapCommand(amount=amount, from_token=from_token, to_token=to_token)

    if name == "check_balance":
        return CheckBalanceCommand(token=_arg(args, "token", "tokenProcessId"))

    if name == "list_balances":
        token = _arg(args, "token")
        if not token:
            return None
        return ListBalancesCommand(token=token)

    if name == "wallet_info":
        return WalletInfoCommand()

    return None


__all__ = [
    "Command",
    "TransferCommand",
    "SwapCommand",
    "CheckBalanceCommand",
    "ListBalancesCommand",
    "WalletInfoCommand",
    "command_from_tool_call",
]
