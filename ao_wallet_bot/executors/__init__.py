"""Wallet operation executors."""

from ao_wallet_bot.executors.balances import BalanceAggregator
from ao_wallet_bot.executors.base import ExecutionResult, WalletAccess
from ao_wallet_bot.executors.swap import SwapExecutor
from ao_wallet_bot.executors.transfer import TransferExecutor

__all__ = [
    "BalanceAggregator",
    "ExecutionResult",
    "SwapExecutor",
    "TransferExecutor",
    "WalletAccess",
]
