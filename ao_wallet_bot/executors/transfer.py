"""Token transfers from a user's custodial wallet."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

from ao_wallet_bot.ao_network import AONetworkClient, MessageResult
from ao_wallet_bot.commands import TransferCommand
from ao_wallet_bot.errors import (
    InsufficientBalance,
    InvalidAmount,
    UnsupportedToken,
    UpstreamTimeout,
    WalletBotError,
)
from ao_wallet_bot.executors.balances import read_balance
from ao_wallet_bot.executors.base import (
    STATUS_CONFIRMED,
    STATUS_FAILED,
    STATUS_PROCESSING,
    ExecutionResult,
    WalletAccess,
)
from ao_wallet_bot.tokens import TokenRegistry
from ao_wallet_bot.utils.amounts import (
    is_all_keyword,
    is_base_units,
    is_positive,
    to_base_units,
    to_display_units,
)
from ao_wallet_bot.utils.logging import get_logger

logger = get_logger(__name__)


class TransferExecutor:
    """Submit a Transfer message and make one optimistic confirmation check."""

    def __init__(
        self,
        registry: TokenRegistry,
        wallets: WalletAccess,
        network: AONetworkClient,
        confirmation_delay: float = 2.0,
        confirmation_timeout: float = 10.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.registry = registry
        self.wallets = wallets
        self.network = network
        self.confirmation_delay = confirmation_delay
        self.confirmation_timeout = confirmation_timeout
        self._sleep = sleep

    async def execute(self, user_id: int, command: TransferCommand) -> ExecutionResult:
        """Run the transfer; domain failures come back as text, not exceptions.

        Submission failures propagate. There is no deduplication, so callers
        must not retry blindly.
        """
        try:
            return await self._execute(user_id, command)
        except WalletBotError as exc:
            logger.info(
                "transfer_rejected",
                user_id=user_id,
                token=command.token,
                reason=type(exc).__name__,
            )
            return ExecutionResult(text=exc.user_message, status=STATUS_FAILED)

    async def _execute(self, user_id: int, command: TransferCommand) -> ExecutionResult:
        token = self.registry.resolve(command.token)
        if token is None:
            raise UnsupportedToken(command.token or "")

        record = await self.wallets.record(user_id)
        signer = self.wallets.signer(record, user_id)

        if command.is_all or is_all_keyword(command.amount):
            # The balance can change before submit; nothing fences this.
            balance, _ = await read_balance(self.network, token, record.owner_address)
            if not is_positive(balance):
                raise InsufficientBalance(token.alias)
            if not is_base_units(balance):
                raise InvalidAmount(balance, "the network returned a non-integer balance")
            quantity = balance
        else:
            quantity = to_base_units(command.amount, token.decimals)

        display = f"{to_display_units(quantity, token.decimals)} {token.alias}"
        message_id = await self.network.submit(
            token.process_id,
            {
                "Action": "Transfer",
                "Recipient": command.recipient,
                "Quantity": quantity,
            },
            signer,
        )
        logger.info(
            "transfer_submitted",
            user_id=user_id,
            process_id=token.process_id,
            recipient=command.recipient,
            quantity=quantity,
            message_id=message_id,
        )

        try:
            result = await self._confirm(message_id, token.process_id)
        except UpstreamTimeout as exc:
            logger.warning(
                "transfer_confirmation_pending",
                user_id=user_id,
                message_id=message_id,
                error=str(exc.__cause__ or exc),
            )
            return ExecutionResult(
                text=(
                    "🔄 Transfer initiated successfully!\n"
                    f"- Amount: {display}\n"
                    f"- Recipient: {command.recipient}\n"
                    f"- Transaction ID: {message_id}\n"
                    "- Status: Processing (check back in a few moments)"
                ),
                message_id=message_id,
                status=STATUS_PROCESSING,
            )

        if result.error:
            logger.warning(
                "transfer_failed", user_id=user_id, message_id=message_id, error=result.error
            )
            return ExecutionResult(
                text=f"❌ Transfer failed: {result.error}\n- Transaction ID: {message_id}",
                message_id=message_id,
                status=STATUS_FAILED,
            )

        return ExecutionResult(
            text=(
                "✅ Transfer successful!\n"
                f"- Amount: {display}\n"
                f"- Recipient: {command.recipient}\n"
                f"- Transaction ID: {message_id}"
            ),
            message_id=message_id,
            status=STATUS_CONFIRMED,
        )

    async def _confirm(self, message_id: str, process_id: str) -> MessageResult:
        """Single delayed read of the message result."""
        await self._sleep(self.confirmation_delay)
        try:
            return await asyncio.wait_for(
                self.network.fetch_result(message_id, process_id),
                timeout=self.confirmation_timeout,
            )
        except Exception as exc:  # timeout or transport failure
            raise UpstreamTimeout() from exc


__all__ = ["TransferExecutor"]
