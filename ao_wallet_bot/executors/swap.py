"""Token swaps through the DEX aggregator."""

from __future__ import annotations

from ao_wallet_bot.ao_network import DexAggregatorClient
from ao_wallet_bot.commands import SwapCommand
from ao_wallet_bot.errors import InvalidAmount, NoRouteFound, UnsupportedToken, WalletBotError
from ao_wallet_bot.executors.base import (
    STATUS_FAILED,
    STATUS_SUBMITTED,
    ExecutionResult,
    WalletAccess,
)
from ao_wallet_bot.tokens import TokenDescriptor, TokenRegistry
from ao_wallet_bot.utils.amounts import (
    is_all_keyword,
    is_positive,
    to_base_units,
    to_display_units,
)
from ao_wallet_bot.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_SLIPPAGE_BPS = 100


class SwapExecutor:
    """Quote, apply slippage, and submit a swap. Does not wait for confirmation."""

    def __init__(
        self,
        registry: TokenRegistry,
        wallets: WalletAccess,
        dex: DexAggregatorClient,
        slippage_bps: int = DEFAULT_SLIPPAGE_BPS,
    ) -> None:
        self.registry = registry
        self.wallets = wallets
        self.dex = dex
        self.slippage_bps = slippage_bps

    def _resolve(self, alias_or_id: str) -> TokenDescriptor:
        token = self.registry.resolve(alias_or_id) if alias_or_id else None
        if token is None:
            raise UnsupportedToken(alias_or_id or "")
        return token

    async def execute(self, user_id: int, command: SwapCommand) -> ExecutionResult:
        try:
            return await self._execute(user_id, command)
        except WalletBotError as exc:
            logger.info(
                "swap_rejected",
                user_id=user_id,
                from_token=command.from_token,
                to_token=command.to_token,
                reason=type(exc).__name__,
            )
            return ExecutionResult(text=exc.user_message, status=STATUS_FAILED)

    async def _execute(self, user_id: int, command: SwapCommand) -> ExecutionResult:
        from_token = self._resolve(command.from_token)
        to_token = self._resolve(command.to_token)
        if is_all_keyword(command.amount):
            raise InvalidAmount(command.amount, "swaps need an explicit amount")
        if from_token.process_id == to_token.process_id:
            raise NoRouteFound(from_token.alias, to_token.alias)

        record = await self.wallets.record(user_id)
        signer = self.wallets.signer(record, user_id)
        amount_base = to_base_units(command.amount, from_token.decimals)

        quote = await self.dex.quote(
            from_token.process_id,
            to_token.process_id,
            amount_base,
            record.owner_address,
        )
        if not quote.best_route or not is_positive(quote.estimated_output):
            raise NoRouteFound(from_token.alias, to_token.alias)

        min_output = self.dex.min_amount(quote.estimated_output, self.slippage_bps)
        message_id = await self.dex.execute(
            quote.best_route,
            from_token.process_id,
            to_token.process_id,
            quote.input_amount,
            min_output,
            record.owner_address,
            signer,
        )
        logger.info(
            "swap_executed",
            user_id=user_id,
            from_token=from_token.alias,
            to_token=to_token.alias,
            amount=amount_base,
            min_output=min_output,
            message_id=message_id,
        )

        return ExecutionResult(
            text=(
                "🔄 Swap submitted!\n"
                f"- Sell: {to_display_units(quote.input_amount, from_token.decimals)} {from_token.alias}\n"
                f"- Expected: {to_display_units(quote.estimated_output, to_token.decimals)} {to_token.alias}\n"
                f"- Minimum received: {to_display_units(min_output, to_token.decimals)} {to_token.alias}"
                f" ({self.slippage_bps / 100:g}% slippage)\n"
                f"- Transaction ID: {message_id}"
            ),
            message_id=message_id,
            status=STATUS_SUBMITTED,
        )


__all__ = ["SwapExecutor"]
