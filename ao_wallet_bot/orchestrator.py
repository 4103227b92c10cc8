"""Routes user messages to fast-path commands or the agent."""

from __future__ import annotations

from typing import Awaitable, Callable, Dict, Optional, Protocol, Sequence, Type

from ao_wallet_bot.commands import (
    CheckBalanceCommand,
    Command,
    ListBalancesCommand,
    SwapCommand,
    TransferCommand,
    WalletInfoCommand,
)
from ao_wallet_bot.errors import GENERIC_ERROR_MESSAGE, WalletBotError
from ao_wallet_bot.executors import (
    BalanceAggregator,
    SwapExecutor,
    TransferExecutor,
    WalletAccess,
)
from ao_wallet_bot.intent_matcher import Intent, match_intent
from ao_wallet_bot.store.memory import ConversationMemory, ConversationTurn
from ao_wallet_bot.utils.logging import bind_context, clear_context, get_logger

logger = get_logger(__name__)


class Agent(Protocol):
    async def run(
        self,
        user_id: int,
        message: str,
        history: Sequence[ConversationTurn],
        execute: Callable[[int, Command], Awaitable[str]],
    ) -> str:
        ...


class Orchestrator:
    """One entry point per inbound message; the reply text is the only output."""

    def __init__(
        self,
        wallets: WalletAccess,
        transfers: TransferExecutor,
        swaps: SwapExecutor,
        balances: BalanceAggregator,
        memory: ConversationMemory,
        agent: Optional[Agent] = None,
        context_turns: int = 10,
    ) -> None:
        self.wallets = wallets
        self.transfers = transfers
        self.swaps = swaps
        self.balances = balances
        self.memory = memory
        self.agent = agent
        self.context_turns = context_turns
        self._handlers: Dict[Type, Callable[[int, Command], Awaitable[str]]] = {
            TransferCommand: self._transfer,
            SwapCommand: self._swap,
            CheckBalanceCommand: self._check_balance,
            ListBalancesCommand: self._list_balances,
            WalletInfoCommand: self._wallet_info,
        }

    async def handle_message(self, user_id: int, text: str) -> str:
        bind_context(user_id=user_id)
        try:
            history = self.memory.context(user_id, self.context_turns)
            matched = match_intent(text)
            if matched.command is not None:
                logger.info("intent_matched", intent=matched.intent.value)
                reply = await self.execute(user_id, matched.command)
            else:
                reply = await self._fallback(user_id, text, history)

            self.memory.append(user_id, ConversationTurn(role="user", content=text))
            self.memory.append(user_id, ConversationTurn(role="assistant", content=reply))
            return reply
        finally:
            clear_context()

    async def _fallback(
        self, user_id: int, text: str, history: Sequence[ConversationTurn]
    ) -> str:
        if self.agent is None:
            return (
                "I didn't understand that. Try /help, or something like "
                '"what\'s my AO balance".'
            )
        logger.info("intent_fallback", intent=Intent.UNKNOWN.value)
        try:
            return await self.agent.run(user_id, text, history, self.execute)
        except Exception:
            logger.exception("agent_failed", user_id=user_id, operation="agent")
            return GENERIC_ERROR_MESSAGE

    async def execute(self, user_id: int, command: Command) -> str:
        """Run one command and return the user-facing text."""
        handler = self._handlers.get(type(command))
        if handler is None:
            logger.warning("unsupported_command", user_id=user_id, command=type(command).__name__)
            return GENERIC_ERROR_MESSAGE

        operation = type(command).__name__
        try:
            return await handler(user_id, command)
        except WalletBotError as exc:
            logger.info(
                "command_rejected",
                user_id=user_id,
                operation=operation,
                reason=type(exc).__name__,
            )
            return exc.user_message
        except Exception:
            logger.exception("command_failed", user_id=user_id, operation=operation)
            return GENERIC_ERROR_MESSAGE

    def reset(self, user_id: int) -> None:
        self.memory.clear(user_id)

    async def _transfer(self, user_id: int, command: TransferCommand) -> str:
        return (await self.transfers.execute(user_id, command)).text

    async def _swap(self, user_id: int, command: SwapCommand) -> str:
        return (await self.swaps.execute(user_id, command)).text

    async def _check_balance(self, user_id: int, command: CheckBalanceCommand) -> str:
        if command.token is None:
            return await self.balances.my_balances(user_id)
        return await self.balances.token_balance(user_id, command.token)

    async def _list_balances(self, user_id: int, command: ListBalancesCommand) -> str:
        return await self.balances.holders(user_id, command.token)

    async def _wallet_info(self, user_id: int, command: WalletInfoCommand) -> str:
        record = await self.wallets.record(user_id)
        return f"🔐 Your wallet address:\n{record.owner_address}"


__all__ = ["Orchestrator"]
