"""Wiring shared by the Telegram bot and the CLI."""

from __future__ import annotations

from dataclasses import dataclass

from ao_wallet_bot.agent_dispatcher import AgentDispatcher
from ao_wallet_bot.ao_network import AONetworkClient, DexAggregatorClient
from ao_wallet_bot.config import Settings
from ao_wallet_bot.executors import (
    BalanceAggregator,
    SwapExecutor,
    TransferExecutor,
    WalletAccess,
)
from ao_wallet_bot.mcp_client import MCPManager
from ao_wallet_bot.orchestrator import Orchestrator
from ao_wallet_bot.store.db import Database
from ao_wallet_bot.store.memory import ConversationMemory
from ao_wallet_bot.store.repository import WalletDirectory
from ao_wallet_bot.tokens import TokenRegistry, build_registry
from ao_wallet_bot.utils.key_vault import KeyVault


@dataclass
class Services:
    settings: Settings
    db: Database
    mcp_manager: MCPManager
    registry: TokenRegistry
    vault: KeyVault
    wallets: WalletDirectory
    memory: ConversationMemory
    orchestrator: Orchestrator


def build_services(settings: Settings, with_agent: bool = True) -> Services:
    """Construct every collaborator; nothing is started or connected yet."""
    db = Database(settings.database_url)
    mcp_manager = MCPManager(ao_cmd=settings.mcp_ao_cmd, dex_cmd=settings.mcp_dex_cmd)
    registry = build_registry(settings)
    vault = KeyVault(settings.encryption_key)
    wallets = WalletDirectory(db)
    access = WalletAccess(wallets, vault)

    network = AONetworkClient(mcp_manager.ao)
    if mcp_manager.dex is None:
        raise RuntimeError("MCP_DEX_CMD must be set to enable swaps")
    dex = DexAggregatorClient(mcp_manager.dex)

    ttl = settings.conversation_ttl_minutes
    memory = ConversationMemory(
        max_turns=settings.conversation_max_turns,
        ttl_seconds=ttl * 60 if ttl else None,
    )

    agent = None
    if with_agent:
        agent = AgentDispatcher(
            api_key=settings.gemini_api_key,
            model_name=settings.gemini_model,
            max_iterations=settings.agent_max_iterations,
            timeout_seconds=settings.agent_timeout_seconds,
        )

    orchestrator = Orchestrator(
        wallets=access,
        transfers=TransferExecutor(
            registry,
            access,
            network,
            confirmation_delay=settings.confirmation_delay_seconds,
            confirmation_timeout=settings.confirmation_timeout_seconds,
        ),
        swaps=SwapExecutor(registry, access, dex, slippage_bps=settings.swap_slippage_bps),
        balances=BalanceAggregator(
            registry,
            access,
            network,
            tracked=settings.ao_tracked_tokens,
            holders_top_n=settings.holders_top_n,
            holders_query_limit=settings.holders_query_limit,
        ),
        memory=memory,
        agent=agent,
        context_turns=settings.conversation_context_turns,
    )

    return Services(
        settings=settings,
        db=db,
        mcp_manager=mcp_manager,
        registry=registry,
        vault=vault,
        wallets=wallets,
        memory=memory,
        orchestrator=orchestrator,
    )


__all__ = ["Services", "build_services"]
