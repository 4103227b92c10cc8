"""Shared wallet access and result types for executors."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

from ao_wallet_bot.errors import KeyVaultError, UserNotFound, WalletMissing
from ao_wallet_bot.store.repository import WalletRecord
from ao_wallet_bot.utils.key_vault import KeyVault
from ao_wallet_bot.utils.logging import get_logger

logger = get_logger(__name__)

STATUS_CONFIRMED = "confirmed"
STATUS_PROCESSING = "processing"
STATUS_FAILED = "failed"
STATUS_SUBMITTED = "submitted"


class WalletLookup(Protocol):
    async def find_by_external_id(self, chat_id: int) -> Optional[WalletRecord]:
        ...

    async def user_exists(self, chat_id: int) -> bool:
        ...


@dataclass
class ExecutionResult:
    """Outcome of a state-changing operation."""

    text: str
    message_id: Optional[str] = None
    status: str = STATUS_SUBMITTED


class WalletAccess:
    """Resolve a user's wallet record and signing key."""

    def __init__(self, directory: WalletLookup, vault: KeyVault) -> None:
        self.directory = directory
        self.vault = vault

    async def record(self, user_id: int) -> WalletRecord:
        record = await self.directory.find_by_external_id(user_id)
        if record is not None:
            return record
        if not await self.directory.user_exists(user_id):
            raise UserNotFound()
        raise WalletMissing()

    def signer(self, record: WalletRecord, user_id: int) -> Dict[str, Any]:
        try:
            return self.vault.decrypt_keyfile(record.stored_credential)
        except KeyVaultError as exc:
            logger.error("wallet_decrypt_failed", user_id=user_id, error=str(exc))
            raise WalletMissing() from exc


__all__ = [
    "ExecutionResult",
    "STATUS_CONFIRMED",
    "STATUS_FAILED",
    "STATUS_PROCESSING",
    "STATUS_SUBMITTED",
    "WalletAccess",
    "WalletLookup",
]
