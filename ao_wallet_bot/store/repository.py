"""User and wallet persistence."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional, Tuple

from sqlalchemy import select

from ao_wallet_bot.utils.key_vault import KeyVault, generate_keyfile
from ao_wallet_bot.utils.logging import get_logger

from .db import Database, User

logger = get_logger(__name__)


class Repository:
    """CRUD utilities wrapping SQLModel sessions."""

    def __init__(self, session) -> None:
        self.session = session

    async def get_user(self, chat_id: int) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.chat_id == chat_id))
        return result.scalar_one_or_none()

    async def create_user(
        self,
        chat_id: int,
        username: Optional[str] = None,
        wallet_address: Optional[str] = None,
        encrypted_private_key: Optional[str] = None,
    ) -> User:
        user = User(
            chat_id=chat_id,
            username=username,
            wallet_address=wallet_address,
            encrypted_private_key=encrypted_private_key,
        )
        self.session.add(user)
        await self.session.commit()
        await self.session.refresh(user)
        return user

    async def set_wallet(
        self, user: User, wallet_address: str, encrypted_private_key: str
    ) -> User:
        user.wallet_address = wallet_address
        user.encrypted_private_key = encrypted_private_key
        self.session.add(user)
        await self.session.commit()
        await self.session.refresh(user)
        return user

    async def update_username(self, user: User, username: Optional[str]) -> User:
        if username and user.username != username:
            user.username = username
            self.session.add(user)
            await self.session.commit()
        return user


@dataclass(frozen=True)
class WalletRecord:
    owner_address: str
    stored_credential: str


def _record(user: Optional[User]) -> Optional[WalletRecord]:
    if not user or not user.wallet_address or not user.encrypted_private_key:
        return None
    return WalletRecord(
        owner_address=user.wallet_address,
        stored_credential=user.encrypted_private_key,
    )


class WalletDirectory:
    """Lookup of custodial wallets by Telegram chat id."""

    def __init__(self, db: Database) -> None:
        self.db = db

    async def user_exists(self, chat_id: int) -> bool:
        async with self.db.session() as session:
            return await Repository(session).get_user(chat_id) is not None

    async def find_by_external_id(self, chat_id: int) -> Optional[WalletRecord]:
        async with self.db.session() as session:
            return _record(await Repository(session).get_user(chat_id))

    async def ensure_wallet(
        self, chat_id: int, username: Optional[str], vault: KeyVault
    ) -> Tuple[WalletRecord, bool]:
        """Return the user's wallet, generating one on first use.

        The boolean is True when a new wallet was created.
        """
        async with self.db.session() as session:
            repo = Repository(session)
            user = await repo.get_user(chat_id)
            record = _record(user)
            if record:
                await repo.update_username(user, username)
                return record, False

            jwk, address = await asyncio.to_thread(generate_keyfile)
            encrypted = vault.encrypt_keyfile(jwk)
            if user is None:
                user = await repo.create_user(chat_id, username, address, encrypted)
            else:
                user = await repo.set_wallet(user, address, encrypted)
            logger.info("wallet_created", chat_id=chat_id, wallet_address=address)
            return _record(user), True


__all__ = ["Repository", "WalletDirectory", "WalletRecord"]
