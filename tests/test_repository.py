from datetime import timedelta

import pytest

from ao_wallet_bot.store.db import Database, User
from ao_wallet_bot.store.repository import Repository, WalletDirectory
from ao_wallet_bot.utils.key_vault import KeyVault

KEY = "0123456789abcdef0123456789abcdef"
FAKE_JWK = {"kty": "RSA", "n": "bW9kdWx1cw", "e": "AQAB", "d": "ZA"}


async def make_db(tmp_path) -> Database:
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'wallets.db'}")
    db.connect()
    await db.init_models()
    return db


@pytest.mark.asyncio
async def test_create_and_get_user(tmp_path) -> None:
    db = await make_db(tmp_path)

    async with db.session() as session:
        repo = Repository(session)
        assert await repo.get_user(12345) is None

        created = await repo.create_user(12345, "alice")
        fetched = await repo.get_user(12345)

        assert fetched.id == created.id
        assert fetched.wallet_address is None
        assert created.created_at.tzinfo is not None


@pytest.mark.asyncio
async def test_directory_lookup_requires_wallet(tmp_path) -> None:
    db = await make_db(tmp_path)
    directory = WalletDirectory(db)

    async with db.session() as session:
        await Repository(session).create_user(1, "bob")

    assert await directory.find_by_external_id(1) is None
    assert await directory.user_exists(1)
    assert not await directory.user_exists(2)


@pytest.mark.asyncio
async def test_ensure_wallet_creates_once(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(
        "ao_wallet_bot.store.repository.generate_keyfile",
        lambda: (dict(FAKE_JWK), "addr-" + "x" * 38),
    )
    db = await make_db(tmp_path)
    directory = WalletDirectory(db)
    vault = KeyVault(KEY)

    record, created = await directory.ensure_wallet(77, "carol", vault)
    again, created_again = await directory.ensure_wallet(77, "carol", vault)

    assert created is True
    assert created_again is False
    assert again == record
    assert record.owner_address == "addr-" + "x" * 38
    assert vault.decrypt_keyfile(record.stored_credential) == FAKE_JWK
    assert await directory.find_by_external_id(77) == record


@pytest.mark.asyncio
async def test_ensure_wallet_fills_existing_user(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(
        "ao_wallet_bot.store.repository.generate_keyfile", lambda: (dict(FAKE_JWK), "a" * 43)
    )
    db = await make_db(tmp_path)
    async with db.session() as session:
        await Repository(session).create_user(5, None)

    record, created = await WalletDirectory(db).ensure_wallet(5, "dave", KeyVault(KEY))

    assert created is True
    assert record.owner_address == "a" * 43


def test_created_at_defaults_to_aware_utc() -> None:
    user = User(chat_id=99)

    assert user.created_at.utcoffset() == timedelta(0)
