import pytest

from ao_wallet_bot.executors.base import WalletAccess
from ao_wallet_bot.store.repository import WalletRecord
from ao_wallet_bot.tokens import TokenRegistry
from tests.fakes import OWNER, FakeDirectory, FakeNetwork, FakeVault, make_registry


@pytest.fixture
def registry() -> TokenRegistry:
    return make_registry()


@pytest.fixture
def network() -> FakeNetwork:
    return FakeNetwork()


@pytest.fixture
def wallets() -> WalletAccess:
    """User 1 has a wallet, user 2 exists without one, anyone else is unknown."""
    directory = FakeDirectory({1: WalletRecord(owner_address=OWNER, stored_credential="iv:ct")}, users={2})
    return WalletAccess(directory, FakeVault())
