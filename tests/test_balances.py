import asyncio
import json

import pytest

from ao_wallet_bot.errors import UnsupportedToken, WalletMissing
from ao_wallet_bot.executors.balances import NO_BALANCES_MESSAGE, BalanceAggregator
from ao_wallet_bot.tokens import DEFAULT_TOKENS
from tests.fakes import OWNER, FakeNetwork

AO = DEFAULT_TOKENS["AO"]["processId"]
ARIO = DEFAULT_TOKENS["ARIO"]["processId"]
WAR = DEFAULT_TOKENS["WAR"]["processId"]
USDA = DEFAULT_TOKENS["USDA"]["processId"]


@pytest.mark.asyncio
async def test_zero_balances_everywhere_is_literal_message(registry, wallets, network) -> None:
    network.balances.update({AO: "0", ARIO: "000", WAR: "0"})
    aggregator = BalanceAggregator(registry, wallets, network)

    assert await aggregator.my_balances(1) == "No balances found."
    assert NO_BALANCES_MESSAGE == "No balances found."


@pytest.mark.asyncio
async def test_my_balances_filters_zero_and_keeps_order(registry, wallets, network) -> None:
    network.balances.update({AO: "1500000000000", ARIO: "0", USDA: "250000000000"})
    aggregator = BalanceAggregator(registry, wallets, network)

    text = await aggregator.my_balances(1)

    lines = text.splitlines()[1:]
    assert lines == ["• AO: 1.5", "• USDA: 0.25"]
    assert all(q["owner"] == OWNER for q in network.queries)
    assert {q["process_id"] for q in network.queries} == {AO, ARIO, WAR, USDA}


@pytest.mark.asyncio
async def test_my_balances_omits_failed_reads(registry, wallets, network) -> None:
    network.balances.update({AO: "1000000000000", ARIO: "5000000"})
    network.failing.add(ARIO)
    aggregator = BalanceAggregator(registry, wallets, network)

    text = await aggregator.my_balances(1)

    assert "• AO: 1" in text
    assert "ARIO" not in text


@pytest.mark.asyncio
async def test_my_balances_respects_tracked_tokens(registry, wallets, network) -> None:
    network.balances.update({AO: "1000000000000", ARIO: "5000000"})
    aggregator = BalanceAggregator(registry, wallets, network, tracked=["ARIO"])

    text = await aggregator.my_balances(1)

    assert text.endswith("• ARIO: 5")
    assert [q["process_id"] for q in network.queries] == [ARIO]


@pytest.mark.asyncio
async def test_token_balance_shows_zero(registry, wallets, network) -> None:
    aggregator = BalanceAggregator(registry, wallets, network)

    assert await aggregator.token_balance(1, "war") == "💰 WAR balance: 0"


@pytest.mark.asyncio
async def test_token_balance_uses_ticker_for_raw_process_id(registry, wallets, network) -> None:
    raw_id = "x" * 43
    network.balances[raw_id] = "42"
    network.tickers[raw_id] = "FOO"
    aggregator = BalanceAggregator(registry, wallets, network)

    assert await aggregator.token_balance(1, raw_id) == "💰 FOO balance: 42"


@pytest.mark.asyncio
async def test_token_balance_errors(registry, wallets, network) -> None:
    aggregator = BalanceAggregator(registry, wallets, network)

    with pytest.raises(UnsupportedToken):
        await aggregator.token_balance(1, "DOGE")
    with pytest.raises(WalletMissing):
        await aggregator.token_balance(2, "AO")
    assert network.queries == []


@pytest.mark.asyncio
async def test_holders_sorted_top_n_and_marks_user(registry, wallets, network) -> None:
    holders = {f"holder-{i:02d}-{'z' * 30}": str(i * 1_000_000) for i in range(1, 16)}
    holders[OWNER] = "14500000"
    network.holder_maps[ARIO] = json.dumps(holders)
    aggregator = BalanceAggregator(registry, wallets, network, holders_top_n=3, holders_query_limit=50)

    text = await aggregator.holders(1, "ARIO")

    lines = text.splitlines()
    assert lines[0] == "🏆 Top ARIO holders:"
    assert lines[1].endswith(": 15")
    assert lines[2].endswith(": 14.5 (you)")
    assert lines[3].endswith(": 14")
    assert len([line for line in lines if line[:2].rstrip(".").isdigit()]) == 3
    assert lines[-1] == "Your balance: 14.5 ARIO"
    assert network.queries[0]["tags"] == {"Action": "Balances", "Limit": "50"}


@pytest.mark.asyncio
async def test_holders_appends_user_outside_top(registry, wallets, network) -> None:
    network.holder_maps[AO] = {"a" * 43: "3000000000000", "b" * 43: "2000000000000"}
    aggregator = BalanceAggregator(registry, wallets, network, holders_top_n=1)

    text = await aggregator.holders(1, "AO")

    assert "(you)" not in text
    assert text.splitlines()[-1] == "Your balance: 0 AO"


@pytest.mark.asyncio
async def test_holders_empty_map(registry, wallets, network) -> None:
    network.holder_maps[AO] = "{}"
    aggregator = BalanceAggregator(registry, wallets, network)

    assert await aggregator.holders(1, "AO") == "No holders found for AO."


class GatedNetwork(FakeNetwork):
    """Reads only complete once ``expected`` of them are in flight."""

    def __init__(self, expected: int) -> None:
        super().__init__()
        self.expected = expected
        self.in_flight = 0
        self.gate = asyncio.Event()

    async def read_only_query(self, process_id, tags, owner=None):
        self.in_flight += 1
        if self.in_flight >= self.expected:
            self.gate.set()
        await self.gate.wait()
        return await super().read_only_query(process_id, tags, owner=owner)


@pytest.mark.asyncio
async def test_my_balances_reads_tokens_concurrently(registry, wallets) -> None:
    network = GatedNetwork(expected=len(registry.tracked()))
    network.balances.update({AO: "1000000000000", WAR: "3000000000000"})
    aggregator = BalanceAggregator(registry, wallets, network)

    text = await asyncio.wait_for(aggregator.my_balances(1), timeout=1)

    assert network.in_flight == len(registry.tracked())
    assert "• AO: 1" in text
    assert "• WAR: 3" in text


@pytest.mark.asyncio
async def test_non_integer_balance_is_not_shown_as_zero(registry, wallets, network) -> None:
    network.balances[AO] = "1.5e12"
    aggregator = BalanceAggregator(registry, wallets, network)

    assert await aggregator.token_balance(1, "AO") == "💰 AO balance: 1.5"
