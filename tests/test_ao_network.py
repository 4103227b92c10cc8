from unittest.mock import AsyncMock

import pytest

from ao_wallet_bot.ao_network import (
    AONetworkClient,
    DexAggregatorClient,
    tags_to_dict,
    tags_to_list,
)


class FakeMCP:
    def __init__(self, *responses) -> None:
        self.call_tool = AsyncMock(side_effect=list(responses))


def test_tag_conversion() -> None:
    wire = tags_to_list({"Action": "Transfer", "Quantity": 5})

    assert wire == [
        {"name": "Action", "value": "Transfer"},
        {"name": "Quantity", "value": "5"},
    ]
    assert tags_to_dict(wire) == {"Action": "Transfer", "Quantity": "5"}
    assert tags_to_dict([{"value": "orphan"}, "junk"]) == {}
    assert tags_to_dict({"Ticker": "AO"}) == {"Ticker": "AO"}


@pytest.mark.asyncio
async def test_submit_returns_message_id() -> None:
    mcp = FakeMCP({"messageId": "msg-1"})
    client = AONetworkClient(mcp)

    message_id = await client.submit("proc", {"Action": "Transfer"}, {"kty": "RSA"})

    assert message_id == "msg-1"
    name, params = mcp.call_tool.await_args.args
    assert name == "message"
    assert params["process"] == "proc"
    assert params["tags"] == [{"name": "Action", "value": "Transfer"}]


@pytest.mark.asyncio
async def test_submit_without_id_raises() -> None:
    client = AONetworkClient(FakeMCP({}))

    with pytest.raises(RuntimeError):
        await client.submit("proc", {"Action": "Transfer"}, {})


@pytest.mark.asyncio
async def test_read_only_query_parses_messages() -> None:
    mcp = FakeMCP(
        {
            "Messages": [
                {
                    "Data": "1500",
                    "Tags": [
                        {"name": "Balance", "value": "1500"},
                        {"name": "Ticker", "value": "AO"},
                    ],
                }
            ]
        }
    )
    client = AONetworkClient(mcp)

    result = await client.read_only_query("proc", {"Action": "Balance"}, owner="me")

    assert result.first.data == "1500"
    assert result.first.tags["Ticker"] == "AO"
    assert mcp.call_tool.await_args.args[1]["owner"] == "me"


@pytest.mark.asyncio
async def test_read_only_query_empty() -> None:
    client = AONetworkClient(FakeMCP({"Messages": []}))

    result = await client.read_only_query("proc", {"Action": "Info"})

    assert result.first is None


@pytest.mark.asyncio
async def test_fetch_result_reports_error() -> None:
    client = AONetworkClient(FakeMCP({"Output": None, "Error": "Insufficient Balance"}))

    result = await client.fetch_result("msg", "proc")

    assert result.error == "Insufficient Balance"


@pytest.mark.asyncio
async def test_quote_parsing() -> None:
    mcp = FakeMCP(
        {"bestRoute": {"pool": "p1"}, "estimatedOutput": "2500", "inputAmount": "1000"}
    )
    dex = DexAggregatorClient(mcp)

    quote = await dex.quote("a", "b", "1000", "owner")

    assert quote.best_route == {"pool": "p1"}
    assert quote.estimated_output == "2500"
    assert quote.input_amount == "1000"


@pytest.mark.asyncio
async def test_quote_without_route() -> None:
    dex = DexAggregatorClient(FakeMCP({"bestRoute": None}))

    quote = await dex.quote("a", "b", "1000", "owner")

    assert quote.best_route is None
    assert quote.estimated_output == "0"


def test_min_amount_floors() -> None:
    assert DexAggregatorClient.min_amount("1000", 100) == "990"
    assert DexAggregatorClient.min_amount("999", 100) == "989"
    assert DexAggregatorClient.min_amount("1000", 0) == "1000"
    with pytest.raises(ValueError):
        DexAggregatorClient.min_amount("1000", 10_001)
