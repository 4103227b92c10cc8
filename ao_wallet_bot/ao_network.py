"""AO network and DEX aggregator clients backed by MCP tools."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_FLOOR, Decimal, localcontext
from typing import Any, Dict, List, Mapping, Optional

from ao_wallet_bot.mcp_client import MCPClient
from ao_wallet_bot.utils.logging import get_logger

logger = get_logger(__name__)

BPS_DENOMINATOR = 10_000


@dataclass
class NetworkMessage:
    data: Any
    tags: Dict[str, str] = field(default_factory=dict)


@dataclass
class QueryResult:
    messages: List[NetworkMessage] = field(default_factory=list)

    @property
    def first(self) -> Optional[NetworkMessage]:
        return self.messages[0] if self.messages else None


@dataclass
class MessageResult:
    output: Any = None
    error: Optional[str] = None


@dataclass
class SwapQuote:
    best_route: Optional[Dict[str, Any]]
    estimated_output: str
    input_amount: str


def tags_to_list(tags: Mapping[str, Any]) -> List[Dict[str, str]]:
    """Convert ``{"Action": "Balance"}`` into the ``[{"name", "value"}]`` wire shape."""
    return [{"name": str(name), "value": str(value)} for name, value in tags.items()]


def tags_to_dict(tags: Any) -> Dict[str, str]:
    """Inverse of :func:`tags_to_list`; tolerates dict-shaped tags too."""
    if isinstance(tags, Mapping):
        return {str(k): str(v) for k, v in tags.items()}
    result: Dict[str, str] = {}
    for tag in tags or []:
        if not isinstance(tag, Mapping):
            continue
        name = tag.get("name")
        if name is None:
            continue
        result[str(name)] = "" if tag.get("value") is None else str(tag.get("value"))
    return result


def _field(payload: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        if name in payload:
            return payload[name]
    return None


class AONetworkClient:
    """Submit signed messages, dry-run queries and read results on AO."""

    def __init__(self, mcp: MCPClient) -> None:
        self.mcp = mcp

    async def submit(
        self,
        process_id: str,
        tags: Mapping[str, Any],
        signer: Mapping[str, Any],
        data: str = "",
    ) -> str:
        """Send a signed message and return its message id."""
        payload = await self.mcp.call_tool(
            "message",
            {
                "process": process_id,
                "tags": tags_to_list(tags),
                "data": data,
                "signer": dict(signer),
            },
        )
        message_id = payload if isinstance(payload, str) else None
        if isinstance(payload, Mapping):
            message_id = _field(payload, "messageId", "id", "message")
        if not message_id:
            raise RuntimeError(f"AO message to {process_id} returned no message id")
        logger.info(
            "ao_message_submitted",
            process_id=process_id,
            action=tags.get("Action"),
            message_id=message_id,
        )
        return str(message_id)

    async def read_only_query(
        self,
        process_id: str,
        tags: Mapping[str, Any],
        owner: Optional[str] = None,
    ) -> QueryResult:
        """Dry-run a message against ``process_id`` without changing state."""
        params: Dict[str, Any] = {"process": process_id, "tags": tags_to_list(tags)}
        if owner:
            params["owner"] = owner
        payload = await self.mcp.call_tool("dryrun", params)

        raw_messages: Any = []
        if isinstance(payload, Mapping):
            raw_messages = _field(payload, "Messages", "messages") or []
        elif isinstance(payload, list):
            raw_messages = payload

        messages = [
            NetworkMessage(
                data=_field(item, "Data", "data"),
                tags=tags_to_dict(_field(item, "Tags", "tags")),
            )
            for item in raw_messages
            if isinstance(item, Mapping)
        ]
        return QueryResult(messages=messages)

    async def fetch_result(self, message_id: str, process_id: str) -> MessageResult:
        """Read the computed result of a submitted message."""
        payload = await self.mcp.call_tool(
            "result", {"message": message_id, "process": process_id}
        )
        if not isinstance(payload, Mapping):
            return MessageResult(output=payload)
        error = _field(payload, "Error", "error")
        return MessageResult(
            output=_field(payload, "Output", "output"),
            error=str(error) if error else None,
        )


class DexAggregatorClient:
    """Quote and execute swaps through the DEX aggregator server."""

    def __init__(self, mcp: MCPClient) -> None:
        self.mcp = mcp

    async def quote(
        self, from_token: str, to_token: str, amount_base: str, owner: str
    ) -> SwapQuote:
        payload = await self.mcp.call_tool(
            "getQuote",
            {
                "fromToken": from_token,
                "toToken": to_token,
                "amount": amount_base,
                "owner": owner,
            },
        )
        if not isinstance(payload, Mapping):
            return SwapQuote(best_route=None, estimated_output="0", input_amount=amount_base)

        route = _field(payload, "bestRoute", "best_route")
        estimated = _field(payload, "estimatedOutput", "estimated_output")
        if estimated is None and isinstance(route, Mapping):
            estimated = _field(route, "estimatedOutput", "outputAmount")
        return SwapQuote(
            best_route=dict(route) if isinstance(route, Mapping) and route else None,
            estimated_output=str(estimated or "0"),
            input_amount=str(_field(payload, "inputAmount", "input_amount") or amount_base),
        )

    async def execute(
        self,
        route: Mapping[str, Any],
        from_token: str,
        to_token: str,
        input_amount: str,
        min_output: str,
        owner: str,
        signer: Mapping[str, Any],
    ) -> str:
        payload = await self.mcp.call_tool(
            "executeSwap",
            {
                "route": dict(route),
                "fromToken": from_token,
                "toToken": to_token,
                "inputAmount": input_amount,
                "minOutput": min_output,
                "owner": owner,
                "signer": dict(signer),
            },
        )
        message_id = payload if isinstance(payload, str) else None
        if isinstance(payload, Mapping):
            message_id = _field(payload, "messageId", "id")
        if not message_id:
            raise RuntimeError("Swap execution returned no message id")
        logger.info(
            "swap_submitted",
            from_token=from_token,
            to_token=to_token,
            input_amount=input_amount,
            min_output=min_output,
            message_id=message_id,
        )
        return str(message_id)

    @staticmethod
    def min_amount(estimated_output: str, tolerance_bps: int) -> str:
        """Minimum acceptable output after ``tolerance_bps`` of slippage."""
        if not 0 <= tolerance_bps <= BPS_DENOMINATOR:
            raise ValueError("tolerance_bps must be between 0 and 10000")
        with localcontext() as ctx:
            ctx.prec = 80
            estimated = Decimal(str(estimated_output))
            minimum = (
                estimated * (BPS_DENOMINATOR - tolerance_bps) / BPS_DENOMINATOR
            ).to_integral_value(rounding=ROUND_FLOOR)
        return str(max(int(minimum), 0))


__all__ = [
    "AONetworkClient",
    "DexAggregatorClient",
    "MessageResult",
    "NetworkMessage",
    "QueryResult",
    "SwapQuote",
    "tags_to_dict",
    "tags_to_list",
]
