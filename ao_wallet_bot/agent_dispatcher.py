"""Gemini function-calling fallback for messages the intent rules miss.

The model only ever sees the closed wallet tool set. Every tool call is mapped
onto a :mod:`ao_wallet_bot.commands` variant and executed through the same
dispatcher the fast path uses.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

import google.generativeai as genai

from ao_wallet_bot.commands import Command, command_from_tool_call
from ao_wallet_bot.store.memory import ConversationTurn
from ao_wallet_bot.utils.logging import get_logger

logger = get_logger(__name__)

CommandRunner = Callable[[int, Command], Awaitable[str]]

TIMEOUT_MESSAGE = "⏳ That took too long. Please try again."
INCOMPLETE_MESSAGE = "I couldn't complete that request. Please try rephrasing it."

AGENT_SYSTEM_PROMPT = """You are a custodial wallet assistant for the AO network, chatting on Telegram.

## Tools
- transfer_tokens: send tokens from the user's wallet. `amount` is a decimal
  string in display units (e.g. "0.5") or "all" for the whole balance.
  `token` is a ticker such as AO, ARIO, WAR, USDA or a 43-character process id;
  omit it for AO.
- swap_tokens: swap `amount` of `from_token` into `to_token` (explicit amounts only).
- check_balance: the user's balance of one token, or every tracked token when
  `token` is omitted.
- list_balances: top holders of a token.
- wallet_info: the user's wallet address.

## Guidelines
- Only call a tool when the user clearly asked for that action.
- Never guess a recipient address; ask for it if it is missing.
- Tool results are already formatted for the user. Relay them faithfully and
  do not invent balances or transaction ids.
- Be concise. Plain text only.
"""


def _string(description: str) -> genai.protos.Schema:
    return genai.protos.Schema(type=genai.protos.Type.STRING, description=description)


def _declaration(
    name: str,
    description: str,
    properties: Optional[Dict[str, genai.protos.Schema]] = None,
    required: Sequence[str] = (),
) -> genai.protos.FunctionDeclaration:
    parameters = None
    if properties:
        parameters = genai.protos.Schema(
            type=genai.protos.Type.OBJECT,
            properties=properties,
            required=list(required),
        )
    return genai.protos.FunctionDeclaration(
        name=name, description=description, parameters=parameters
    )


def build_function_declarations() -> List[genai.protos.FunctionDeclaration]:
    """Declarations for the closed wallet tool set."""
    return [
        _declaration(
            "transfer_tokens",
            "Transfer tokens from the user's wallet to another address.",
            {
                "recipient": _string("Recipient wallet address."),
                "amount": _string('Amount in display units, or "all".'),
                "token": _string("Token ticker or process id. Defaults to AO."),
            },
            required=("recipient", "amount"),
        ),
        _declaration(
            "swap_tokens",
            "Swap one token for another through the DEX aggregator.",
            {
                "amount": _string("Amount of the source token in display units."),
                "from_token": _string("Ticker or process id to sell."),
                "to_token": _string("Ticker or process id to buy."),
            },
            required=("amount", "from_token", "to_token"),
        ),
        _declaration(
            "check_balance",
            "Check the user's balance of one token, or all tracked tokens.",
            {"token": _string("Token ticker or process id. Omit for all tokens.")},
        ),
        _declaration(
            "list_balances",
            "List the top holders of a token.",
            {"token": _string("Token ticker or process id.")},
            required=("token",),
        ),
        _declaration("wallet_info", "Show the user's wallet address."),
    ]


@dataclass
class AgentRun:
    """State of one dispatch across loop iterations."""

    iteration: int = 0
    tool_results: List[str] = field(default_factory=list)


class AgentDispatcher:
    """Run a bounded Gemini tool-calling loop over the wallet commands."""

    DEFAULT_MAX_ITERATIONS = 3
    DEFAULT_TIMEOUT_SECONDS = 60

    def __init__(
        self,
        api_key: str,
        model_name: str = "gemini-1.5-flash-latest",
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        model: Optional[Any] = None,
    ) -> None:
        genai.configure(api_key=api_key)
        self.model_name = model_name
        self.max_iterations = max_iterations
        self.timeout_seconds = timeout_seconds
        self._model = model

    def _ensure_model(self) -> Any:
        if self._model is None:
            self._model = genai.GenerativeModel(
                model_name=self.model_name,
                tools=[genai.protos.Tool(function_declarations=build_function_declarations())],
                system_instruction=AGENT_SYSTEM_PROMPT,
            )
            logger.info("agent_model_initialized", model=self.model_name)
        return self._model

    async def run(
        self,
        user_id: int,
        message: str,
        history: Sequence[ConversationTurn],
        execute: CommandRunner,
    ) -> str:
        """Answer ``message`` and return the reply text."""
        state = AgentRun()
        try:
            return await asyncio.wait_for(
                self._loop(user_id, message, history, execute, state),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "agent_timeout",
                user_id=user_id,
                iterations=state.iteration,
                tool_calls=len(state.tool_results),
            )
            if state.tool_results:
                return state.tool_results[-1]
            return TIMEOUT_MESSAGE

    async def _loop(
        self,
        user_id: int,
        message: str,
        history: Sequence[ConversationTurn],
        execute: CommandRunner,
        state: AgentRun,
    ) -> str:
        model = self._ensure_model()
        messages = build_messages(message, history)

        for iteration in range(self.max_iterations):
            state.iteration = iteration + 1
            response = await asyncio.to_thread(model.generate_content, messages)

            function_calls = extract_function_calls(response)
            if not function_calls:
                text = extract_text(response)
                if text:
                    return text
                break

            response_parts = []
            for call in function_calls:
                result = await self._run_tool(user_id, call, execute)
                if "result" in result:
                    state.tool_results.append(result["result"])
                response_parts.append(
                    genai.protos.Part(
                        function_response=genai.protos.FunctionResponse(
                            name=call.name, response=result
                        )
                    )
                )

            messages.append({"role": "model", "parts": response.candidates[0].content.parts})
            messages.append({"role": "user", "parts": response_parts})

        logger.info("agent_iteration_limit", user_id=user_id, iterations=state.iteration)
        if state.tool_results:
            return state.tool_results[-1]
        return INCOMPLETE_MESSAGE

    async def _run_tool(
        self, user_id: int, call: Any, execute: CommandRunner
    ) -> Dict[str, Any]:
        args = dict(call.args) if call.args else {}
        command = command_from_tool_call(call.name, args)
        logger.info(
            "agent_tool_call",
            user_id=user_id,
            tool=call.name,
            accepted=command is not None,
        )
        if command is None:
            return {"error": f"Unknown tool or missing arguments: {call.name}"}
        return {"result": await execute(user_id, command)}


def build_messages(
    message: str, history: Sequence[ConversationTurn]
) -> List[Dict[str, Any]]:
    """Map conversation turns onto Gemini roles and append the new message."""
    messages: List[Dict[str, Any]] = []
    for turn in history:
        role = "model" if turn.role == "assistant" else "user"
        if turn.content:
            messages.append({"role": role, "parts": [{"text": turn.content}]})
    messages.append({"role": "user", "parts": [{"text": message}]})
    return messages


def extract_function_calls(response: Any) -> List[Any]:
    if not getattr(response, "candidates", None):
        return []
    calls = []
    for part in response.candidates[0].content.parts:
        function_call = getattr(part, "function_call", None)
        if function_call and getattr(function_call, "name", ""):
            calls.append(function_call)
    return calls


def extract_text(response: Any) -> str:
    if not getattr(response, "candidates", None):
        return ""
    texts = [
        part.text
        for part in response.candidates[0].content.parts
        if getattr(part, "text", None)
    ]
    return "\n".join(texts).strip()


__all__ = [
    "AGENT_SYSTEM_PROMPT",
    "AgentDispatcher",
    "build_function_declarations",
    "build_messages",
    "extract_function_calls",
    "extract_text",
]
