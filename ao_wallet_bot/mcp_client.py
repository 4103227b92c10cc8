"""MCP client management for the AO network and DEX aggregator servers."""

from __future__ import annotations

import asyncio
import json
import shlex
import uuid
from asyncio.subprocess import Process
from typing import Any, Dict, List, Optional

from ao_wallet_bot.utils.logging import get_logger

logger = get_logger(__name__)

JSONRPC_VERSION = "2.0"
DEFAULT_PROTOCOL_VERSION = "2024-11-05"
CLIENT_INFO = {
    "name": "ao-wallet-bot",
    "version": "0.1.0",
}
STREAM_LIMIT = 1_048_576


class MCPClient:
    """JSON-RPC over stdio client for one MCP server process."""

    def __init__(self, name: str, command: str, call_timeout: float = 30.0) -> None:
        self.name = name
        self.command = command
        self.call_timeout = call_timeout
        try:
            self._command_args = shlex.split(command)
        except ValueError as exc:  # pragma: no cover - invalid configuration is fatal
            raise ValueError(f"Invalid MCP command for {name!r}: {command}") from exc
        if not self._command_args:
            raise ValueError(f"Empty MCP command for {name!r}")
        self.process: Optional[Process] = None
        self._reader_task: Optional[asyncio.Task[None]] = None
        self._stderr_task: Optional[asyncio.Task[None]] = None
        self._init_lock = asyncio.Lock()
        self._write_lock = asyncio.Lock()
        self._pending: Dict[str, asyncio.Future[Any]] = {}
        self._initialized = False
        self._tools: List[Dict[str, Any]] = []

    @property
    def tools(self) -> List[Dict[str, Any]]:
        """Return the tools advertised by this server."""
        return self._tools

    @property
    def running(self) -> bool:
        return self.process is not None and self.process.returncode is None

    async def start(self) -> None:
        """Launch the server process if it is not already running."""
        if self.running:
            await self._ensure_initialized()
            return

        logger.info("starting_mcp_server", name=self.name, command=self.command)
        self.process = await asyncio.create_subprocess_exec(
            *self._command_args,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            limit=STREAM_LIMIT,
        )
        if self.process.returncode is not None:
            code = self.process.returncode
            await self.stop()
            raise RuntimeError(
                f"MCP server {self.name} exited immediately with code {code}"
            )
        self._reader_task = asyncio.create_task(self._read_stdout())
        self._stderr_task = asyncio.create_task(self._log_stderr())
        await self._ensure_initialized()

    async def stop(self) -> None:
        """Terminate the process gracefully."""
        if not self.process:
            return
        logger.info("stopping_mcp_server", name=self.name)
        if self.process.returncode is None:
            self.process.terminate()
            try:
                await asyncio.wait_for(self.process.wait(), timeout=5)
            except asyncio.TimeoutError:
                logger.warning("mcp_terminate_timeout", name=self.name)
                self.process.kill()
                await self.process.wait()

        for task in (self._reader_task, self._stderr_task):
            if task is None:
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._reader_task = None
        self._stderr_task = None

        self._fail_pending(f"MCP server '{self.name}' stopped.")
        self._initialized = False
        self.process = None

    async def call_tool(self, method: str, params: Dict[str, Any]) -> Any:
        """Invoke a tool and return its structured (or JSON-decoded) result."""
        await self.start()
        if not self.running:
            raise RuntimeError(f"MCP process {self.name} is not running")

        result = await asyncio.wait_for(
            self._send_request(
                "tools/call", {"name": method, "arguments": params or {}}
            ),
            timeout=self.call_timeout,
        )

        if not isinstance(result, dict):
            return result

        if result.get("isError"):
            message = (
                self._extract_content_text(result.get("content"))
                or f"MCP tool {method} failed."
            )
            raise RuntimeError(message)

        structured = result.get("structuredContent")
        if structured is not None:
            return structured

        content_text = self._extract_content_text(result.get("content"))
        if content_text is None:
            return result
        try:
            return json.loads(content_text)
        except (TypeError, json.JSONDecodeError):
            return content_text

    async def _read_stdout(self) -> None:
        process = self.process
        if not process or not process.stdout:
            return

        try:
            while True:
                line = await process.stdout.readline()
                if not line:
                    break
                try:
                    payload = json.loads(line.decode("utf-8").strip())
                except json.JSONDecodeError as exc:
                    logger.error(
                        "invalid_mcp_payload",
                        name=self.name,
                        error=str(exc),
                        line=line.decode(errors="replace"),
                    )
                    continue

                if not isinstance(payload, dict):
                    logger.warning("unexpected_mcp_message", name=self.name)
                    continue
                if "id" in payload and ("result" in payload or "error" in payload):
                    self._handle_response(payload)
                elif payload.get("method") == "ping" and "id" in payload:
                    await self._write({"jsonrpc": JSONRPC_VERSION, "id": payload["id"], "result": {}})
                else:
                    logger.debug(
                        "mcp_notification_ignored",
                        name=self.name,
                        method=payload.get("method"),
                    )
        finally:
            if self._pending:
                self._fail_pending(f"MCP server '{self.name}' stopped before replying.")
            self._initialized = False

    async def _log_stderr(self) -> None:
        if not self.process or not self.process.stderr:
            return
        while True:
            try:
                line = await self.process.stderr.readline()
            except asyncio.CancelledError:
                break
            if not line:
                break
            logger.warning(
                "mcp_stderr", name=self.name, message=line.decode(errors="replace").strip()
            )

    async def _ensure_initialized(self) -> None:
        if self._initialized:
            return
        async with self._init_lock:
            if self._initialized:
                return

            try:
                await asyncio.wait_for(
                    self._send_request(
                        "initialize",
                        {
                            "protocolVersion": DEFAULT_PROTOCOL_VERSION,
                            "capabilities": {"tools": {}},
                            "clientInfo": CLIENT_INFO,
                        },
                    ),
                    timeout=10,
                )
                await self._write(
                    {"jsonrpc": JSONRPC_VERSION, "method": "notifications/initialized"}
                )
            except Exception as exc:
                await self.stop()
                raise RuntimeError(
                    f"MCP server {self.name} failed to initialize: {exc}"
                ) from exc

            try:
                listing = await asyncio.wait_for(
                    self._send_request("tools/list", {}), timeout=10
                )
                if isinstance(listing, dict):
                    self._tools = [
                        t
                        for t in listing.get("tools", [])
                        if isinstance(t, dict) and t.get("name")
                    ]
                    logger.info(
                        "mcp_tools_available",
                        name=self.name,
                        tools=[t["name"] for t in self._tools],
                    )
            except Exception as exc:  # pragma: no cover - non-fatal warning
                logger.warning("mcp_list_tools_failed", name=self.name, error=str(exc))

            self._initialized = True

    def _handle_response(self, payload: Dict[str, Any]) -> None:
        req_id = str(payload.get("id"))
        future = self._pending.pop(req_id, None)
        if not future or future.done():
            logger.warning("no_pending_future", name=self.name, request_id=req_id)
            return

        if "error" in payload:
            error_obj = payload["error"] or {}
            message = error_obj.get("message") if isinstance(error_obj, dict) else None
            future.set_exception(RuntimeError(message or str(error_obj)))
        else:
            future.set_result(payload.get("result"))

    async def _send_request(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        request_id = str(uuid.uuid4())
        message: Dict[str, Any] = {
            "jsonrpc": JSONRPC_VERSION,
            "id": request_id,
            "method": method,
        }
        if params is not None:
            message["params"] = params

        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        try:
            await self._write(message)
        except Exception as exc:
            self._pending.pop(request_id, None)
            raise RuntimeError(f"MCP process {self.name} is unavailable") from exc

        try:
            return await future
        finally:
            self._pending.pop(request_id, None)

    async def _write(self, message: Dict[str, Any]) -> None:
        if not self.process or not self.process.stdin:
            raise RuntimeError(f"MCP process {self.name} is not running")
        data = (json.dumps(message) + "\n").encode("utf-8")
        async with self._write_lock:
            self.process.stdin.write(data)
            await self.process.stdin.drain()

    def _fail_pending(self, message: str) -> None:
        for request_id, future in list(self._pending.items()):
            self._pending.pop(request_id, None)
            if not future.done():
                future.set_exception(RuntimeError(message))

    @staticmethod
    def _extract_content_text(content: Any) -> Optional[str]:
        if not isinstance(content, list):
            return None
        for block in content:
            if isinstance(block, dict) and block.get("type") == "text":
                text = block.get("text")
                if isinstance(text, str):
                    return text
        return None


class MCPManager:
    """Registry for the AO network and DEX aggregator MCP clients."""

    def __init__(self, ao_cmd: str, dex_cmd: str | None = None) -> None:
        self.ao = MCPClient("ao", ao_cmd)
        self.dex = (
            MCPClient("dex", dex_cmd) if dex_cmd and dex_cmd.strip() else None
        )

    @property
    def clients(self) -> List[MCPClient]:
        return [client for client in (self.ao, self.dex) if client is not None]

    def get_client(self, name: str) -> Optional[MCPClient]:
        for client in self.clients:
            if client.name == name:
                return client
        return None

    async def start(self) -> None:
        await asyncio.gather(*(client.start() for client in self.clients))

    async def shutdown(self) -> None:
        await asyncio.gather(*(client.stop() for client in self.clients))


__all__ = ["MCPClient", "MCPManager"]
