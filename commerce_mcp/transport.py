"""Per-session MCP transport.

A :class:`SessionTransport` belongs to exactly one session. It interprets
JSON-RPC 2.0 messages for that session (``initialize``, ``ping``,
``tools/list``, ``tools/call`` and notifications) and produces the reply
messages. HTTP framing lives in the router.
"""

from typing import Any, Callable

import structlog
from mcp.types import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    LATEST_PROTOCOL_VERSION,
    METHOD_NOT_FOUND,
    ErrorData,
    Implementation,
    InitializeResult,
    ListToolsResult,
    ServerCapabilities,
    ToolsCapability,
)
from pydantic import BaseModel

from commerce_mcp.context import ExecutionContext
from commerce_mcp.registry import ToolRegistry

logger = structlog.get_logger()

JSONRPC_VERSION = "2.0"

SUPPORTED_PROTOCOL_VERSIONS = (
    "2024-11-05",
    "2025-03-26",
    "2025-06-18",
    LATEST_PROTOCOL_VERSION,
)


def is_jsonrpc_message(message: Any) -> bool:
    return isinstance(message, dict) and message.get("jsonrpc") == JSONRPC_VERSION


def rpc_result(request_id: Any, result: BaseModel | dict[str, Any]) -> dict[str, Any]:
    if isinstance(result, BaseModel):
        result = result.model_dump(by_alias=True, exclude_none=True, mode="json")
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def rpc_error(request_id: Any, code: int, message: str, data: Any = None) -> dict[str, Any]:
    error = ErrorData(code=code, message=message, data=data)
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "error": error.model_dump(exclude_none=True, mode="json"),
    }


class SessionTransport:
    """JSON-RPC endpoint owned by a single session."""

    def __init__(
        self,
        session_id: str,
        registry: ToolRegistry,
        server_name: str,
        server_version: str,
    ) -> None:
        self.session_id = session_id
        self.protocol_version: str | None = None
        self.client_info: dict[str, Any] | None = None
        self._registry = registry
        self._server_info = Implementation(name=server_name, version=server_version)
        self._closed = False
        self._close_listeners: list[Callable[[str], None]] = []
        self._initialized_listeners: list[Callable[[str], None]] = []

    @property
    def closed(self) -> bool:
        return self._closed

    def on_close(self, listener: Callable[[str], None]) -> None:
        self._close_listeners.append(listener)

    def on_initialized(self, listener: Callable[[str], None]) -> None:
        self._initialized_listeners.append(listener)

    def close(self) -> None:
        """Close the transport; closing twice is a no-op."""
        if self._closed:
            return
        self._closed = True
        logger.info("MCP session closed", session_id=self.session_id)
        for listener in self._close_listeners:
            listener(self.session_id)

    async def handle_message(
        self,
        message: Any,
        context: ExecutionContext,
    ) -> dict[str, Any] | None:
        """Handle one decoded JSON-RPC message.

        Returns:
            The reply message, or ``None`` for notifications and client
            responses.
        """
        if not is_jsonrpc_message(message):
            return rpc_error(None, INVALID_REQUEST, "Invalid Request: not a JSON-RPC 2.0 message")

        method = message.get("method")
        request_id = message.get("id")

        if method is None:
            # A client response to a server request; this server sends none.
            return None
        if not isinstance(method, str):
            return rpc_error(request_id, INVALID_REQUEST, "Invalid Request: method must be a string")

        if "id" not in message:
            self._handle_notification(method)
            return None

        if self._closed:
            return rpc_error(request_id, INVALID_REQUEST, "Session closed")

        params = message.get("params") or {}
        if not isinstance(params, dict):
            return rpc_error(request_id, INVALID_PARAMS, "Invalid params: expected an object")

        if method == "initialize":
            return rpc_result(request_id, self._initialize(params))
        if method == "ping":
            return rpc_result(request_id, {})
        if method == "tools/list":
            return rpc_result(request_id, ListToolsResult(tools=self._registry.list_tools()))
        if method == "tools/call":
            return await self._call_tool(request_id, params, context)

        logger.info("Unsupported MCP method", method=method)
        return rpc_error(request_id, METHOD_NOT_FOUND, f"Method not found: {method}")

    def _handle_notification(self, method: str) -> None:
        if method == "notifications/initialized":
            logger.debug("Client finished initialization", session_id=self.session_id)
        else:
            logger.debug("Notification ignored", method=method)

    def _initialize(self, params: dict[str, Any]) -> InitializeResult:
        requested = params.get("protocolVersion")
        self.protocol_version = (
            requested if requested in SUPPORTED_PROTOCOL_VERSIONS else LATEST_PROTOCOL_VERSION
        )
        client_info = params.get("clientInfo")
        self.client_info = client_info if isinstance(client_info, dict) else None

        logger.info(
            "New MCP session initialized",
            session_id=self.session_id,
            protocol_version=self.protocol_version,
            client=(self.client_info or {}).get("name"),
        )
        for listener in self._initialized_listeners:
            listener(self.session_id)

        return InitializeResult(
            protocolVersion=self.protocol_version,
            capabilities=ServerCapabilities(tools=ToolsCapability(listChanged=False)),
            serverInfo=self._server_info,
        )

    async def _call_tool(
        self,
        request_id: Any,
        params: dict[str, Any],
        context: ExecutionContext,
    ) -> dict[str, Any]:
        name = params.get("name")
        if not isinstance(name, str):
            # Resolves to no tool, so dispatch answers with an unknown-tool envelope.
            name = "" if name is None else str(name)

        try:
            result = await self._registry.dispatch(name, params.get("arguments"), context)
        except Exception:
            logger.exception("Tool dispatch failed unexpectedly", tool=name)
            return rpc_error(request_id, INTERNAL_ERROR, "Internal error")
        return rpc_result(request_id, result)
