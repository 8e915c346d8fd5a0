"""MCP HTTP endpoint.

Single ``/mcp`` path carrying JSON-RPC messages. Every POST is bound to a
session through the ``mcp-session-id`` header: a known id reuses its
session, anything else opens a new one and the new id is returned in the
response header. Credentials are lifted out of each message before it is
routed to the session's transport.
"""

import json
from typing import Any

import structlog
from fastapi import APIRouter, Request, Response, status
from fastapi.responses import JSONResponse
from mcp.types import INVALID_REQUEST, PARSE_ERROR

from commerce_mcp.context import build_context
from commerce_mcp.sessions import SessionRegistry
from commerce_mcp.transport import is_jsonrpc_message, rpc_error

logger = structlog.get_logger()

SESSION_HEADER = "mcp-session-id"

router = APIRouter()


def get_sessions(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def payload_too_large(limit: int) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        content={
            "error_code": "PAYLOAD_TOO_LARGE",
            "message": f"Request body exceeds {limit} bytes",
        },
    )


@router.post("/mcp")
async def handle_mcp_post(request: Request) -> Response:
    """Handle one JSON-RPC message or batch for the caller's session."""
    limit = request.app.state.settings.max_body_bytes

    # Declared size first, then what was actually received
    content_length = request.headers.get("content-length", "")
    if content_length.isdigit() and int(content_length) > limit:
        logger.info("Rejected oversized body", content_length=int(content_length), limit=limit)
        return payload_too_large(limit)

    raw_body = await request.body()
    if len(raw_body) > limit:
        logger.info("Rejected oversized body", received=len(raw_body), limit=limit)
        return payload_too_large(limit)

    try:
        payload: Any = json.loads(raw_body)
    except (ValueError, UnicodeDecodeError):
        logger.info("Rejected malformed JSON-RPC body")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=rpc_error(None, PARSE_ERROR, "Parse error: invalid JSON"),
        )

    is_batch = isinstance(payload, list)
    messages = payload if is_batch else [payload]
    if is_batch and not messages:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=rpc_error(None, INVALID_REQUEST, "Invalid Request: empty batch"),
        )

    if not is_batch and not is_jsonrpc_message(payload):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=rpc_error(None, INVALID_REQUEST, "Invalid Request: not a JSON-RPC 2.0 message"),
        )

    request_id = getattr(request.state, "request_id", None)
    contexts = [build_context(message, request_id=request_id) for message in messages]

    sessions = get_sessions(request)
    session, _ = sessions.resolve(request.headers.get(SESSION_HEADER))
    structlog.contextvars.bind_contextvars(session_id=session.id)

    replies = []
    for message, context in zip(messages, contexts):
        context.session_id = session.id
        reply = await session.transport.handle_message(message, context)
        if reply is not None:
            replies.append(reply)

    sessions.touch(session.id)
    headers = {SESSION_HEADER: session.id}

    if not replies:
        return Response(status_code=status.HTTP_202_ACCEPTED, headers=headers)

    body = replies if is_batch else replies[0]
    return JSONResponse(content=body, headers=headers)


@router.delete("/mcp")
async def handle_mcp_delete(request: Request) -> Response:
    """Terminate the caller's session."""
    session_id = request.headers.get(SESSION_HEADER)
    if not session_id or not get_sessions(request).close(session_id):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"error_code": "SESSION_NOT_FOUND", "message": "Session not found"},
        )
    return Response(status_code=status.HTTP_200_OK)


@router.get("/mcp")
async def handle_mcp_get() -> Response:
    """Server-initiated streams are not offered; replies are plain JSON."""
    return JSONResponse(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        content={
            "error_code": "METHOD_NOT_ALLOWED",
            "message": "Method not allowed: this server only answers POST with JSON",
        },
        headers={"Allow": "POST, DELETE"},
    )
