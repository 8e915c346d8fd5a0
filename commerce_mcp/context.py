"""Per-call execution context and credential extraction.

The bearer credential for the remote API travels inside the tool call
arguments (``params.arguments.access_token``). It is lifted into an
:class:`ExecutionContext` before the call is routed, so handlers only ever
ask the context whether a credential is present.

Credentials are call-scoped: nothing ties a credential to a session, and
one session may see different credentials across calls.
"""

from dataclasses import dataclass
from typing import Any

CREDENTIAL_ARGUMENT = "access_token"


@dataclass
class ExecutionContext:
    """Ephemeral, call-scoped data handed to tool handlers."""

    credential: str | None = None
    session_id: str | None = None
    request_id: str | None = None

    @property
    def has_credential(self) -> bool:
        return bool(self.credential)


def extract_credential(payload: Any) -> str | None:
    """Locate the credential in a raw JSON-RPC message.

    Only ``tools/call`` requests carry one. The value is not validated;
    the remote API decides whether it is acceptable.
    """
    if not isinstance(payload, dict) or payload.get("method") != "tools/call":
        return None
    params = payload.get("params")
    if not isinstance(params, dict):
        return None
    arguments = params.get("arguments")
    if not isinstance(arguments, dict):
        return None
    token = arguments.get(CREDENTIAL_ARGUMENT)
    if isinstance(token, str) and token:
        return token
    return None


def build_context(
    payload: Any,
    session_id: str | None = None,
    request_id: str | None = None,
) -> ExecutionContext:
    """Create a fresh context for one inbound message."""
    return ExecutionContext(
        credential=extract_credential(payload),
        session_id=session_id,
        request_id=request_id,
    )
