"""Gateway exceptions.

Every failure a tool dispatch can run into is one of these. The tool
registry converts them into error envelopes, so none of them reach the
transport layer.
"""

from typing import Any


class GatewayError(Exception):
    """Base class for all gateway exceptions."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize gateway error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# Dispatch Errors
# ============================================================================


class MissingCredentialError(GatewayError):
    """Raised when a tool requiring a credential is called without one."""

    def __init__(self) -> None:
        super().__init__(
            "Error: No access token provided. Please ensure your MCP client "
            "is configured to pass an access token."
        )


class ToolValidationError(GatewayError):
    """Raised when tool arguments violate the tool's input schema."""

    def __init__(self, tool_name: str, errors: list[dict[str, Any]]) -> None:
        """Initialize validation error.

        Args:
            tool_name: Name of the tool being called.
            errors: List of ``{"field": ..., "message": ...}`` entries.
        """
        fields = [error["field"] for error in errors]
        problems = "; ".join(f"{error['field']}: {error['message']}" for error in errors)
        super().__init__(
            f"Error: Invalid arguments for tool '{tool_name}': {problems}",
            details={"tool": tool_name, "fields": fields, "errors": errors},
        )
        self.fields = fields


class UnknownToolError(GatewayError):
    """Raised when dispatch is requested for an unregistered tool."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Error: unknown tool '{name}'", details={"tool": name})
        self.name = name


class DuplicateToolError(GatewayError):
    """Raised at startup when two tools are registered under one name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Tool '{name}' is already registered", details={"tool": name})
        self.name = name


class EmptyResponseError(GatewayError):
    """Raised when the upstream answers without the data a tool needs."""

    pass


# ============================================================================
# Upstream Errors
# ============================================================================


class UpstreamError(GatewayError):
    """Base class for failures talking to the remote commerce API."""

    subkind = "upstream"


class UpstreamHTTPError(UpstreamError):
    """The remote API responded with a non-success status."""

    subkind = "http"

    def __init__(self, status_code: int, body: str) -> None:
        """Initialize HTTP error.

        Args:
            status_code: HTTP status returned by the remote API.
            body: Raw response body text, unparsed.
        """
        super().__init__(
            f"Commerce API error! status: {status_code}, message: {body}",
            details={"status_code": status_code},
        )
        self.status_code = status_code
        self.body = body


class UpstreamTransportError(UpstreamError):
    """The outbound call itself failed (network, timeout, malformed body)."""

    subkind = "transport"

    def __init__(self, reason: str, url: str | None = None) -> None:
        super().__init__(
            f"Commerce API request failed: {reason}",
            details={"url": url} if url else None,
        )
        self.reason = reason
