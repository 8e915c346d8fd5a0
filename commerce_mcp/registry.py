"""Tool registry and dispatch pipeline.

A tool is a name, a pydantic input model and an async handler. Dispatch
runs every call through the same stages:

    lookup -> validate -> credential check -> handler -> envelope

and never raises: unknown tools, invalid arguments, a missing credential
and any failure inside a handler all come back as error envelopes.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable

import structlog
from mcp.types import CallToolResult, Tool
from pydantic import BaseModel, ValidationError

from commerce_mcp.context import ExecutionContext
from commerce_mcp.envelope import error_result, text_result
from commerce_mcp.exceptions import (
    DuplicateToolError,
    EmptyResponseError,
    GatewayError,
    MissingCredentialError,
    ToolValidationError,
    UnknownToolError,
)
from commerce_mcp.log import redact_arguments

logger = structlog.get_logger()

ToolHandler = Callable[[Any, ExecutionContext], Awaitable[CallToolResult | str]]


@dataclass(frozen=True)
class ToolDescriptor:
    """Immutable description of one registered tool."""

    name: str
    description: str
    input_model: type[BaseModel]
    handler: ToolHandler
    failure_prefix: str = "Error"
    requires_credential: bool = True

    def validate(self, raw_arguments: Any) -> BaseModel:
        """Validate raw arguments, applying schema defaults.

        Raises:
            ToolValidationError: Naming every offending field.
        """
        try:
            return self.input_model.model_validate(raw_arguments or {})
        except ValidationError as e:
            errors = [
                {
                    "field": ".".join(str(part) for part in error["loc"]) or "arguments",
                    "message": error["msg"],
                }
                for error in e.errors()
            ]
            raise ToolValidationError(self.name, errors) from e

    def to_tool(self) -> Tool:
        return Tool(
            name=self.name,
            description=self.description,
            inputSchema=self.input_model.model_json_schema(),
        )


class ToolRegistry:
    """Registry of all tools exposed by the gateway.

    Populated once at startup; read-only afterwards.
    """

    def __init__(self) -> None:
        self._tools: dict[str, ToolDescriptor] = {}

    def register(self, descriptor: ToolDescriptor) -> None:
        """Register a tool.

        Raises:
            DuplicateToolError: If the name is already taken.
        """
        if descriptor.name in self._tools:
            raise DuplicateToolError(descriptor.name)
        self._tools[descriptor.name] = descriptor
        logger.debug("Tool registered", tool=descriptor.name)

    def get(self, name: str) -> ToolDescriptor | None:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def list_tools(self) -> list[Tool]:
        return [descriptor.to_tool() for descriptor in self._tools.values()]

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    async def dispatch(
        self,
        name: str,
        raw_arguments: Any,
        context: ExecutionContext,
    ) -> CallToolResult:
        """Run one tool call and return its envelope."""
        descriptor = self._tools.get(name)
        if descriptor is None:
            logger.warning("Unknown tool requested", tool=name)
            return error_result(UnknownToolError(name).message)

        if isinstance(raw_arguments, dict):
            logger.info("Tool called", tool=name, arguments=redact_arguments(raw_arguments))
        else:
            logger.info("Tool called", tool=name)

        try:
            arguments = descriptor.validate(raw_arguments)
        except ToolValidationError as e:
            logger.info("Tool arguments rejected", tool=name, fields=e.fields)
            return error_result(e.message)

        if descriptor.requires_credential and not context.has_credential:
            logger.info("Tool called without credential", tool=name)
            return error_result(MissingCredentialError().message)

        try:
            result = await descriptor.handler(arguments, context)
        except EmptyResponseError as e:
            logger.warning("Tool got no data from upstream", tool=name)
            return error_result(e.message)
        except GatewayError as e:
            logger.warning("Tool failed", tool=name, error=e.message)
            return error_result(f"{descriptor.failure_prefix}: {e.message}")
        except Exception as e:
            logger.exception("Tool execution failed", tool=name)
            return error_result(f"{descriptor.failure_prefix}: {e}")

        if isinstance(result, str):
            result = text_result(result)
        logger.info("Tool completed", tool=name, is_error=result.isError)
        return result
