"""Tests for the tool registry and dispatch pipeline."""

import pytest
from pydantic import BaseModel

from commerce_mcp.context import ExecutionContext
from commerce_mcp.envelope import envelope_text, text_result
from commerce_mcp.exceptions import DuplicateToolError, UpstreamHTTPError
from commerce_mcp.registry import ToolDescriptor, ToolRegistry


class EchoInput(BaseModel):
    a: int
    b: str = "x"


class Recorder:
    """Handler that records what it was called with."""

    def __init__(self, result="ok", error: Exception | None = None) -> None:
        self.calls: list[tuple] = []
        self.result = result
        self.error = error

    async def __call__(self, args, ctx):
        self.calls.append((args, ctx))
        if self.error is not None:
            raise self.error
        return self.result


def make_registry(handler, requires_credential: bool = True) -> ToolRegistry:
    registry = ToolRegistry()
    registry.register(
        ToolDescriptor(
            name="echo",
            description="Echo the arguments",
            input_model=EchoInput,
            handler=handler,
            failure_prefix="Error echoing",
            requires_credential=requires_credential,
        )
    )
    return registry


class TestRegistration:
    """Tests for registering and listing tools."""

    def test_duplicate_name_rejected(self):
        """Registering a name twice fails."""
        registry = make_registry(Recorder())

        with pytest.raises(DuplicateToolError):
            registry.register(
                ToolDescriptor(
                    name="echo",
                    description="Again",
                    input_model=EchoInput,
                    handler=Recorder(),
                )
            )

    def test_list_tools_publishes_schema(self):
        """Listed tools carry the JSON Schema of their input model."""
        registry = make_registry(Recorder())

        tools = registry.list_tools()

        assert [tool.name for tool in tools] == ["echo"]
        schema = tools[0].inputSchema
        assert schema["required"] == ["a"]
        assert set(schema["properties"]) == {"a", "b"}

    def test_commerce_catalog(self, registry):
        """Every commerce tool is registered exactly once."""
        assert registry.names() == [
            "product-search",
            "get-base-sites",
            "order-history",
            "order-details",
            "add-to-cart",
            "get-cart",
            "update-cart-entry",
            "set-delivery-address",
            "set-delivery-mode",
            "get-delivery-modes",
            "place-order",
            "b2b-add-to-cart",
            "b2b-get-cart",
            "b2b-update-cart-entry",
            "b2b-place-order",
        ]
        assert len(registry) == 15
        assert "get-cart" in registry

    def test_commerce_schemas_use_wire_names(self, registry):
        """Advertised schemas use the camelCase argument names."""
        schema = registry.get("update-cart-entry").to_tool().inputSchema
        assert {"baseSiteId", "userId", "entryNumber", "quantity", "cartId", "fields"} <= set(
            schema["properties"]
        )


class TestDispatch:
    """Tests for the dispatch pipeline."""

    @pytest.mark.asyncio
    async def test_unknown_tool(self):
        """Unknown names yield an error envelope, never an exception."""
        registry = make_registry(Recorder())

        result = await registry.dispatch("nope", {}, ExecutionContext(credential="t"))

        assert result.isError is True
        assert "unknown tool" in envelope_text(result)

    @pytest.mark.asyncio
    async def test_defaults_applied_before_handler(self):
        """The handler sees validated arguments with defaults filled in."""
        handler = Recorder()
        registry = make_registry(handler)

        result = await registry.dispatch("echo", {"a": 5}, ExecutionContext(credential="t"))

        assert result.isError is False
        args, _ = handler.calls[0]
        assert args.a == 5
        assert args.b == "x"

    @pytest.mark.asyncio
    async def test_validation_error_names_fields(self):
        """Invalid arguments are rejected before the handler runs."""
        handler = Recorder()
        registry = make_registry(handler)

        result = await registry.dispatch(
            "echo", {"a": "not-a-number"}, ExecutionContext(credential="t")
        )

        assert result.isError is True
        assert "a:" in envelope_text(result)
        assert "'echo'" in envelope_text(result)
        assert handler.calls == []

    @pytest.mark.asyncio
    async def test_missing_arguments_validated(self):
        """Absent arguments are validated as an empty object."""
        registry = make_registry(Recorder())

        result = await registry.dispatch("echo", None, ExecutionContext(credential="t"))

        assert result.isError is True
        assert "a:" in envelope_text(result)

    @pytest.mark.asyncio
    async def test_missing_credential(self):
        """Credential-bearing tools refuse to run without one."""
        handler = Recorder()
        registry = make_registry(handler)

        result = await registry.dispatch("echo", {"a": 1}, ExecutionContext())

        assert result.isError is True
        assert "No access token provided" in envelope_text(result)
        assert handler.calls == []

    @pytest.mark.asyncio
    async def test_missing_credential_makes_no_upstream_call(self, registry, upstream):
        """A commerce tool without a credential never reaches the upstream."""
        result = await registry.dispatch(
            "get-cart",
            {"baseSiteId": "electronics-spa", "userId": "current"},
            ExecutionContext(),
        )

        assert result.isError is True
        assert upstream.calls == 0

    @pytest.mark.asyncio
    async def test_credential_not_required(self):
        """Tools may opt out of the credential check."""
        registry = make_registry(Recorder(), requires_credential=False)

        result = await registry.dispatch("echo", {"a": 1}, ExecutionContext())

        assert result.isError is False

    @pytest.mark.asyncio
    async def test_string_result_wrapped(self):
        """Plain string results become a single text block."""
        registry = make_registry(Recorder(result="hello"))

        result = await registry.dispatch("echo", {"a": 1}, ExecutionContext(credential="t"))

        assert envelope_text(result) == "hello"
        assert len(result.content) == 1

    @pytest.mark.asyncio
    async def test_envelope_result_passed_through(self):
        """Handlers may return a ready-made envelope."""
        envelope = text_result("ready")
        registry = make_registry(Recorder(result=envelope))

        result = await registry.dispatch("echo", {"a": 1}, ExecutionContext(credential="t"))

        assert result is envelope

    @pytest.mark.asyncio
    async def test_gateway_error_prefixed(self):
        """Upstream failures are reported with the tool's failure prefix."""
        registry = make_registry(Recorder(error=UpstreamHTTPError(503, "down")))

        result = await registry.dispatch("echo", {"a": 1}, ExecutionContext(credential="t"))

        assert result.isError is True
        assert envelope_text(result) == (
            "Error echoing: Commerce API error! status: 503, message: down"
        )

    @pytest.mark.asyncio
    async def test_unexpected_exception_contained(self):
        """Any handler exception becomes an error envelope."""
        registry = make_registry(Recorder(error=KeyError("code")))

        result = await registry.dispatch("echo", {"a": 1}, ExecutionContext(credential="t"))

        assert result.isError is True
        assert envelope_text(result).startswith("Error echoing:")
