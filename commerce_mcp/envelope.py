"""Response envelope helpers.

Every tool call answers with a ``CallToolResult``: an ordered list of
content blocks plus an ``isError`` flag.
"""

from mcp.types import CallToolResult, TextContent


def text_result(text: str) -> CallToolResult:
    """Build a successful single-text-block envelope."""
    return CallToolResult(content=[TextContent(type="text", text=text)])


def error_result(text: str) -> CallToolResult:
    """Build an error envelope."""
    return CallToolResult(content=[TextContent(type="text", text=text)], isError=True)


def envelope_text(result: CallToolResult) -> str:
    """Concatenate the text blocks of an envelope."""
    return "\n".join(
        block.text for block in result.content if isinstance(block, TextContent)
    )
