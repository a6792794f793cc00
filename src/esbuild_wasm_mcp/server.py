"""MCP server for the esbuild-wasm tools.

:class:`ToolServer` holds the registry and the invocation logic shared by
adapters; :class:`MCPServer` exposes the tools over the MCP protocol through
FastMCP (stdio for editor and desktop clients, SSE or streamable HTTP for
remote ones).

Example:
    >>> server = MCPServer("esbuild-wasm", default_registry())
    >>> server.run(transport="stdio")
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Literal

from fastmcp.exceptions import ToolError
from fastmcp.tools import Tool, ToolResult
from pydantic import BaseModel, ValidationError

from .foundation.errors import ErrorCode, EsbuildError, ToolResponse, to_error_response
from .foundation.logging import get_logger
from .tools import BaseTool, ToolRegistry, default_registry

log = get_logger("esbuild_wasm_mcp.server")

Transport = Literal["stdio", "sse", "streamable-http"]
Invoker = Callable[[str, Mapping[str, object]], Awaitable[ToolResponse]]


# ═══════════════════════════════════════════════════════════════════════════════
# Schema Bridge
# ═══════════════════════════════════════════════════════════════════════════════


def get_tool_schema(tool: BaseTool[BaseModel]) -> dict[str, object]:
    """JSON schema of a tool's params, as advertised to clients."""
    schema = tool.params_schema.model_json_schema(by_alias=True)
    schema.pop("title", None)
    schema.setdefault("type", "object")
    return schema


class RegistryTool(Tool):
    """FastMCP tool that hands the raw argument mapping to a server's ``invoke``.

    Validation stays with the params schema, so options the schema does not
    name still reach the engine.
    """

    def __init__(self, invoke: Invoker, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._invoke = invoke

    @classmethod
    def from_tool(cls, invoke: Invoker, tool: BaseTool[BaseModel]) -> RegistryTool:
        return cls(
            invoke,
            name=tool.metadata.name,
            description=tool.metadata.description,
            parameters=get_tool_schema(tool),
        )

    async def run(self, arguments: dict[str, Any]) -> ToolResult:
        response = await self._invoke(self.name, arguments)
        if response.failed:
            raise ToolError(response.text)
        return ToolResult(content=response.text)


# ═══════════════════════════════════════════════════════════════════════════════
# Abstract Server
# ═══════════════════════════════════════════════════════════════════════════════


class ToolServer(ABC):
    """Base for server adapters sharing registry lookup and validation."""

    __slots__ = ("_name", "_registry")

    def __init__(self, name: str, registry: ToolRegistry | None = None) -> None:
        self._name = name
        self._registry = registry if registry is not None else default_registry()

    @property
    def name(self) -> str:
        return self._name

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    @abstractmethod
    def run(self, **kwargs: object) -> None:
        """Start the server (blocking)."""
        ...

    def list_tools(self) -> list[dict[str, object]]:
        """All enabled tools with their parameter schemas."""
        return [
            {
                "name": tool.metadata.name,
                "description": tool.metadata.description,
                "inputSchema": get_tool_schema(tool),
            }
            for tool in self._registry
            if tool.metadata.enabled
        ]

    async def invoke(self, tool_name: str, arguments: Mapping[str, object] | None = None) -> ToolResponse:
        """Invoke a tool by name. Failures come back as error responses, never raised."""
        tool = self._registry.get(tool_name)
        if tool is None or not tool.metadata.enabled:
            return to_error_response(EsbuildError(f"Tool '{tool_name}' not found", ErrorCode.NOT_FOUND))

        try:
            params = tool.params_schema.model_validate(dict(arguments or {}))
        except ValidationError as e:
            log.warning("invalid parameters", tool=tool_name, errors=e.error_count())
            return to_error_response(EsbuildError(f"Invalid parameters: {e}", ErrorCode.INVALID_PARAMS))

        return await tool.arun(params)


# ═══════════════════════════════════════════════════════════════════════════════
# FastMCP Adapter
# ═══════════════════════════════════════════════════════════════════════════════


class MCPServer(ToolServer):
    """FastMCP-backed server.

    Each tool is registered as a :class:`RegistryTool` advertising its params
    schema, so clients see the camelCase option names. Error responses are
    raised as FastMCP ``ToolError`` and reach the client as ``isError``
    results carrying the same text.
    """

    __slots__ = ("_mcp",)

    def __init__(self, name: str, registry: ToolRegistry | None = None) -> None:
        super().__init__(name, registry)
        self._mcp = self._create_server()

    def _create_server(self):
        from fastmcp import FastMCP

        mcp = FastMCP(self._name)
        for tool in self._registry:
            if tool.metadata.enabled:
                mcp.add_tool(RegistryTool.from_tool(self.invoke, tool))
        return mcp

    def run(
        self,
        transport: Transport = "stdio",
        *,
        host: str = "127.0.0.1",
        port: int = 8080,
    ) -> None:
        """Start serving. HTTP transports bind to ``host``/``port``."""
        log.info("server starting", name=self._name, transport=transport, tools=len(self._registry))
        if transport == "stdio":
            self._mcp.run()
        else:
            self._mcp.run(transport=transport, host=host, port=port)

    @property
    def fastmcp(self):
        """Underlying FastMCP instance."""
        return self._mcp
