"""Registry of the tool endpoints exposed by the server."""

from __future__ import annotations

from collections.abc import Iterator

from pydantic import BaseModel

from .base import BaseTool, ToolMetadata


class ToolRegistry:
    """Name-indexed collection of tools.

    Example:
        >>> registry = ToolRegistry()
        >>> registry.register(StatusTool())
        >>> registry.get("esbuild_wasm_status")
        <StatusTool esbuild_wasm_status>
    """

    __slots__ = ("_tools",)

    def __init__(self) -> None:
        self._tools: dict[str, BaseTool[BaseModel]] = {}

    def register(self, tool: BaseTool[BaseModel]) -> None:
        """Register a tool instance; names must be unique."""
        name = tool.metadata.name
        if name in self._tools:
            raise ValueError(f"Tool '{name}' already registered. Use unregister() first.")
        self._tools[name] = tool

    def register_all(self, *tools: BaseTool[BaseModel]) -> None:
        for tool in tools:
            self.register(tool)

    def unregister(self, name: str) -> bool:
        """Remove a tool by name. Returns True if found."""
        return self._tools.pop(name, None) is not None

    def get(self, name: str) -> BaseTool[BaseModel] | None:
        return self._tools.get(name)

    def __getitem__(self, name: str) -> BaseTool[BaseModel]:
        return self._tools[name]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[BaseTool[BaseModel]]:
        return iter(self._tools.values())

    # ─────────────────────────────────────────────────────────────────
    # Querying
    # ─────────────────────────────────────────────────────────────────

    def list_tools(self, *, enabled_only: bool = True) -> list[ToolMetadata]:
        """Metadata for all registered tools."""
        return [t.metadata for t in self._tools.values() if not enabled_only or t.metadata.enabled]

    def names(self, *, enabled_only: bool = True) -> list[str]:
        return [m.name for m in self.list_tools(enabled_only=enabled_only)]


def default_registry() -> ToolRegistry:
    """A registry holding every esbuild-wasm tool."""
    from .analyze import AnalyzeMetafileTool, FormatMessagesTool
    from .build import BuildTool, ContextTool
    from .lifecycle import InitializeTool, StatusTool
    from .transform import TransformTool

    registry = ToolRegistry()
    registry.register_all(
        BuildTool(),
        ContextTool(),
        TransformTool(),
        AnalyzeMetafileTool(),
        FormatMessagesTool(),
        InitializeTool(),
        StatusTool(),
    )
    return registry
