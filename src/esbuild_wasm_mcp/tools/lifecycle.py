"""Engine lifecycle tools: explicit initialization and status."""

from __future__ import annotations

from typing import ClassVar

from ..engine import LoadOptions, get_lifecycle
from ..foundation.errors import JsonDict
from .base import BaseTool, EmptyParams, ToolMetadata


class InitializeTool(BaseTool[LoadOptions]):
    """(Re)loads the engine; reloading an already ready engine is allowed."""

    metadata: ClassVar[ToolMetadata] = ToolMetadata(
        name="esbuild_wasm_initialize",
        description=(
            "Initialize (or re-initialize) the esbuild-wasm engine, optionally from a remote URL "
            "or a local .wasm file, and return the resulting engine state"
        ),
    )
    params_schema: ClassVar[type[LoadOptions]] = LoadOptions

    async def _async_run(self, params: LoadOptions) -> JsonDict:
        state = await get_lifecycle().load(params)
        return state.to_wire()


class StatusTool(BaseTool[EmptyParams]):
    metadata: ClassVar[ToolMetadata] = ToolMetadata(
        name="esbuild_wasm_status",
        description="Report the esbuild-wasm engine state: status, version, options, last error and load time",
    )
    params_schema: ClassVar[type[EmptyParams]] = EmptyParams

    async def _async_run(self, params: EmptyParams) -> JsonDict:
        return get_lifecycle().get_state().to_wire()
