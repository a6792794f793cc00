"""Bundling tools: one-shot build and incremental context."""

from __future__ import annotations

from typing import ClassVar

from ..engine import BuildResult, get_engine
from ..foundation.errors import JsonDict
from ..options import normalize
from .base import BaseTool, ToolMetadata
from .schemas import BuildParams


def build_options(params: BuildParams) -> JsonDict:
    """Normalized options with the bundling defaults (bundle on, nothing written)."""
    options = normalize(params.to_request()).options
    options.setdefault("bundle", True)
    options.setdefault("write", False)
    return options


def build_payload(result: BuildResult, *, include_metafile: bool = True) -> JsonDict:
    payload: JsonDict = {
        "outputFiles": [{"path": f.path, "text": f.text} for f in result.output_files],
        "warnings": [d.to_wire() for d in result.warnings],
        "errors": [d.to_wire() for d in result.errors],
    }
    if include_metafile and result.metafile:
        payload["metafile"] = result.metafile
    if result.mangle_cache:
        payload["mangleCache"] = result.mangle_cache
    return payload


class BuildTool(BaseTool[BuildParams]):
    metadata: ClassVar[ToolMetadata] = ToolMetadata(
        name="esbuild_wasm_build",
        description=(
            "Bundle entry point files using esbuild-wasm. Returns output contents in memory "
            "(does not write to disk by default)."
        ),
    )
    params_schema: ClassVar[type[BuildParams]] = BuildParams

    async def _async_run(self, params: BuildParams) -> JsonDict:
        engine = await get_engine()
        return build_payload(await engine.build(build_options(params)))


class ContextTool(BaseTool[BuildParams]):
    """Creates a context, rebuilds once, and always disposes it."""

    metadata: ClassVar[ToolMetadata] = ToolMetadata(
        name="esbuild_wasm_context",
        description=(
            "Create an esbuild-wasm context for incremental builds. Returns the build result. "
            "The context is disposed after use."
        ),
    )
    params_schema: ClassVar[type[BuildParams]] = BuildParams

    async def _async_run(self, params: BuildParams) -> JsonDict:
        engine = await get_engine()
        ctx = await engine.context(build_options(params))
        try:
            result = await ctx.rebuild()
        finally:
            await ctx.dispose()
        return build_payload(result, include_metafile=False)
