"""Single-file transform tool."""

from __future__ import annotations

from typing import ClassVar

from ..engine import get_engine
from ..foundation.errors import JsonDict
from ..options import normalize
from .base import BaseTool, ToolMetadata
from .schemas import TransformParams

DEFAULT_LOADER = "ts"


class TransformTool(BaseTool[TransformParams]):
    metadata: ClassVar[ToolMetadata] = ToolMetadata(
        name="esbuild_wasm_transform",
        description="Transform source code (TypeScript, JSX, CSS, etc.) to JavaScript or CSS using esbuild-wasm",
    )
    params_schema: ClassVar[type[TransformParams]] = TransformParams

    async def _async_run(self, params: TransformParams) -> JsonDict:
        engine = await get_engine()
        options, code = normalize(params.to_request())
        options.setdefault("loader", DEFAULT_LOADER)

        result = await engine.transform(code or "", options)

        payload: JsonDict = {"code": result.code, "warnings": [d.to_wire() for d in result.warnings]}
        if result.map:
            payload["map"] = result.map
        if result.mangle_cache:
            payload["mangleCache"] = result.mangle_cache
        return payload
