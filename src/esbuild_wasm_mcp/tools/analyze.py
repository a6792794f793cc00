"""Metafile analysis and message formatting tools."""

from __future__ import annotations

from typing import ClassVar

import orjson

from ..engine import get_engine
from ..foundation.errors import ErrorCode, EsbuildError, JsonDict
from .base import BaseTool, ToolMetadata
from .schemas import AnalyzeMetafileParams, FormatMessagesParams


def parse_metafile(text: str) -> JsonDict:
    """Decode a metafile JSON string; malformed input is a validation failure."""
    try:
        metafile = orjson.loads(text)
    except orjson.JSONDecodeError as e:
        raise EsbuildError(f"Invalid JSON in metafile: {e}", ErrorCode.PARSE_ERROR) from e
    if not isinstance(metafile, dict):
        raise EsbuildError("Invalid JSON in metafile: expected an object", ErrorCode.PARSE_ERROR)
    return metafile


class AnalyzeMetafileTool(BaseTool[AnalyzeMetafileParams]):
    metadata: ClassVar[ToolMetadata] = ToolMetadata(
        name="esbuild_wasm_analyze_metafile",
        description="Analyze an esbuild metafile and return a human-readable size breakdown of the bundle",
    )
    params_schema: ClassVar[type[AnalyzeMetafileParams]] = AnalyzeMetafileParams

    async def _async_run(self, params: AnalyzeMetafileParams) -> str:
        metafile = parse_metafile(params.metafile)  # before touching the engine
        engine = await get_engine()
        return await engine.analyze_metafile(metafile, verbose=bool(params.verbose))


class FormatMessagesTool(BaseTool[FormatMessagesParams]):
    metadata: ClassVar[ToolMetadata] = ToolMetadata(
        name="esbuild_wasm_format_messages",
        description="Format esbuild error or warning messages into human-readable strings",
    )
    params_schema: ClassVar[type[FormatMessagesParams]] = FormatMessagesParams

    async def _async_run(self, params: FormatMessagesParams) -> list[str]:
        engine = await get_engine()
        return await engine.format_messages(params.messages, kind=params.kind, color=False)
