"""Parameter schemas for the tool endpoints.

Fields are snake_case in Python and camelCase on the wire (esbuild's own option
names). Unknown fields are accepted and passed through to the engine.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..foundation.errors import Diagnostic, JsonDict

Format = Literal["iife", "cjs", "esm"]
Platform = Literal["browser", "node", "neutral"]
SourceMap = Literal["linked", "inline", "external", "both"]
Loader = Literal[
    "base64", "binary", "copy", "css", "dataurl", "default", "empty", "file", "global-css",
    "js", "json", "jsx", "local-css", "text", "ts", "tsx",
]


class WireOptions(BaseModel):
    """Base for option schemas: camelCase aliases, extra fields allowed."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    def to_request(self) -> JsonDict:
        """Wire-named mapping of the fields that were set."""
        return self.model_dump(by_alias=True, exclude_none=True)


class CommonOptions(WireOptions):
    """Options shared by build, context and transform."""

    target: str | list[str] | None = Field(default=None, description="Language target(s), e.g. 'es2020' or ['chrome58']")
    format: Format | None = Field(default=None, description="Output module format")
    platform: Platform | None = Field(default=None, description="Target platform")
    minify: bool | None = Field(default=None, description="Enable all minification")
    minify_whitespace: bool | None = None
    minify_identifiers: bool | None = None
    minify_syntax: bool | None = None
    sourcemap: bool | SourceMap | None = Field(default=None, description="Source map generation mode")
    sources_content: bool | None = None
    define: dict[str, str] | None = Field(default=None, description="Global identifier replacements")
    pure: list[str] | None = None
    drop: list[Literal["console", "debugger"]] | None = None
    drop_labels: list[str] | None = None
    charset: Literal["ascii", "utf8"] | None = None
    tree_shaking: bool | None = None
    ignore_annotations: bool | None = None
    legal_comments: Literal["none", "inline", "eof", "linked", "external"] | None = None
    jsx: Literal["transform", "preserve", "automatic"] | None = None
    jsx_factory: str | None = None
    jsx_fragment: str | None = None
    jsx_import_source: str | None = None
    jsx_dev: bool | None = None
    keep_names: bool | None = None
    mangle_props: str | None = Field(default=None, description="Regular expression selecting properties to mangle")
    reserve_props: str | None = Field(default=None, description="Regular expression of properties never mangled")
    mangle_quoted: bool | None = None
    global_name: str | None = None
    banner: dict[str, str] | None = None
    footer: dict[str, str] | None = None
    supported: dict[str, bool] | None = None
    tsconfig_raw: str | dict[str, Any] | None = None
    line_limit: int | None = None


class BuildParams(CommonOptions):
    """Options for build and context."""

    entry_points: list[str] | dict[str, str] = Field(..., description="Entry point files, relative to the source root")
    bundle: bool | None = Field(default=None, description="Inline imported dependencies (default true)")
    outdir: str | None = None
    outfile: str | None = None
    outbase: str | None = None
    external: list[str] | None = None
    packages: Literal["bundle", "external"] | None = None
    alias: dict[str, str] | None = None
    loader: dict[str, Loader] | None = Field(default=None, description="File extension to loader mapping")
    resolve_extensions: list[str] | None = None
    main_fields: list[str] | None = None
    conditions: list[str] | None = None
    write: bool | None = Field(default=None, description="Write outputs to disk (default false)")
    metafile: bool | None = Field(default=None, description="Return the build metafile")
    splitting: bool | None = None
    public_path: str | None = None
    inject: list[str] | None = None
    chunk_names: str | None = None
    entry_names: str | None = None
    asset_names: str | None = None
    out_extension: dict[str, str] | None = None
    tsconfig: str | None = None
    preserve_symlinks: bool | None = None


class TransformParams(CommonOptions):
    """Options for transform."""

    code: str = Field(..., description="Source text to transform")
    loader: Loader | None = Field(default=None, description="How to interpret the code (default 'ts')")
    sourcefile: str | None = Field(default=None, description="File name used in messages and source maps")


class AnalyzeMetafileParams(BaseModel):
    metafile: str = Field(..., description="Metafile JSON produced by a build with metafile=true")
    verbose: bool | None = Field(default=None, description="Include why each file is in the bundle")


class FormatMessagesParams(BaseModel):
    messages: list[Diagnostic] = Field(..., description="Messages as returned in errors/warnings")
    kind: Literal["error", "warning"] = Field(..., description="Whether to render as errors or warnings")
