"""Engine contract consumed by the lifecycle manager and the tools.

Any object satisfying :class:`Engine` can be plugged into
:class:`~esbuild_wasm_mcp.engine.lifecycle.ModuleLifecycle`; the default is
:class:`~esbuild_wasm_mcp.engine.wasi.WasiEngine`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Protocol, Sequence, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from ..foundation.errors import Diagnostic, JsonDict

MessageKind = Literal["error", "warning"]


@dataclass(frozen=True, slots=True)
class ModuleSource:
    """Resolved module reference handed to ``Engine.initialize``.

    Exactly one of ``module``/``url`` is set, or neither for the default resource.
    """

    module: Any = None
    url: str | None = None

    @property
    def is_default(self) -> bool:
        return self.module is None and self.url is None


class OutputFile(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    text: str


class BuildResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    output_files: list[OutputFile] = Field(default_factory=list, alias="outputFiles")
    errors: list[Diagnostic] = Field(default_factory=list)
    warnings: list[Diagnostic] = Field(default_factory=list)
    metafile: JsonDict | None = None
    mangle_cache: dict[str, str | bool] | None = Field(default=None, alias="mangleCache")


class TransformResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    code: str
    map: str = ""
    warnings: list[Diagnostic] = Field(default_factory=list)
    mangle_cache: dict[str, str | bool] | None = Field(default=None, alias="mangleCache")


@runtime_checkable
class BuildContext(Protocol):
    """Incremental build handle returned by ``Engine.context``."""

    async def rebuild(self) -> BuildResult: ...
    async def dispose(self) -> None: ...


@runtime_checkable
class Engine(Protocol):
    """Callable surface of a loaded compiler/bundler engine."""

    @property
    def version(self) -> str | None: ...

    async def compile(self, data: bytes) -> Any: ...
    async def initialize(self, source: ModuleSource, *, worker: bool = False) -> None: ...
    async def build(self, options: JsonDict) -> BuildResult: ...
    async def context(self, options: JsonDict) -> BuildContext: ...
    async def transform(self, code: str, options: JsonDict) -> TransformResult: ...
    async def analyze_metafile(self, metafile: JsonDict, *, verbose: bool = False) -> str: ...
    async def format_messages(
        self, messages: Sequence[Diagnostic | JsonDict], *, kind: MessageKind, color: bool = False,
    ) -> list[str]: ...
