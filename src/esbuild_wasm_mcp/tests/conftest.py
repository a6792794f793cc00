"""Shared fixtures: a scriptable in-memory engine and a fresh lifecycle per test."""

from __future__ import annotations

import asyncio
from typing import Any, Sequence

import pytest

from esbuild_wasm_mcp.engine import (
    BuildResult,
    ModuleLifecycle,
    ModuleSource,
    TransformResult,
    reset_lifecycle,
    set_lifecycle,
)
from esbuild_wasm_mcp.engine.messages import analyze_metafile, format_messages
from esbuild_wasm_mcp.foundation.config import EngineSettings, clear_settings_cache
from esbuild_wasm_mcp.foundation.errors import Diagnostic, JsonDict
from esbuild_wasm_mcp.foundation.logging import configure_logging


class FakeContext:
    def __init__(self, engine: FakeEngine, options: JsonDict) -> None:
        self.engine, self.options = engine, options
        self.disposed = False

    async def rebuild(self) -> BuildResult:
        return await self.engine.build(self.options)

    async def dispose(self) -> None:
        self.disposed = True


class FakeEngine:
    """Engine double recording every call.

    ``fail_with`` makes initialize raise; ``gate`` (an Event) holds initialize
    until set; ``build_error``/``transform_error`` make the calls raise.
    """

    def __init__(self, version: str = "0.24.0") -> None:
        self._next_version = version
        self._version: str | None = None
        self.initialized: list[tuple[ModuleSource, bool]] = []
        self.compiled: list[bytes] = []
        self.builds: list[JsonDict] = []
        self.transforms: list[tuple[str, JsonDict]] = []
        self.contexts: list[FakeContext] = []
        self.fail_with: BaseException | None = None
        self.gate: asyncio.Event | None = None
        self.build_result = BuildResult(output_files=[{"path": "/root/out.js", "text": "console.log(1);\n"}])
        self.build_error: BaseException | None = None
        self.transform_map = ""
        self.transform_error: BaseException | None = None

    @property
    def version(self) -> str | None:
        return self._version

    async def compile(self, data: bytes) -> Any:
        self.compiled.append(data)
        return ("compiled", data)

    async def initialize(self, source: ModuleSource, *, worker: bool = False) -> None:
        self.initialized.append((source, worker))
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with
        self._version = self._next_version

    async def build(self, options: JsonDict) -> BuildResult:
        self.builds.append(options)
        if self.build_error is not None:
            raise self.build_error
        return self.build_result

    async def context(self, options: JsonDict) -> FakeContext:
        ctx = FakeContext(self, options)
        self.contexts.append(ctx)
        return ctx

    async def transform(self, code: str, options: JsonDict) -> TransformResult:
        self.transforms.append((code, options))
        if self.transform_error is not None:
            raise self.transform_error
        return TransformResult(code=code.replace(": number", ""), map=self.transform_map)

    async def analyze_metafile(self, metafile: JsonDict, *, verbose: bool = False) -> str:
        return analyze_metafile(metafile, verbose=verbose)

    async def format_messages(
        self, messages: Sequence[Diagnostic | JsonDict], *, kind: str, color: bool = False,
    ) -> list[str]:
        return format_messages(messages, kind, color=color)  # type: ignore[arg-type]


async def read_fixture_file(path: str) -> bytes:
    if path.startswith("/missing"):
        raise FileNotFoundError(f"[Errno 2] No such file or directory: '{path}'")
    return b"\0asm" + path.encode()


@pytest.fixture(autouse=True)
def _quiet_logging():
    configure_logging("none")
    yield
    clear_settings_cache()


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def lifecycle(engine: FakeEngine, tmp_path):
    """Process-wide lifecycle driving the fake engine."""
    lc = ModuleLifecycle(engine, read_file=read_fixture_file, settings=EngineSettings(root_dir=tmp_path))
    set_lifecycle(lc)
    yield lc
    reset_lifecycle()
