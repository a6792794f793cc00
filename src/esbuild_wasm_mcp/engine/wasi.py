"""Default engine: esbuild's WASI build executed with wasmtime.

Every call instantiates the compiled module in a fresh store with its own
argv, stdio files and directory mounts:

- the configured source root is mounted at ``/src`` and is the working directory
- a scratch directory is mounted at ``/out`` and collects all outputs

Runs happen in a thread, or in an isolated worker process (see :mod:`.pool`)
when the engine was initialized with ``worker=True``. A non-zero exit raises
:class:`BuildFailure` carrying the diagnostics parsed from esbuild's log.
"""

from __future__ import annotations

import asyncio
import tempfile
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Sequence

import httpx
import orjson
import wasmtime

from ..foundation.config import EngineSettings, get_settings
from ..foundation.errors import BuildFailure, Diagnostic, EngineLoadError, ErrorCode, EsbuildError, JsonDict
from .messages import analyze_metafile as render_analysis, format_messages as render_messages, parse_log
from .flags import entry_point_args, to_cli_flags
from .pool import WorkerPool
from .protocol import BuildResult, MessageKind, ModuleSource, OutputFile, TransformResult

SRC_GUEST = "/src"
OUT_GUEST = "/out"
_METAFILE = ".esbuild-metafile.json"
_LOG_FLAGS = ("--color=false", "--log-level=warning")
# Options this engine controls itself
_RESERVED = ("color", "logLevel", "absWorkingDir", "stdin")
_BUNDLED_MODULE = Path(__file__).resolve().parent.parent / "resources" / "esbuild.wasm"
_NPM_MODULE = PurePosixPath("node_modules/@esbuild/wasi-preview1/esbuild.wasm")


@dataclass(slots=True)
class _Run:
    """Outcome of one module invocation."""

    exit_code: int
    stdout: str
    stderr: str
    files: dict[str, bytes] = field(default_factory=dict)

    def raise_for_status(self) -> None:
        if self.exit_code == 0:
            return
        errors, warnings = parse_log(self.stderr)
        if not errors:
            text = self.stderr.strip() or f"esbuild exited with code {self.exit_code}"
            errors = [Diagnostic(text=text)]
        raise BuildFailure(errors, warnings)

    @property
    def warnings(self) -> list[Diagnostic]:
        return parse_log(self.stderr)[1]

    def text(self, name: str) -> str:
        """Decoded output file, empty when absent."""
        return self.files.get(name, b"").decode("utf-8", errors="replace")


class WasiEngine:
    """Engine backed by ``esbuild.wasm`` (the ``@esbuild/wasi-preview1`` build).

    Args:
        settings: Engine settings (source root, default module path, fetch timeout)
        pool: Worker pool for isolated runs; created on first use when omitted
    """

    __slots__ = ("_settings", "_wasm", "_linker", "_module", "_image", "_version", "_pool")

    def __init__(self, settings: EngineSettings | None = None, *, pool: WorkerPool | None = None) -> None:
        self._settings = settings or get_settings().engine
        self._wasm = wasmtime.Engine()
        self._linker = wasmtime.Linker(self._wasm)
        self._linker.define_wasi()
        self._module: wasmtime.Module | None = None
        self._image: bytes | None = None
        self._version: str | None = None
        self._pool = pool

    @property
    def version(self) -> str | None:
        return self._version

    @property
    def root_dir(self) -> Path:
        return self._settings.root_dir

    # ─────────────────────────────────────────────────────────────────
    # Loading
    # ─────────────────────────────────────────────────────────────────

    async def compile(self, data: bytes) -> wasmtime.Module:
        """Compile module bytes off the event loop."""
        return await asyncio.to_thread(wasmtime.Module, self._wasm, data)

    async def initialize(self, source: ModuleSource, *, worker: bool = False) -> None:
        if source.module is not None:
            if not isinstance(source.module, wasmtime.Module):
                raise EngineLoadError(f"Expected a compiled wasmtime.Module, got {type(source.module).__name__}")
            module = source.module
        elif source.url is not None:
            module = await self.compile(await self._fetch(source.url))
        else:
            module = await self.compile(await asyncio.to_thread(self._default_module_path().read_bytes))

        image = await asyncio.to_thread(module.serialize) if worker else None
        run = await self._call(module, image, ["--version"], None)
        run.raise_for_status()
        self._module, self._image, self._version = module, image, run.stdout.strip()

    async def _fetch(self, url: str) -> bytes:
        async with httpx.AsyncClient(follow_redirects=True, timeout=self._settings.fetch_timeout) as client:
            response = await client.get(url)
            response.raise_for_status()
            return response.content

    def _default_module_path(self) -> Path:
        if (configured := self._settings.module_path) is not None:
            if not configured.is_file():
                raise EngineLoadError(f"Configured engine module not found: {configured}", ErrorCode.NOT_FOUND)
            return configured
        for candidate in (_BUNDLED_MODULE, self.root_dir / _NPM_MODULE):
            if candidate.is_file():
                return candidate
        raise EngineLoadError(
            "No default esbuild.wasm found. Set ESBUILD_WASM_ENGINE_MODULE_PATH, pass localModulePath, "
            "or install @esbuild/wasi-preview1",
            ErrorCode.NOT_FOUND,
        )

    # ─────────────────────────────────────────────────────────────────
    # Engine API
    # ─────────────────────────────────────────────────────────────────

    async def build(self, options: JsonDict) -> BuildResult:
        opts = {k: v for k, v in options.items() if k not in _RESERVED}
        entry_points = opts.pop("entryPoints", None)
        outdir, outfile = opts.pop("outdir", None), opts.pop("outfile", None)
        write, want_metafile = bool(opts.pop("write", False)), bool(opts.pop("metafile", False))

        args = [*entry_point_args(entry_points), *to_cli_flags(opts)]
        if outfile:
            args.append(f"--outfile={OUT_GUEST}/{PurePosixPath(outfile).name}")
            dest = self.root_dir / PurePosixPath(outfile).parent
        else:
            args.append(f"--outdir={OUT_GUEST}")
            dest = self.root_dir / (outdir or ".")
        if want_metafile:
            args.append(f"--metafile={OUT_GUEST}/{_METAFILE}")

        run = await self._run(args)
        run.raise_for_status()

        metafile = orjson.loads(run.files.pop(_METAFILE)) if want_metafile and _METAFILE in run.files else None
        outputs = {dest / rel: data for rel, data in sorted(run.files.items())}
        if write:
            await asyncio.to_thread(_write_files, outputs)

        return BuildResult(
            output_files=[OutputFile(path=str(p), text=d.decode("utf-8", errors="replace")) for p, d in outputs.items()],
            warnings=run.warnings,
            metafile=metafile,
        )

    async def context(self, options: JsonDict) -> WasiBuildContext:
        self._require_module()
        return WasiBuildContext(self, dict(options))

    async def transform(self, code: str, options: JsonDict) -> TransformResult:
        opts = {k: v for k, v in options.items() if k not in _RESERVED}
        out_name = "out.css" if opts.get("loader") in ("css", "local-css", "global-css") else "out.js"
        if opts.get("sourcemap") is True:
            opts["sourcemap"] = "external"

        run = await self._run([*to_cli_flags(opts), f"--outfile={OUT_GUEST}/{out_name}"], stdin=code)
        run.raise_for_status()

        return TransformResult(code=run.text(out_name), map=run.text(f"{out_name}.map"), warnings=run.warnings)

    async def analyze_metafile(self, metafile: JsonDict, *, verbose: bool = False) -> str:
        return render_analysis(metafile, verbose=verbose)

    async def format_messages(
        self, messages: Sequence[Diagnostic | JsonDict], *, kind: MessageKind, color: bool = False,
    ) -> list[str]:
        return render_messages(messages, kind, color=color)

    # ─────────────────────────────────────────────────────────────────
    # Execution
    # ─────────────────────────────────────────────────────────────────

    def _require_module(self) -> wasmtime.Module:
        if self._module is None:
            raise EngineLoadError("Engine not initialized")
        return self._module

    async def _run(self, args: list[str], stdin: str | None = None) -> _Run:
        return await self._call(self._require_module(), self._image, [*args, *_LOG_FLAGS], stdin)

    async def _call(self, module: wasmtime.Module, image: bytes | None, args: list[str], stdin: str | None) -> _Run:
        """Run the module off the event loop: in a worker process when ``image`` is set, a thread otherwise."""
        if image is None:
            return await asyncio.to_thread(self._execute, module, args, stdin)
        if self._pool is None:
            self._pool = WorkerPool(self._settings.worker_processes)
        return await self._pool.run(execute_isolated, image, str(self.root_dir), args, stdin)

    def _execute(self, module: wasmtime.Module, args: list[str], stdin: str | None) -> _Run:
        return _execute(self._wasm, self._linker, module, self.root_dir, args, stdin)


def execute_isolated(image: bytes, root_dir: str, args: list[str], stdin: str | None) -> _Run:
    """Worker-process entry: rebuild the module from its serialized image and run it."""
    wasm = wasmtime.Engine()
    linker = wasmtime.Linker(wasm)
    linker.define_wasi()
    return _execute(wasm, linker, wasmtime.Module.deserialize(wasm, image), Path(root_dir), args, stdin)


def _execute(
    wasm: wasmtime.Engine,
    linker: wasmtime.Linker,
    module: wasmtime.Module,
    root_dir: Path,
    args: list[str],
    stdin: str | None,
) -> _Run:
    with tempfile.TemporaryDirectory(prefix="esbuild-wasm-") as tmp:
        scratch, out = Path(tmp), Path(tmp) / "out"
        out.mkdir()
        stdin_path, stdout_path, stderr_path = scratch / "stdin", scratch / "stdout", scratch / "stderr"
        stdin_path.write_text(stdin or "", encoding="utf-8")

        wasi = wasmtime.WasiConfig()
        wasi.argv = ["esbuild", *args]
        wasi.env = [("PWD", SRC_GUEST)]
        wasi.stdin_file = str(stdin_path)
        wasi.stdout_file = str(stdout_path)
        wasi.stderr_file = str(stderr_path)
        wasi.preopen_dir(str(root_dir), SRC_GUEST)
        wasi.preopen_dir(str(out), OUT_GUEST)

        store = wasmtime.Store(wasm)
        store.set_wasi(wasi)
        instance = linker.instantiate(store, module)
        start = instance.exports(store)["_start"]
        try:
            start(store)  # type: ignore[operator]
            exit_code = 0
        except wasmtime.ExitTrap as e:
            exit_code = e.code

        files = {p.relative_to(out).as_posix(): p.read_bytes() for p in out.rglob("*") if p.is_file()}
        return _Run(
            exit_code=exit_code,
            stdout=stdout_path.read_text(encoding="utf-8", errors="replace"),
            stderr=stderr_path.read_text(encoding="utf-8", errors="replace"),
            files=files,
        )


def _write_files(outputs: dict[Path, bytes]) -> None:
    for path, data in outputs.items():
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)


class WasiBuildContext:
    """Incremental build handle; each rebuild re-runs the build with the same options."""

    __slots__ = ("_engine", "_options", "_disposed")

    def __init__(self, engine: WasiEngine, options: JsonDict) -> None:
        self._engine, self._options, self._disposed = engine, options, False

    async def rebuild(self) -> BuildResult:
        if self._disposed:
            raise EsbuildError("Build context has been disposed")
        return await self._engine.build(self._options)

    async def dispose(self) -> None:
        self._disposed = True
