"""Tests for the WASI engine: module resolution, argv mapping, output handling.

These run without an esbuild.wasm binary. Module runs are scripted by replacing
``WasiEngine._execute`` (or the isolated worker entry) with a canned ``_Run``.
"""

from __future__ import annotations

import asyncio
import time
from concurrent.futures import ThreadPoolExecutor

import pytest
import wasmtime

from esbuild_wasm_mcp.engine import ModuleSource
from esbuild_wasm_mcp.engine import wasi as wasi_module
from esbuild_wasm_mcp.engine.pool import WorkerPool
from esbuild_wasm_mcp.engine.wasi import WasiEngine, _Run
from esbuild_wasm_mcp.foundation.config import EngineSettings
from esbuild_wasm_mcp.foundation.errors import BuildFailure, EngineLoadError, ErrorCode, EsbuildError

LOG = """\
✘ [ERROR] Expected ";" but found "x"

    <stdin>:1:4:
      1 │ let x
        ╵     ^

"""

WARNING_LOG = """\
▲ [WARNING] Unsupported source map comment

"""


@pytest.fixture
def wasi(tmp_path) -> WasiEngine:
    return WasiEngine(EngineSettings(root_dir=tmp_path))


@pytest.fixture
def scripted(monkeypatch, wasi):
    """Install a canned run in place of the module; returns the recorded (argv, stdin) calls."""

    def install(run: _Run, delay: float = 0.0) -> list[tuple[list[str], str | None]]:
        calls: list[tuple[list[str], str | None]] = []

        def execute(module, args, stdin):
            calls.append((args, stdin))
            time.sleep(delay)
            return run

        monkeypatch.setattr(WasiEngine, "_execute", staticmethod(execute))
        wasi._module = object()
        return calls

    return install


# ═════════════════════════════════════════════════════════════════════════════
# Module Resolution
# ═════════════════════════════════════════════════════════════════════════════


def test_configured_module_must_exist(tmp_path) -> None:
    engine = WasiEngine(EngineSettings(root_dir=tmp_path, module_path=tmp_path / "nope.wasm"))
    with pytest.raises(EngineLoadError) as exc:
        engine._default_module_path()
    assert exc.value.code is ErrorCode.NOT_FOUND


def test_configured_module_is_used(tmp_path) -> None:
    module = tmp_path / "esbuild.wasm"
    module.write_bytes(b"\0asm")
    engine = WasiEngine(EngineSettings(root_dir=tmp_path, module_path=module))
    assert engine._default_module_path() == module


def test_npm_package_module_is_found(tmp_path, wasi) -> None:
    module = tmp_path / "node_modules" / "@esbuild" / "wasi-preview1" / "esbuild.wasm"
    module.parent.mkdir(parents=True)
    module.write_bytes(b"\0asm")
    assert wasi._default_module_path() == module.resolve()


def test_missing_default_module_explains_options(wasi) -> None:
    with pytest.raises(EngineLoadError, match="ESBUILD_WASM_ENGINE_MODULE_PATH"):
        wasi._default_module_path()


@pytest.mark.asyncio
async def test_initialize_rejects_foreign_module_objects(wasi) -> None:
    with pytest.raises(EngineLoadError, match="wasmtime.Module"):
        await wasi.initialize(ModuleSource(module=b"raw bytes"))
    assert wasi.version is None


@pytest.mark.asyncio
async def test_calls_before_initialize_fail(wasi) -> None:
    with pytest.raises(EngineLoadError, match="not initialized"):
        await wasi.transform("let x", {"loader": "ts"})
    with pytest.raises(EngineLoadError):
        await wasi.context({"entryPoints": ["a.ts"]})


@pytest.mark.asyncio
async def test_text_helpers_work_without_module(wasi) -> None:
    assert await wasi.format_messages([{"text": "x"}], kind="error") == ["✘ [ERROR] x\n\n"]
    assert (await wasi.analyze_metafile({})).strip() == ""


# ═════════════════════════════════════════════════════════════════════════════
# Exit Handling
# ═════════════════════════════════════════════════════════════════════════════


def test_successful_run_does_not_raise() -> None:
    _Run(exit_code=0, stdout="0.24.0\n", stderr="").raise_for_status()


def test_failed_run_raises_parsed_diagnostics() -> None:
    with pytest.raises(BuildFailure) as exc:
        _Run(exit_code=1, stdout="", stderr=LOG).raise_for_status()
    (error,) = exc.value.errors
    assert error.text == 'Expected ";" but found "x"'
    assert error.location.file == "<stdin>"


def test_failed_run_without_log_reports_exit_code() -> None:
    with pytest.raises(BuildFailure) as exc:
        _Run(exit_code=2, stdout="", stderr="").raise_for_status()
    assert exc.value.errors[0].text == "esbuild exited with code 2"


def test_run_text_decodes_missing_files_as_empty() -> None:
    run = _Run(exit_code=0, stdout="", stderr="", files={"out.js": b"x;\n"})
    assert run.text("out.js") == "x;\n"
    assert run.text("out.js.map") == ""


# ═════════════════════════════════════════════════════════════════════════════
# Build
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_build_redirects_outdir_and_extracts_metafile(wasi, scripted) -> None:
    calls = scripted(_Run(exit_code=0, stdout="", stderr="", files={
        "a.js": b"x;\n",
        "chunks/b.js": b"y;\n",
        ".esbuild-metafile.json": b'{"inputs": {}, "outputs": {}}',
    }))
    result = await wasi.build({"entryPoints": ["src/a.ts"], "bundle": True, "outdir": "dist", "metafile": True})

    ((args, stdin),) = calls
    assert args == [
        "src/a.ts", "--bundle", "--outdir=/out", "--metafile=/out/.esbuild-metafile.json",
        "--color=false", "--log-level=warning",
    ]
    assert stdin is None
    assert result.metafile == {"inputs": {}, "outputs": {}}
    assert [f.path for f in result.output_files] == [
        str(wasi.root_dir / "dist" / "a.js"),
        str(wasi.root_dir / "dist" / "chunks" / "b.js"),
    ]
    assert result.output_files[0].text == "x;\n"
    assert not (wasi.root_dir / "dist").exists()


@pytest.mark.asyncio
async def test_build_outfile_maps_to_its_directory(wasi, scripted) -> None:
    calls = scripted(_Run(exit_code=0, stdout="", stderr="", files={"bundle.js": b"z;\n"}))
    result = await wasi.build({"entryPoints": ["a.ts"], "outfile": "build/bundle.js"})

    assert "--outfile=/out/bundle.js" in calls[0][0]
    assert not any(arg.startswith("--outdir") or arg.startswith("--metafile") for arg in calls[0][0])
    assert [f.path for f in result.output_files] == [str(wasi.root_dir / "build" / "bundle.js")]
    assert result.metafile is None


@pytest.mark.asyncio
async def test_build_write_copies_outputs_to_disk(wasi, scripted) -> None:
    scripted(_Run(exit_code=0, stdout="", stderr="", files={"a.js": b"x;\n", "a.js.map": b"{}"}))
    await wasi.build({"entryPoints": ["a.ts"], "outdir": "dist", "write": True})

    assert (wasi.root_dir / "dist" / "a.js").read_bytes() == b"x;\n"
    assert (wasi.root_dir / "dist" / "a.js.map").read_bytes() == b"{}"


@pytest.mark.asyncio
async def test_build_drops_options_the_engine_controls(wasi, scripted) -> None:
    calls = scripted(_Run(exit_code=0, stdout="", stderr=""))
    await wasi.build({"entryPoints": ["a.ts"], "color": True, "logLevel": "info", "absWorkingDir": "/x",
                      "stdin": {"contents": ""}, "minify": True})

    args = calls[0][0]
    assert "--minify" in args
    assert args[-2:] == ["--color=false", "--log-level=warning"]
    assert not any(arg.startswith(("--abs-working-dir", "--stdin", "--log-level=info", "--color=true"))
                   for arg in args)


@pytest.mark.asyncio
async def test_build_failure_carries_parsed_diagnostics(wasi, scripted) -> None:
    scripted(_Run(exit_code=1, stdout="", stderr=LOG))
    with pytest.raises(BuildFailure) as exc:
        await wasi.build({"entryPoints": ["a.ts"]})
    assert exc.value.errors[0].text == 'Expected ";" but found "x"'


@pytest.mark.asyncio
async def test_build_reports_warnings_from_log(wasi, scripted) -> None:
    scripted(_Run(exit_code=0, stdout="", stderr=WARNING_LOG))
    result = await wasi.build({"entryPoints": ["a.ts"]})
    assert [w.text for w in result.warnings] == ["Unsupported source map comment"]


# ═════════════════════════════════════════════════════════════════════════════
# Transform
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_transform_sends_code_on_stdin(wasi, scripted) -> None:
    calls = scripted(_Run(exit_code=0, stdout="", stderr="", files={"out.js": b"let x = 1;\n"}))
    result = await wasi.transform("let x: number = 1", {"loader": "ts"})

    ((args, stdin),) = calls
    assert args == ["--loader=ts", "--outfile=/out/out.js", "--color=false", "--log-level=warning"]
    assert stdin == "let x: number = 1"
    assert result.code == "let x = 1;\n"
    assert result.map == ""


@pytest.mark.asyncio
async def test_transform_sourcemap_true_is_external(wasi, scripted) -> None:
    calls = scripted(_Run(exit_code=0, stdout="", stderr="", files={"out.js": b"x;\n", "out.js.map": b'{"version":3}'}))
    result = await wasi.transform("x", {"loader": "js", "sourcemap": True})

    assert "--sourcemap=external" in calls[0][0]
    assert result.map == '{"version":3}'


@pytest.mark.asyncio
@pytest.mark.parametrize("loader", ["css", "local-css", "global-css"])
async def test_transform_css_writes_css_output(wasi, scripted, loader: str) -> None:
    calls = scripted(_Run(exit_code=0, stdout="", stderr="", files={"out.css": b"a{color:red}\n"}))
    result = await wasi.transform("a { color: red }", {"loader": loader})

    assert "--outfile=/out/out.css" in calls[0][0]
    assert result.code == "a{color:red}\n"


@pytest.mark.asyncio
async def test_transform_failure_raises(wasi, scripted) -> None:
    scripted(_Run(exit_code=1, stdout="", stderr=LOG))
    with pytest.raises(BuildFailure):
        await wasi.transform("let x", {"loader": "ts"})


# ═════════════════════════════════════════════════════════════════════════════
# Context
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_context_rebuilds_until_disposed(wasi, scripted) -> None:
    calls = scripted(_Run(exit_code=0, stdout="", stderr="", files={"a.js": b"x;\n"}))
    ctx = await wasi.context({"entryPoints": ["a.ts"], "outdir": "dist"})

    first, second = await ctx.rebuild(), await ctx.rebuild()
    assert first == second
    assert len(calls) == 2

    await ctx.dispose()
    with pytest.raises(EsbuildError, match="disposed"):
        await ctx.rebuild()
    assert len(calls) == 2


# ═════════════════════════════════════════════════════════════════════════════
# Execution
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_runs_do_not_block_the_event_loop(wasi, scripted) -> None:
    scripted(_Run(exit_code=0, stdout="", stderr="", files={"out.js": b""}), delay=0.2)
    beats = 0

    async def heartbeat() -> None:
        nonlocal beats
        while True:
            beats += 1
            await asyncio.sleep(0.01)

    ticker = asyncio.create_task(heartbeat())
    try:
        await wasi.transform("x", {"loader": "js"})
    finally:
        ticker.cancel()
    assert beats >= 5


@pytest.mark.asyncio
async def test_worker_runs_use_the_isolated_entry(monkeypatch, tmp_path) -> None:
    calls = []

    def isolated(image, root_dir, args, stdin):
        calls.append((image, root_dir, args))
        return _Run(exit_code=0, stdout="0.24.0\n", stderr="")

    monkeypatch.setattr(wasi_module, "execute_isolated", isolated)
    pool = WorkerPool.from_executor(ThreadPoolExecutor(max_workers=1))
    engine = WasiEngine(EngineSettings(root_dir=tmp_path), pool=pool)
    module = wasmtime.Module(engine._wasm, "(module)")

    await engine.initialize(ModuleSource(module=module), worker=True)

    ((image, root_dir, args),) = calls
    assert engine.version == "0.24.0"
    assert isinstance(image, bytes) and image
    assert root_dir == str(engine.root_dir)
    assert args == ["--version"]
    pool.executor.shutdown()


@pytest.mark.asyncio
async def test_thread_runs_skip_serialization(monkeypatch, wasi) -> None:
    seen = []

    def execute(module, args, stdin):
        seen.append(module)
        return _Run(exit_code=0, stdout="0.24.0\n", stderr="")

    monkeypatch.setattr(WasiEngine, "_execute", staticmethod(execute))
    module = wasmtime.Module(wasi._wasm, "(module)")
    await wasi.initialize(ModuleSource(module=module))

    assert seen == [module]
    assert wasi._image is None
    assert wasi.version == "0.24.0"


def test_worker_pool_rejects_empty_size() -> None:
    with pytest.raises(ValueError, match="max_workers"):
        WorkerPool(0)
