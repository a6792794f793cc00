"""Engine module lifecycle: load once per configuration, expose consistent state.

The lifecycle owns the single :class:`EngineState` of the process and the
:class:`Engine` it describes. Loads are serialized: a load whose options match
one that is running or queued joins it, any other load queues behind them.
``get_engine()`` never starts a competing load; it waits for the pending ones
or, when nothing is loaded, loads with the last recorded options.

Failures are reported twice and both agree: the exception is re-raised to the
caller and its text is kept in ``EngineState.error``.

Example:
    >>> lifecycle = ModuleLifecycle()
    >>> state = await lifecycle.load({"localModulePath": "./esbuild.wasm"})
    >>> state.status
    <EngineStatus.READY: 'ready'>
    >>> engine = await lifecycle.get_engine()
    >>> result = await engine.transform("let x: number = 1", {"loader": "ts"})
"""

from __future__ import annotations

import asyncio
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from ..foundation.config import EngineSettings, get_settings
from ..foundation.errors import classify_exception
from ..foundation.logging import get_logger
from .protocol import Engine, ModuleSource
from .state import EngineState, LoadOptions

if TYPE_CHECKING:
    from ..foundation.errors import JsonDict

ReadFile = Callable[[str], Awaitable[bytes]]
CompileModule = Callable[[bytes], Awaitable[Any]]

log = get_logger("esbuild_wasm_mcp.engine")


async def read_module_file(path: str) -> bytes:
    """Read a module file without blocking the event loop."""
    return await asyncio.to_thread(Path(path).expanduser().read_bytes)


def _describe(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


def _default_engine(settings: EngineSettings) -> Engine:
    from .wasi import WasiEngine
    return WasiEngine(settings)


class ModuleLifecycle:
    """Loads the engine module and tracks its state.

    Args:
        engine: Engine to drive (defaults to a WasiEngine built from settings)
        read_file: Async file reader used for ``localModulePath``
        compile_module: Async bytes -> module compiler (defaults to ``engine.compile``)
        settings: Engine settings (defaults to the global settings)
    """

    __slots__ = ("_settings", "_engine", "_read_file", "_compile", "_state", "_lock", "_attempts")

    def __init__(
        self,
        engine: Engine | None = None,
        *,
        read_file: ReadFile | None = None,
        compile_module: CompileModule | None = None,
        settings: EngineSettings | None = None,
    ) -> None:
        self._settings = settings or get_settings().engine
        self._engine = engine if engine is not None else _default_engine(self._settings)
        self._read_file: ReadFile = read_file or read_module_file
        self._compile: CompileModule = compile_module or self._engine.compile
        self._state = EngineState.not_loaded()
        self._lock = asyncio.Lock()
        self._attempts: dict[LoadOptions, asyncio.Task[EngineState]] = {}

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def loading(self) -> bool:
        return any(not attempt.done() for attempt in self._attempts.values())

    def get_state(self) -> EngineState:
        """Independent snapshot of the current state."""
        return self._state.snapshot()

    async def load(self, options: LoadOptions | JsonDict | None = None) -> EngineState:
        """(Re)load the engine module. Always permitted, even when ready.

        Raises whatever the read, compile or initialize step raised, after
        recording it in the state.
        """
        opts = LoadOptions.coerce(options)
        if (attempt := self._attempts.get(opts)) is not None:
            log.debug("joining pending engine load", **opts.to_wire())
            return (await asyncio.shield(attempt)).snapshot()

        attempt = asyncio.ensure_future(self._queued_load(opts))
        self._attempts[opts] = attempt
        try:
            return (await attempt).snapshot()
        finally:
            if self._attempts.get(opts) is attempt:
                del self._attempts[opts]

    async def get_engine(self) -> Engine:
        """Return a ready engine, loading it first if needed."""
        if self._state.is_ready:
            return self._engine
        if pending := [attempt for attempt in self._attempts.values() if not attempt.done()]:
            await asyncio.shield(pending[-1])
        else:
            await self.load(self._state.options)
        return self._engine

    # ─────────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────────

    async def _queued_load(self, options: LoadOptions) -> EngineState:
        async with self._lock:
            return await self._load(options)

    async def _load(self, options: LoadOptions) -> EngineState:
        previous = self._state
        self._state = EngineState.loading(options)
        if previous.is_ready:
            log.info("reloading engine", previous_version=previous.version, **options.to_wire())
        else:
            log.info("loading engine", **options.to_wire())

        start = time.perf_counter()
        try:
            source = await self._resolve(options)
            await self._engine.initialize(source, worker=self._use_worker(options))
            version = self._engine.version or "unknown"
        except asyncio.CancelledError:
            self._state = EngineState.failed(options, "engine load cancelled")
            log.warning("engine load cancelled")
            raise
        except Exception as e:
            self._state = EngineState.failed(options, _describe(e))
            log.error("engine load failed", error=_describe(e), code=classify_exception(e).value,
                      duration_ms=round((time.perf_counter() - start) * 1000, 2))
            raise

        self._state = EngineState.ready(options, version)
        log.info("engine ready", version=version, duration_ms=round((time.perf_counter() - start) * 1000, 2))
        return self._state

    async def _resolve(self, options: LoadOptions) -> ModuleSource:
        if options.local_module_path:
            if options.remote_url:
                log.warning("both remoteURL and localModulePath given, using localModulePath")
            data = await self._read_file(options.local_module_path)
            return ModuleSource(module=await self._compile(data))
        if options.remote_url:
            return ModuleSource(url=options.remote_url)
        return ModuleSource()

    def _use_worker(self, options: LoadOptions) -> bool:
        return self._settings.use_worker if options.use_worker is None else options.use_worker


# ─────────────────────────────────────────────────────────────────────────────
# Process-wide instance
# ─────────────────────────────────────────────────────────────────────────────

_lifecycle: ModuleLifecycle | None = None


def get_lifecycle() -> ModuleLifecycle:
    """Get the process-wide lifecycle, creating it on first use."""
    global _lifecycle
    if _lifecycle is None:
        _lifecycle = ModuleLifecycle()
    return _lifecycle


def set_lifecycle(lifecycle: ModuleLifecycle) -> None:
    """Replace the process-wide lifecycle."""
    global _lifecycle
    _lifecycle = lifecycle


def reset_lifecycle() -> None:
    """Drop the process-wide lifecycle; the next access starts from not_loaded."""
    global _lifecycle
    _lifecycle = None


def get_state() -> EngineState:
    return get_lifecycle().get_state()


async def load_engine(options: LoadOptions | JsonDict | None = None) -> EngineState:
    return await get_lifecycle().load(options)


async def get_engine() -> Engine:
    """Lazy accessor used by every tool handler."""
    return await get_lifecycle().get_engine()
