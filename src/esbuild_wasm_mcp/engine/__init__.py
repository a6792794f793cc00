"""Engine lifecycle, contract and state.

The WASI-backed default engine lives in :mod:`.wasi` and is imported lazily
by the lifecycle so the rest of the package works with any :class:`Engine`.
"""

from .lifecycle import (
    ModuleLifecycle,
    get_engine,
    get_lifecycle,
    get_state,
    load_engine,
    read_module_file,
    reset_lifecycle,
    set_lifecycle,
)
from .protocol import BuildContext, BuildResult, Engine, MessageKind, ModuleSource, OutputFile, TransformResult
from .state import EngineState, EngineStatus, LoadOptions

__all__ = [
    # Lifecycle
    "ModuleLifecycle", "get_lifecycle", "set_lifecycle", "reset_lifecycle",
    "get_engine", "get_state", "load_engine", "read_module_file",
    # State
    "EngineState", "EngineStatus", "LoadOptions",
    # Contract
    "Engine", "BuildContext", "ModuleSource", "MessageKind",
    "BuildResult", "OutputFile", "TransformResult",
]
