"""Process pool for isolated engine runs.

Each worker is a separate interpreter, so a module run that traps, leaks or
spins cannot take the server's process down with it.

Limitations:
    - Functions and arguments must be picklable
    - Process startup has latency; the first run pays for it
"""

from __future__ import annotations

import asyncio
import multiprocessing
from concurrent.futures import Executor, ProcessPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

T = TypeVar("T")


@dataclass(slots=True)
class WorkerPool:
    """Lazily started process pool awaited from the event loop.

    Example:
        >>> pool = WorkerPool(2)
        >>> run = await pool.run(execute_isolated, image, "/srv/site", ["--version"], None)
    """

    max_workers: int = 1
    mp_context: str | None = "spawn"  # 'fork', 'spawn', 'forkserver'
    _executor: Executor | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")

    @classmethod
    def from_executor(cls, executor: Executor) -> WorkerPool:
        """Wrap an existing executor."""
        return cls(max_workers=getattr(executor, "_max_workers", 1), mp_context=None, _executor=executor)

    @property
    def executor(self) -> Executor:
        if self._executor is None:
            ctx = multiprocessing.get_context(self.mp_context) if self.mp_context else None
            self._executor = ProcessPoolExecutor(max_workers=self.max_workers, mp_context=ctx)
        return self._executor

    async def run(self, func: Callable[..., T], *args: Any) -> T:
        """Run ``func(*args)`` in a worker process."""
        return await asyncio.get_running_loop().run_in_executor(self.executor, func, *args)
