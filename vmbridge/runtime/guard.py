"""
Execution Guard

Imported host functions close over interpreter state that is only safe to
touch from one thread at a time, and the engine may call them from any
entry point. The whole bridge therefore runs under one precondition: at
most one OS thread is executing engine or host-callable code at any time.

ExecutionGuard turns that precondition into a checked one. It is entered
around every host -> engine call and every engine -> host re-entry.
Re-entry from the owning thread nests. Entry from another thread either
fails with ConcurrentEntryError ("raise") or waits ("block").
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from vmbridge.config import CONTENTION_BLOCK, CONTENTION_RAISE
from vmbridge.errors import ConcurrentEntryError

logger = logging.getLogger(__name__)


class ExecutionGuard:
    """Reentrant, owner-tracking mutual exclusion."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._owner: Optional[int] = None
        self._depth = 0

    @property
    def owner(self) -> Optional[int]:
        return self._owner

    @property
    def depth(self) -> int:
        return self._depth

    def held_by_current_thread(self) -> bool:
        return self._owner == threading.get_ident()

    def acquire(self, contention: str = CONTENTION_RAISE) -> None:
        me = threading.get_ident()
        with self._cond:
            if self._owner == me:
                self._depth += 1
                return
            if self._owner is not None:
                if contention != CONTENTION_BLOCK:
                    raise ConcurrentEntryError(
                        f"thread {me} tried to enter the engine while thread "
                        f"{self._owner} is executing"
                    )
                logger.warning(f"Thread {me} waiting for engine held by thread {self._owner}")
                while self._owner is not None:
                    self._cond.wait()
            self._owner = me
            self._depth = 1

    def release(self) -> None:
        with self._cond:
            if self._owner != threading.get_ident():
                raise RuntimeError("release of an execution guard not held by this thread")
            self._depth -= 1
            if self._depth == 0:
                self._owner = None
                self._cond.notify()

    @contextmanager
    def entered(self, contention: str = CONTENTION_RAISE) -> Iterator["ExecutionGuard"]:
        self.acquire(contention)
        try:
            yield self
        finally:
            self.release()


# One guard per process: the single-active-thread rule spans every store.
GLOBAL_GUARD = ExecutionGuard()
