"""
Host Store

The Store owns a wasmtime.Store together with the bridge's
per-store state:
- user data handed to host callables through Caller.user_data()
- the held exception slot that carries a host exception across the
  engine's text-only trap channel
- retained host objects (callables registered with the engine) that must
  stay alive as long as the engine can reach them

Key classes:
- HeldExceptionSlot: single-slot pending-exception register
- StoreData: user data, held exception and retained objects
- Store: public store, exclusive access via borrow_mut()
"""

from __future__ import annotations

import itertools
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator, List, Optional, Union

import wasmtime

from vmbridge.config import BridgeConfig, EngineConfig
from vmbridge.runtime.guard import GLOBAL_GUARD, ExecutionGuard

logger = logging.getLogger(__name__)

Context = Union[wasmtime.Store, wasmtime.Caller]

_store_ids = itertools.count(1)


def _in_chain(exception: BaseException, target: BaseException) -> bool:
    seen = set()
    current: Optional[BaseException] = exception
    while current is not None and id(current) not in seen:
        if current is target:
            return True
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return False


def _chain_tail(exception: BaseException) -> BaseException:
    seen = {id(exception)}
    current = exception
    while current.__context__ is not None and id(current.__context__) not in seen:
        current = current.__context__
        seen.add(id(current))
    return current


class HeldExceptionSlot:
    """
    Holds at most one pending host exception.

    Set by a host call that raised while the engine was running it; taken
    by the invocation that receives the resulting trap. If a second
    exception is held while one is pending, the newest one wins and the
    pending one is linked into its __context__ chain.
    """

    def __init__(self):
        self._exception: Optional[BaseException] = None

    @property
    def is_set(self) -> bool:
        return self._exception is not None

    def peek(self) -> Optional[BaseException]:
        return self._exception

    def hold(self, exception: BaseException) -> None:
        pending = self._exception
        if pending is not None and pending is not exception:
            logger.warning(
                f"Held exception {type(pending).__name__} replaced by "
                f"{type(exception).__name__} before being taken"
            )
            if not _in_chain(exception, pending) and not _in_chain(pending, exception):
                _chain_tail(exception).__context__ = pending
        logger.debug(f"Holding {type(exception).__name__}: {exception}")
        self._exception = exception

    def take(self) -> Optional[BaseException]:
        exception, self._exception = self._exception, None
        return exception


@dataclass
class StoreData:
    """Bridge state kept beside the wasmtime store."""
    user_data: Any = None
    exception: HeldExceptionSlot = field(default_factory=HeldExceptionSlot)
    retained: List[Any] = field(default_factory=list)


def build_engine(config: EngineConfig) -> wasmtime.Engine:
    """Create a wasmtime Engine for the given limits."""
    wasm_config = wasmtime.Config()
    wasm_config.cranelift_opt_level = config.cranelift_opt_level
    if config.fuel is not None:
        wasm_config.consume_fuel = True
    return wasmtime.Engine(wasm_config)


class Store:
    """
    Owner of one engine execution context.

    Function handles keep a reference to their Store, so a Store lives at
    least as long as any Func created in it. Modules must be compiled with
    store.engine to be instantiated here.
    """

    def __init__(self, data: Any = None, config: BridgeConfig = None,
                 guard: ExecutionGuard = None, engine: wasmtime.Engine = None):
        self.config = config or BridgeConfig()
        self.engine = engine or build_engine(self.config.engine)
        self.inner = wasmtime.Store(self.engine)
        limits = self.config.engine
        if limits.fuel is not None:
            self.inner.set_fuel(limits.fuel)
        if limits.max_memory_bytes is not None:
            self.inner.set_limits(memory_size=limits.max_memory_bytes)

        self.id = next(_store_ids)
        self._data = StoreData(user_data=data)
        self._guard = guard or GLOBAL_GUARD
        self._callers: List[wasmtime.Caller] = []

    @property
    def guard(self) -> ExecutionGuard:
        return self._guard

    def context(self) -> Context:
        """
        Context to run engine operations in.

        While a host call is running this is its wasmtime Caller, so nested
        calls go through the frame that is already borrowing the store.
        """
        return self._callers[-1] if self._callers else self.inner

    @contextmanager
    def host_call(self, caller: wasmtime.Caller) -> Iterator[None]:
        """Make caller the active context for the duration of a host call."""
        self._callers.append(caller)
        try:
            yield
        finally:
            self._callers.pop()

    @contextmanager
    def borrow_mut(self) -> Iterator[Context]:
        """
        Exclusive access to the engine context for the duration of a call.

        Nested use from the same thread (a host callable calling back into
        the engine) reuses the active borrow.
        """
        with self._guard.entered(self.config.contention):
            yield self.context()

    def held_exception(self) -> HeldExceptionSlot:
        return self._data.exception

    def user_data(self) -> Any:
        return self._data.user_data

    @property
    def data(self) -> Any:
        return self._data.user_data

    def retain(self, value: Any) -> None:
        """Keep value alive for the lifetime of this store."""
        self._data.retained.append(value)

    @property
    def retained(self) -> List[Any]:
        return list(self._data.retained)

    def mark(self) -> Iterator[Any]:
        """Host objects this store keeps reachable."""
        if self._data.user_data is not None:
            yield self._data.user_data
        yield from self._data.retained

    def __repr__(self) -> str:
        return f"<Store id={self.id} retained={len(self._data.retained)}>"
