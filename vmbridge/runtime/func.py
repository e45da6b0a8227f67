"""
Function Handle and Invocation Path

A Func pairs a Store with a wasmtime function. Copying a Func copies the
reference; the Store reference keeps the engine state it points into alive.

Key classes:
- Func: host-constructed or export-backed function handle
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterator, NoReturn, Optional, Sequence, Union

import wasmtime
from wasmtime import FuncType

from vmbridge.errors import EngineTrap
from vmbridge.runtime.convert import to_host
from vmbridge.runtime.params import Params
from vmbridge.runtime.store import Store
from vmbridge.runtime.trampoline import describe, make_func_callable
from vmbridge.runtime.types import signature

logger = logging.getLogger(__name__)

EngineError = Union[wasmtime.Trap, wasmtime.WasmtimeError]


def raise_trap(store: Store, error: EngineError, prefix: str) -> NoReturn:
    """
    Surface an engine failure to Python.

    A pending host exception is re-raised as the same object; otherwise the
    engine's message is wrapped in EngineTrap.
    """
    held = store.held_exception().take()
    if held is not None:
        logger.debug(f"Re-raising held {type(held).__name__} after trap: {error}")
        raise held
    raise EngineTrap(f"{prefix}: {error}", str(error)) from error


def _identity(inner: wasmtime.Func) -> Any:
    raw = getattr(inner, "_func", None)
    if raw is None:
        return id(inner)
    try:
        return bytes(raw)
    except TypeError:
        return id(inner)


class Func:
    """
    Callable backed by a wasmtime function.

    Func(store, functype, closure, caller=False) registers a Python
    callable as a new host function. With caller=True the callable
    receives a Caller as its first argument.
    """

    def __init__(self, store: Store, functype: FuncType, closure: Callable[..., Any],
                 caller: bool = False):
        if not isinstance(store, Store):
            raise TypeError(f"expected a Store, got {type(store).__name__}")
        if not isinstance(functype, FuncType):
            raise TypeError(f"expected a FuncType, got {type(functype).__name__}")
        if not callable(closure):
            raise TypeError(f"{closure!r} is not callable")

        callback = make_func_callable(functype, closure, caller, store)
        with store.borrow_mut():
            inner = wasmtime.Func(store.inner, functype, callback, access_caller=True)
        store.retain(closure)

        self.store = store
        self.inner = inner
        logger.debug(f"Created Func {signature(functype)} for {describe(closure)}")

    @classmethod
    def from_export(cls, store: Store, inner: wasmtime.Func) -> "Func":
        """Wrap an existing wasmtime function; nothing new is registered."""
        func = cls.__new__(cls)
        func.store = store
        func.inner = inner
        return func

    @property
    def type(self) -> FuncType:
        with self.store.borrow_mut() as ctx:
            return self.inner.type(ctx)

    def call(self, *args: Any) -> Any:
        """
        Call the function.

        Returns:
            None for no results, the value for one result, a list for more

        Raises:
            ArityError / ConversionError: before the engine is entered
            EngineTrap: the engine trapped and no host exception was pending
            Any exception raised by a host callable reached during the call
        """
        return Func.invoke(self.store, self.inner, args)

    __call__ = call

    @staticmethod
    def invoke(store: Store, inner: wasmtime.Func, args: Sequence[Any]) -> Any:
        with store.borrow_mut() as ctx:
            functype = inner.type(ctx)
            result_types = list(functype.results)
            params = Params(args, list(functype.params)).to_vec(store)

            logger.debug(f"Invoking {signature(functype)} with {len(params)} arguments")
            error: Optional[EngineError] = None
            returned: Any = None
            try:
                returned = inner(ctx, *params)
            except (wasmtime.Trap, wasmtime.WasmtimeError) as e:
                error = e

            if error is not None:
                raise_trap(store, error, "Could not invoke function")

            if not result_types:
                raw = []
            elif len(result_types) == 1:
                raw = [returned]
            else:
                raw = list(returned)
            values = [to_host(value, ty, store) for value, ty in zip(raw, result_types)]

        if not values:
            return None
        if len(values) == 1:
            return values[0]
        return values

    def mark(self) -> Iterator[Any]:
        """Objects this handle keeps alive."""
        yield self.store

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Func):
            return NotImplemented
        return self.store is other.store and _identity(self.inner) == _identity(other.inner)

    def __hash__(self) -> int:
        return hash((id(self.store), _identity(self.inner)))

    def __repr__(self) -> str:
        return f"<Func store={self.store.id}>"
