"""
Callable Trampoline

Adapts a Python callable to the host function shape wasmtime expects:
``callback(wasm_caller, *params)`` returning None, one value or a list of
values, and reporting failure only by raising wasmtime.Trap.

Thread-safety: the engine treats host callbacks as shareable between
threads, while a Python callable generally is not. The trampoline does not
lock anything on the callable's behalf; it re-enters the process-wide
ExecutionGuard, which nests on the thread already running the engine and
refuses (or waits for) any other thread. Running host callables from more
than one thread at once is outside the supported model.

Failure translation:
- anything raised by the callable (any BaseException) is held on the
  store, then a generic Trap is raised; Func.call re-raises the held object
- result marshalling errors (ArityError, ConversionError) are held the
  same way and the trap text names the callable and the error
- argument marshalling errors raise a text-only Trap
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, TYPE_CHECKING

import wasmtime
from wasmtime import FuncType, Trap

from vmbridge.errors import ArityError, ConcurrentEntryError, ConversionError
from vmbridge.runtime.caller import caller_scope
from vmbridge.runtime.convert import to_host
from vmbridge.runtime.params import Results

if TYPE_CHECKING:
    from vmbridge.runtime.store import Store

logger = logging.getLogger(__name__)

HostCallback = Callable[..., Any]


def describe(closure: Callable[..., Any]) -> str:
    """Human-readable identity of a host callable for trap messages."""
    name = getattr(closure, "__qualname__", None) or getattr(closure, "__name__", None)
    if name:
        module = getattr(closure, "__module__", None)
        return f"<{module}.{name}>" if module else f"<{name}>"
    return repr(closure)


def make_func_callable(functype: FuncType, closure: Callable[..., Any],
                       send_caller: bool, store: "Store") -> HostCallback:
    """
    Build the wasmtime host callback for a Python callable.

    Args:
        functype: declared signature
        closure: Python callable invoked with the converted arguments
        send_caller: pass a Caller as the first argument
        store: store owning the function; receives held exceptions

    The callback must be registered with access_caller=True.
    """
    description = describe(closure)
    param_types = list(functype.params)
    result_types = list(functype.results)

    def call_closure(wasm_caller: wasmtime.Caller, params: List[Any]) -> Any:
        with caller_scope(store, wasm_caller) as caller:
            args: List[Any] = [caller] if send_caller else []
            for i, (param, ty) in enumerate(zip(params, param_types)):
                try:
                    args.append(to_host(param, ty, store))
                except ConversionError as e:
                    raise Trap(f"invalid argument at index {i}: {e}") from None

            logger.debug(f"Calling host function {description} with {len(params)} arguments")
            try:
                returned = closure(*args)
            except BaseException as e:
                store.held_exception().hold(e)
                raise Trap(f"host function {description} raised {type(e).__name__}") from None

        try:
            values = Results(returned, result_types).to_vec(store)
        except (ArityError, ConversionError) as e:
            store.held_exception().hold(e)
            raise Trap(f"Error when calling Func {description}\n Error: {e}") from None

        if not values:
            return None
        if len(values) == 1:
            return values[0]
        return values

    def trampoline(wasm_caller: wasmtime.Caller, *params: Any) -> Any:
        try:
            store.guard.acquire(store.config.contention)
        except ConcurrentEntryError as e:
            raise Trap(str(e)) from None
        try:
            return call_closure(wasm_caller, list(params))
        finally:
            store.guard.release()

    trampoline.__qualname__ = f"trampoline[{description}]"
    return trampoline
