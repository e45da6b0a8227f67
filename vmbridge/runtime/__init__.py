"""
Host <-> VM Call Bridge

- Store: wasmtime store plus user data, held exception slot, retained objects
- Func: function handle, built from a Python callable or an export
- Caller: scoped view of the in-flight call for caller-aware callables
- Module / Instance: module loading and instantiation with Func imports
- convert / params: value marshalling between Python and wasm types
"""

from vmbridge.runtime.caller import Caller, caller_scope
from vmbridge.runtime.convert import to_host, to_vm
from vmbridge.runtime.func import Func
from vmbridge.runtime.guard import GLOBAL_GUARD, ExecutionGuard
from vmbridge.runtime.instance import Instance, Module
from vmbridge.runtime.params import Params, Results
from vmbridge.runtime.store import HeldExceptionSlot, Store, StoreData
from vmbridge.runtime.trampoline import make_func_callable
from vmbridge.runtime.types import ExternKind, functype, signature, type_name

__all__ = [
    "Caller",
    "ExecutionGuard",
    "ExternKind",
    "Func",
    "GLOBAL_GUARD",
    "HeldExceptionSlot",
    "Instance",
    "Module",
    "Params",
    "Results",
    "Store",
    "StoreData",
    "caller_scope",
    "functype",
    "make_func_callable",
    "signature",
    "to_host",
    "to_vm",
    "type_name",
]
