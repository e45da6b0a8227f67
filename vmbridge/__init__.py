"""
vmbridge - call bridge between Python and an embedded WebAssembly engine

Exports:
- Store, Func, Caller, Module, Instance: the bridge
- FuncType, ValType, functype, signature: signatures
- Error types from vmbridge.errors
"""

from wasmtime import FuncType, ValType

from vmbridge.config import BridgeConfig, EngineConfig
from vmbridge.errors import (
    ArityError,
    BridgeError,
    CallerExpiredError,
    ConcurrentEntryError,
    ConversionError,
    EngineTrap,
    LinkError,
    ModuleValidationError,
    UnsupportedExportKind,
)
from vmbridge.runtime import Caller, Func, Instance, Module, Store, functype, signature

__version__ = "0.1.0"

__all__ = [
    "ArityError",
    "BridgeConfig",
    "BridgeError",
    "Caller",
    "CallerExpiredError",
    "ConcurrentEntryError",
    "ConversionError",
    "EngineConfig",
    "EngineTrap",
    "Func",
    "FuncType",
    "Instance",
    "LinkError",
    "Module",
    "ModuleValidationError",
    "Store",
    "UnsupportedExportKind",
    "ValType",
    "functype",
    "signature",
]
