"""
Value Converter

Stateless conversion between Python values and VM-typed values.

| VM type   | Python value                                  |
|-----------|-----------------------------------------------|
| i32, i64  | int (bool accepted as 0/1), signed range only |
| f32, f64  | float (int accepted); f32 rounds to single    |
| externref | any object; None is the null reference        |
| funcref   | Func of the same store, or None               |

Out-of-range and wrong-kind values raise ConversionError. Nothing is
truncated or wrapped.
"""

from __future__ import annotations

import math
import numbers
import struct
from typing import Any, TYPE_CHECKING

import wasmtime
from wasmtime import Val, ValType

from vmbridge.errors import ConversionError
from vmbridge.runtime.types import FLOAT_TYPES, type_name

if TYPE_CHECKING:
    from vmbridge.runtime.store import Store

INT_RANGES = {
    "i32": (-(1 << 31), (1 << 31) - 1),
    "i64": (-(1 << 63), (1 << 63) - 1),
}

F32_MAX = struct.unpack("<f", b"\xff\xff\x7f\x7f")[0]


def to_f32(value: float) -> float:
    """Round to IEEE single precision."""
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def _to_int(value: Any, name: str) -> Val:
    if not isinstance(value, numbers.Integral):
        raise ConversionError(name, value, reason=f"expected an integer, got {type(value).__name__}")
    number = int(value)
    low, high = INT_RANGES[name]
    if not low <= number <= high:
        raise ConversionError(name, value, reason=f"out of range [{low}, {high}]")
    return Val.i32(number) if name == "i32" else Val.i64(number)


def _to_float(value: Any, name: str) -> Val:
    if not isinstance(value, numbers.Real):
        raise ConversionError(name, value, reason=f"expected a number, got {type(value).__name__}")
    try:
        number = float(value)
    except OverflowError:
        raise ConversionError(name, value, reason="out of range") from None
    if name == "f64":
        return Val.f64(number)
    if math.isfinite(number) and abs(number) > F32_MAX:
        raise ConversionError(name, value, reason="out of range for f32")
    return Val.f32(to_f32(number))


def to_vm(value: Any, expected: ValType, store: "Store") -> Val:
    """
    Convert a Python value to a VM value of the expected type.

    Raises:
        ConversionError: the value has the wrong kind or is out of range
    """
    name = type_name(expected)
    if name in INT_RANGES:
        return _to_int(value, name)
    if name in FLOAT_TYPES:
        return _to_float(value, name)
    if name == "externref":
        return Val.externref(value)
    if name != "funcref":
        raise ConversionError(name, value, reason="unsupported value type")

    from vmbridge.runtime.func import Func

    if value is None:
        return Val.funcref(None)
    if not isinstance(value, Func):
        raise ConversionError(name, value, reason=f"expected a Func, got {type(value).__name__}")
    if value.store is not store:
        raise ConversionError(name, value, reason="function belongs to a different store")
    return Val.funcref(value.inner)


def to_host(value: Any, ty: ValType, store: "Store") -> Any:
    """
    Convert a value produced by the engine to its Python representation.

    Accepts either a wasmtime Val or the plain value wasmtime hands to host
    functions and returns from calls. Function references come back as
    Func handles bound to store.
    """
    if isinstance(value, Val):
        value = value.value
    name = type_name(ty)
    if name in INT_RANGES:
        if not isinstance(value, int):
            raise ConversionError(name, value, reason="engine produced a non-integer")
        return value
    if name in FLOAT_TYPES:
        if not isinstance(value, float):
            raise ConversionError(name, value, reason="engine produced a non-float")
        return value
    if name != "funcref" or value is None:
        return value

    from vmbridge.runtime.func import Func

    if not isinstance(value, wasmtime.Func):
        raise ConversionError(name, value, reason="engine produced a non-function")
    return Func.from_export(store, value)
