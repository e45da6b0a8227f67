"""
Value types and signatures

Thin helpers over wasmtime's ValType / FuncType so signatures can be
written as lists of type names and printed as "(i32, i32) -> (i32)".
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Dict, Iterable, Union

import wasmtime
from wasmtime import FuncType, ValType

VALUE_TYPES: Dict[str, Callable[[], ValType]] = {
    "i32": ValType.i32,
    "i64": ValType.i64,
    "f32": ValType.f32,
    "f64": ValType.f64,
    "externref": ValType.externref,
    "funcref": ValType.funcref,
}

INTEGER_TYPES = ("i32", "i64")
FLOAT_TYPES = ("f32", "f64")


class ExternKind(Enum):
    FUNC = "func"
    MEMORY = "memory"
    TABLE = "table"
    GLOBAL = "global"

    def __str__(self) -> str:
        return self.value


def valtype(ty: Union[str, ValType]) -> ValType:
    if isinstance(ty, ValType):
        return ty
    try:
        return VALUE_TYPES[ty]()
    except KeyError:
        raise ValueError(f"unknown value type {ty!r}") from None


def type_name(ty: ValType) -> str:
    """Canonical name of a value type ("i32", ..., "externref", "funcref")."""
    for name, make in VALUE_TYPES.items():
        if ty == make():
            return name
    return str(ty)


def functype(params: Iterable[Union[str, ValType]] = (),
             results: Iterable[Union[str, ValType]] = ()) -> FuncType:
    """Build a FuncType from type names, e.g. functype(["i32", "i32"], ["i32"])."""
    return FuncType([valtype(p) for p in params], [valtype(r) for r in results])


def signature(ty: FuncType) -> str:
    params = ", ".join(type_name(t) for t in ty.params)
    results = ", ".join(type_name(t) for t in ty.results)
    return f"({params}) -> ({results})"


def extern_kind(item: Any) -> ExternKind:
    """Kind of an extern or of an extern's type."""
    if isinstance(item, (wasmtime.Func, wasmtime.FuncType)):
        return ExternKind.FUNC
    if isinstance(item, (wasmtime.Memory, wasmtime.MemoryType)):
        return ExternKind.MEMORY
    if isinstance(item, (wasmtime.Table, wasmtime.TableType)):
        return ExternKind.TABLE
    if isinstance(item, (wasmtime.Global, wasmtime.GlobalType)):
        return ExternKind.GLOBAL
    raise TypeError(f"not an extern: {item!r}")
