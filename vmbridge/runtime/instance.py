"""
Host-facing Modules and Instances

Key classes:
- Module: a compiled wasmtime module, loaded from .wasm bytes or .wat text
- Instance: a module instantiated in a Store with Func imports
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

import wasmtime
from wasmtime import FuncType

from vmbridge.errors import LinkError, ModuleValidationError, UnsupportedExportKind
from vmbridge.runtime.func import Func, raise_trap
from vmbridge.runtime.store import Store
from vmbridge.runtime.types import ExternKind, extern_kind

ImportArg = Union[Sequence[Func], Mapping[str, Func]]

WASM_MAGIC = b"\0asm"

Source = Union[str, bytes]


def _to_binary(source: Source) -> bytes:
    if isinstance(source, str):
        return wasmtime.wat2wasm(source)
    if source.startswith(WASM_MAGIC):
        return bytes(source)
    return wasmtime.wat2wasm(source.decode("utf-8"))


class Module:
    """Compiled module, ready to instantiate in any store on the same engine."""

    def __init__(self, inner: wasmtime.Module, name: str = "anonymous"):
        self.inner = inner
        self.name = name

    @classmethod
    def from_bytes(cls, engine: wasmtime.Engine, source: Source,
                   name: str = "anonymous") -> "Module":
        """
        Compile a module from binary or text format.

        Raises:
            ModuleValidationError: the source does not parse or validate
        """
        try:
            inner = wasmtime.Module(engine, _to_binary(source))
        except (wasmtime.WasmtimeError, UnicodeDecodeError) as e:
            raise ModuleValidationError([str(e)]) from e
        return cls(inner, name)

    @classmethod
    def from_wat(cls, engine: wasmtime.Engine, text: str, name: str = "anonymous") -> "Module":
        return cls.from_bytes(engine, text, name)

    @classmethod
    def from_file(cls, engine: wasmtime.Engine, path: Union[str, Path]) -> "Module":
        """Load a .wasm or .wat file; the format is detected from its content."""
        path = Path(path)
        return cls.from_bytes(engine, path.read_bytes(), name=path.stem)

    @staticmethod
    def validate(engine: wasmtime.Engine, source: Source) -> Tuple[bool, List[str]]:
        """Check a module without keeping it. Returns (valid, errors)."""
        try:
            wasmtime.Module.validate(engine, _to_binary(source))
        except (wasmtime.WasmtimeError, UnicodeDecodeError) as e:
            return False, [str(e)]
        return True, []

    @property
    def imports(self) -> List[Tuple[str, str, FuncType]]:
        """(module, name, signature) for each import, in order."""
        return [(i.module, i.name, i.type) for i in self.inner.imports]

    @property
    def exports(self) -> List[Tuple[str, ExternKind]]:
        return [(e.name, extern_kind(e.type)) for e in self.inner.exports]

    def export_type(self, name: str) -> Optional[FuncType]:
        """Signature of a function export, or None if there is no such function export."""
        for export in self.inner.exports:
            if export.name == name and isinstance(export.type, FuncType):
                return export.type
        return None

    def __repr__(self) -> str:
        return f"<Module {self.name!r}>"


def _order_imports(module: Module, imports: ImportArg) -> List[Func]:
    if not isinstance(imports, Mapping):
        return list(imports)
    ordered = []
    for mod, name, _ in module.imports:
        key = f"{mod}.{name}"
        if key not in imports:
            raise LinkError(f"missing import {key}")
        ordered.append(imports[key])
    return ordered


class Instance:
    """
    A module instantiated in a store.

    imports: Func handles in import order, or a mapping keyed by
    "module.name".
    """

    def __init__(self, store: Store, module: Module, imports: ImportArg = ()):
        externs = []
        for i, func in enumerate(_order_imports(module, imports)):
            if not isinstance(func, Func):
                raise TypeError(f"import {i} must be a Func, got {type(func).__name__}")
            if func.store is not store:
                raise LinkError(f"import {i} belongs to a different store")
            externs.append(func.inner)

        error: Optional[wasmtime.Trap] = None
        with store.borrow_mut() as ctx:
            try:
                self._inner = wasmtime.Instance(ctx, module.inner, externs)
            except wasmtime.Trap as e:
                error = e
            except wasmtime.WasmtimeError as e:
                raise LinkError(f"could not link {module.name!r}: {e}") from e

            if error is not None:
                raise_trap(store, error, "Could not instantiate module")

        self.store = store
        self.module = module

    def _lookup(self, name: str) -> Optional[wasmtime.Func]:
        with self.store.borrow_mut() as ctx:
            try:
                extern = self._inner.exports(ctx)[name]
            except KeyError:
                return None
        if not isinstance(extern, wasmtime.Func):
            raise UnsupportedExportKind(extern_kind(extern), name)
        return extern

    def export(self, name: str) -> Optional[Func]:
        """
        Function export as a Func handle.

        Returns None if the export does not exist; raises
        UnsupportedExportKind for memory, table and global exports.
        """
        extern = self._lookup(name)
        if extern is None:
            return None
        return Func.from_export(self.store, extern)

    def exports(self) -> Dict[str, Func]:
        """All function exports by name."""
        return {
            name: self.export(name)
            for name, kind in self.module.exports
            if kind is ExternKind.FUNC
        }

    def __repr__(self) -> str:
        return f"<Instance {self.module.name!r} store={self.store.id}>"
