"""
Caller Context

A Caller is handed to a host callable created with caller=True. It is a
borrowed view of the in-flight wasmtime call, valid only while that
callable runs: once the call returns, every method raises
CallerExpiredError.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Optional, TYPE_CHECKING

import wasmtime

from vmbridge.errors import CallerExpiredError, UnsupportedExportKind
from vmbridge.runtime.types import extern_kind

if TYPE_CHECKING:
    from vmbridge.runtime.func import Func
    from vmbridge.runtime.store import Store


class Caller:
    """Scoped view over the calling instance and its store data."""

    def __init__(self, store: "Store", inner: wasmtime.Caller):
        self._store = store
        self._inner: Optional[wasmtime.Caller] = inner

    @property
    def expired(self) -> bool:
        return self._inner is None

    def _active(self) -> wasmtime.Caller:
        if self._inner is None:
            raise CallerExpiredError("Caller used after its host call returned")
        return self._inner

    def user_data(self) -> Any:
        """The store's user data."""
        self._active()
        return self._store.user_data()

    store_data = user_data

    def export(self, name: str) -> Optional["Func"]:
        """
        Look up an export of the calling instance.

        Returns None when there is no such export, or when the host
        callable was called directly rather than from module code.
        Function exports come back as Func handles; memory, table and
        global exports raise UnsupportedExportKind.
        """
        from vmbridge.runtime.func import Func

        extern = self._active().get(name)
        if extern is None:
            return None
        if isinstance(extern, wasmtime.Func):
            return Func.from_export(self._store, extern)
        raise UnsupportedExportKind(extern_kind(extern), name)

    def _expire(self) -> None:
        self._inner = None

    def __repr__(self) -> str:
        state = "expired" if self.expired else "active"
        return f"<Caller {state}>"


@contextmanager
def caller_scope(store: "Store", inner: wasmtime.Caller) -> Iterator[Caller]:
    """Provide a Caller for the dynamic extent of one host call."""
    caller = Caller(store, inner)
    try:
        with store.host_call(inner):
            yield caller
    finally:
        caller._expire()
