"""
Parameter Adapter

Turns ordered Python values into VM-typed value vectors, checking arity
first and converting each slot with the Value Converter.

- Params: host -> VM arguments for Func.call
- Results: a host callable's return value -> VM results for the trampoline
"""

from __future__ import annotations

from typing import Any, List, Sequence, TYPE_CHECKING

from wasmtime import Val, ValType

from vmbridge.errors import ArityError, ConversionError
from vmbridge.runtime.convert import to_vm

if TYPE_CHECKING:
    from vmbridge.runtime.store import Store


def _convert_all(values: Sequence[Any], types: Sequence[ValType], store: "Store",
                 what: str) -> List[Val]:
    vals = []
    for i, (value, ty) in enumerate(zip(values, types)):
        try:
            vals.append(to_vm(value, ty, store))
        except ConversionError as e:
            raise e.at(i, what) from None
    return vals


class Params:
    """Arguments for a call into the VM."""

    def __init__(self, args: Sequence[Any], types: Sequence[ValType]):
        if len(args) != len(types):
            raise ArityError(len(types), len(args))
        self.args = list(args)
        self.types = list(types)

    def to_vec(self, store: "Store") -> List[Val]:
        """Convert every argument; the first failure is reported with its index."""
        return _convert_all(self.args, self.types, store, "argument")


class Results:
    """
    Return value of a host callable, shaped against the expected result types.

    - zero results: the return value is ignored
    - one result: a bare value or a one-element list/tuple
    - N results: a list/tuple of exactly N values
    """

    def __init__(self, returned: Any, types: Sequence[ValType]):
        self.types = list(types)
        self.values = self._shape(returned, len(self.types))

    @staticmethod
    def _shape(returned: Any, n: int) -> List[Any]:
        if n == 0:
            return []
        if isinstance(returned, (list, tuple)):
            values = list(returned)
        else:
            values = [returned]
        if len(values) != n:
            raise ArityError(n, len(values), what="results")
        return values

    def to_vec(self, store: "Store") -> List[Val]:
        return _convert_all(self.values, self.types, store, "result")
