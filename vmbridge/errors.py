"""
Bridge Error Taxonomy

- ConversionError: value/type mismatch while marshalling
- ArityError: argument or result count mismatch
- EngineTrap: failure raised by the VM itself, carrying engine text only
- UnsupportedExportKind: export lookup hit a kind that is not bridged
- CallerExpiredError: a Caller was used after its host call returned
- ConcurrentEntryError: a second OS thread tried to enter the engine
- LinkError, ModuleValidationError: module loading and instantiation

Exceptions raised by host callables are not wrapped: they cross back to the
caller of Func.call as the original object.
"""

from __future__ import annotations

from typing import Any, List, Optional


class BridgeError(Exception):
    """Base class for errors raised by the bridge."""
    pass


class ConversionError(BridgeError, TypeError):
    """A host value cannot be represented as the expected VM type."""

    def __init__(self, expected: Any, actual: Any, index: Optional[int] = None,
                 reason: Optional[str] = None, what: str = "argument"):
        self.expected = expected
        self.actual = actual
        self.index = index
        self.reason = reason
        self.what = what
        super().__init__(self._message())

    def _message(self) -> str:
        msg = f"cannot convert {self.actual!r} to {self.expected}"
        if self.reason:
            msg += f" ({self.reason})"
        if self.index is not None:
            msg = f"invalid {self.what} at index {self.index}: {msg}"
        return msg

    def at(self, index: int, what: str = "argument") -> "ConversionError":
        """Copy of this error positioned at an argument or result index."""
        return ConversionError(self.expected, self.actual, index, self.reason, what)


class ArityError(BridgeError, ValueError):
    """Wrong number of arguments or results."""

    def __init__(self, expected: int, actual: int, what: str = "arguments"):
        self.expected = expected
        self.actual = actual
        self.what = what
        super().__init__(f"wrong number of {what} (given {actual}, expected {expected})")


class EngineTrap(BridgeError):
    """The engine aborted a call. Only the engine's text is available."""

    def __init__(self, message: str, trap_message: str = ""):
        super().__init__(message)
        self.message = message
        self.trap_message = trap_message


class UnsupportedExportKind(BridgeError, NotImplementedError):
    """Export lookup found a kind the bridge cannot materialise yet."""

    def __init__(self, kind: Any, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"exports of kind {kind} are not supported (export {name!r})")


class CallerExpiredError(BridgeError, RuntimeError):
    """A Caller was used after the host call it belongs to returned."""
    pass


class ConcurrentEntryError(BridgeError, RuntimeError):
    """A second thread tried to run engine or host code while another was active."""
    pass


class LinkError(BridgeError):
    """Instantiation could not satisfy a module's imports."""
    pass


class ModuleValidationError(BridgeError, ValueError):
    """A module failed to parse, compile or validate."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "invalid module")
