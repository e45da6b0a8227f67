"""Test fixtures for the vmbridge test suite."""
import sys
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from wasmtime import FuncType

from vmbridge.runtime import ExecutionGuard, Module, Store, functype


CALLS_HOST_WAT = """
(module
  (import "host" "add" (func $add (param i32 i32) (result i32)))
  (func (export "run") (param i32 i32) (result i32)
    local.get 0
    local.get 1
    call $add))
"""

ARITHMETIC_WAT = """
(module
  (func (export "add") (param i32 i32) (result i32)
    local.get 0
    local.get 1
    i32.add)
  (func (export "div") (param i32 i32) (result i32)
    local.get 0
    local.get 1
    i32.div_s)
  (func (export "boom")
    unreachable)
  (func (export "pair") (result i32 i32)
    i32.const 1
    i32.const 2)
  (func $recurse (export "recurse")
    call $recurse)
  (func (export "spin")
    (loop $again
      br $again)))
"""

INTROSPECT_WAT = """
(module
  (import "host" "check" (func $check (result i32)))
  (func $helper (export "helper") (result i32)
    i32.const 7)
  (func (export "run") (result i32)
    call $check)
  (memory (export "mem") 1)
  (global (export "counter") (mut i32) (i32.const 3))
  (table (export "tbl") 1 funcref)
  (elem (i32.const 0) $helper))
"""


@pytest.fixture
def store() -> Store:
    """Store with no user data."""
    return Store()


@pytest.fixture
def isolated_store() -> Store:
    """Store with its own execution guard, for threading tests."""
    return Store(guard=ExecutionGuard())


@pytest.fixture
def binary_i32() -> FuncType:
    """(i32, i32) -> (i32)"""
    return functype(["i32", "i32"], ["i32"])


@pytest.fixture
def calls_host_wat() -> str:
    """Module whose export forwards its arguments to an imported host function."""
    return CALLS_HOST_WAT


@pytest.fixture
def arithmetic_wat() -> str:
    """Module exporting pure functions and trapping functions."""
    return ARITHMETIC_WAT


@pytest.fixture
def introspect_wat() -> str:
    """Module with a caller-aware import and exports of every kind."""
    return INTROSPECT_WAT


@pytest.fixture
def compile_wat():
    """Compile WAT text for a store's engine."""
    def _compile(store: Store, text: str, name: str = "anonymous") -> Module:
        return Module.from_wat(store.engine, text, name)
    return _compile


@pytest.fixture
def write_module(tmp_path):
    """Write module text or bytes to a temporary file and return its path."""
    def _write(source, name: str = "module.wat") -> str:
        path = tmp_path / name
        if isinstance(source, (bytes, bytearray)):
            path.write_bytes(source)
        else:
            path.write_text(source)
        return str(path)
    return _write
