"""Test the host Store and its held exception slot."""
import pytest
import wasmtime

from vmbridge.config import BridgeConfig, EngineConfig
from vmbridge.runtime import Func, HeldExceptionSlot, Store, functype


class TestHeldExceptionSlot:
    """Tests for HeldExceptionSlot."""

    def test_empty(self):
        """Test a new slot holds nothing."""
        slot = HeldExceptionSlot()
        assert not slot.is_set
        assert slot.take() is None

    def test_hold_and_take(self):
        """Test take returns the held object and clears the slot."""
        slot = HeldExceptionSlot()
        err = ValueError("boom")
        slot.hold(err)
        assert slot.is_set
        assert slot.peek() is err
        assert slot.take() is err
        assert not slot.is_set

    def test_second_hold_chains_pending(self):
        """Test the newest exception wins and keeps the pending one as context."""
        slot = HeldExceptionSlot()
        first = ValueError("first")
        second = KeyError("second")
        slot.hold(first)
        slot.hold(second)
        assert slot.take() is second
        assert second.__context__ is first

    def test_chain_appends_at_tail(self):
        """Test an existing context chain is extended, not overwritten."""
        slot = HeldExceptionSlot()
        pending = ValueError("pending")
        cause = OSError("cause")
        newest = RuntimeError("newest")
        newest.__context__ = cause
        slot.hold(pending)
        slot.hold(newest)
        assert slot.take() is newest
        assert newest.__context__ is cause
        assert cause.__context__ is pending

    def test_rehold_same_exception(self):
        """Test holding the pending exception again does not create a cycle."""
        slot = HeldExceptionSlot()
        err = ValueError("again")
        slot.hold(err)
        slot.hold(err)
        assert slot.take() is err
        assert err.__context__ is None

    def test_collision_is_logged(self, caplog):
        """Test replacing a pending exception is reported."""
        slot = HeldExceptionSlot()
        slot.hold(ValueError("a"))
        with caplog.at_level("WARNING", logger="vmbridge.runtime.store"):
            slot.hold(ValueError("b"))
        assert "replaced" in caplog.text


class TestStore:
    """Tests for Store."""

    def test_user_data(self):
        """Test user data is exposed."""
        data = {"name": "demo"}
        store = Store(data)
        assert store.user_data() is data
        assert store.data is data

    def test_retain_and_mark(self):
        """Test retained values are reported to the collector."""
        data = object()
        store = Store(data)
        value = object()
        store.retain(value)
        assert value in store.retained
        assert list(store.mark()) == [data, value]

    def test_func_retains_closure(self, store):
        """Test constructing a Func pins its callable on the store."""
        def closure():
            return None
        Func(store, functype([], []), closure)
        assert closure in store.retained

    def test_borrow_mut_yields_wasmtime_store(self, store):
        """Test borrow_mut gives the wasmtime store outside of host calls."""
        with store.borrow_mut() as ctx:
            assert isinstance(ctx, wasmtime.Store)
            assert ctx is store.inner

    def test_borrow_mut_nests(self, store):
        """Test nested borrows on the same thread reuse the active borrow."""
        with store.borrow_mut() as outer:
            with store.borrow_mut() as inner:
                assert inner is outer
                assert store.guard.depth == 2
        assert store.guard.owner is None

    def test_host_call_context(self, store):
        """Test a host call borrows through its wasmtime Caller."""
        seen = []

        def host(caller):
            with store.borrow_mut() as ctx:
                seen.append(ctx)

        Func(store, functype([], []), host, caller=True).call()
        assert len(seen) == 1
        assert isinstance(seen[0], wasmtime.Caller)
        assert store.context() is store.inner

    def test_engine_shared(self):
        """Test stores built on one engine share it."""
        first = Store()
        second = Store(engine=first.engine)
        assert second.engine is first.engine
        assert second.inner is not first.inner

    def test_repr(self, store):
        """Test the store names itself by id."""
        assert repr(store) == f"<Store id={store.id} retained=0>"


class TestConfig:
    """Tests for configuration objects."""

    def test_invalid_contention(self):
        """Test unknown contention policies are rejected."""
        with pytest.raises(ValueError):
            BridgeConfig(contention="spin")

    def test_invalid_limits(self):
        """Test limits must not be negative."""
        with pytest.raises(ValueError):
            EngineConfig(fuel=-1)
        with pytest.raises(ValueError):
            EngineConfig(max_memory_bytes=-1)
        with pytest.raises(ValueError):
            EngineConfig(cranelift_opt_level="fastest")

    def test_from_dict_round_trip(self):
        """Test configs load from plain mappings."""
        config = BridgeConfig.from_dict({"contention": "block", "engine": {"fuel": 10000}})
        assert config.contention == "block"
        assert config.engine.fuel == 10000
        assert BridgeConfig.from_dict(config.to_dict()) == config

    def test_fuel_applied(self):
        """Test a fuel budget is loaded into the wasmtime store."""
        store = Store(config=BridgeConfig(engine=EngineConfig(fuel=500)))
        assert store.inner.get_fuel() == 500
