"""
Unit Tests for Future Cells

Covers the one-shot state machine, callback ordering, continuation
chaining and asyncio interop.
"""

import asyncio
import random

import pytest

from lazyreactor.core import Future, FutureState
from lazyreactor.core.exceptions import (
    ContractViolation,
    DoubleResolutionError,
    FutureFailedError,
    NotReadyError,
)


def random_int(min_val: int = -1000, max_val: int = 1000) -> int:
    """Generate a random integer."""
    return random.randint(min_val, max_val)


# =============================================================================
# State Machine
# =============================================================================

class TestBasicFutures:
    """Test basic future operations."""

    def test_new_future_is_pending(self):
        """Test a fresh future has no outcome."""
        f = Future()
        assert f.is_pending()
        assert not f.is_ready()
        assert not f.failed()
        assert f.state is FutureState.PENDING

    def test_make_ready(self):
        """Test creating a ready future."""
        f = Future.make_ready(42)
        assert f.is_ready()
        assert not f.failed()
        assert f.get() == 42

    def test_make_exception(self):
        """Test creating a failed future."""
        error = ValueError("test error")
        f = Future.make_exception(error)
        assert not f.is_ready()
        assert f.failed()
        assert f.exception() is error

    def test_resolve(self):
        """Test resolving a pending future."""
        value = random_int()
        f = Future()
        f.resolve(value)
        assert f.state is FutureState.READY
        assert f.get() == value

    def test_assign(self):
        """Test assign behaves like resolve and returns the future."""
        f = Future()
        assert f.assign(7) is f
        assert f.get() == 7

    def test_fail_without_cause(self):
        """Test failing with no cause recorded."""
        f = Future()
        f.fail()
        assert f.failed()
        assert f.exception() is None


class TestContractViolations:
    """Test programmer errors are rejected loudly."""

    def test_double_resolve(self):
        """Test resolving twice is rejected and keeps the first value."""
        f = Future()
        f.resolve(1)
        with pytest.raises(DoubleResolutionError):
            f.resolve(2)
        assert f.get() == 1

    def test_resolve_then_fail(self):
        """Test failing a ready future is rejected."""
        f = Future()
        f.resolve(1)
        with pytest.raises(DoubleResolutionError):
            f.fail()
        assert f.is_ready()

    def test_fail_then_resolve(self):
        """Test resolving a failed future is rejected."""
        f = Future()
        f.fail()
        with pytest.raises(DoubleResolutionError):
            f.resolve(1)
        assert f.failed()

    def test_assign_after_ready(self):
        """Test assign on a terminal future is rejected."""
        f = Future.make_ready(1)
        with pytest.raises(DoubleResolutionError):
            f.assign(2)

    def test_get_before_ready(self):
        """Test get() on a pending future."""
        f = Future()
        with pytest.raises(NotReadyError):
            f.get()

    def test_contract_errors_share_base(self):
        """Test contract errors can be caught together."""
        f = Future()
        with pytest.raises(ContractViolation):
            f.get()

    def test_get_on_failed(self):
        """Test get() on a failed future surfaces the cause."""
        error = RuntimeError("boom")
        f = Future.make_exception(error)
        with pytest.raises(FutureFailedError) as exc_info:
            f.get()
        assert exc_info.value.cause is error
        assert not isinstance(exc_info.value, ContractViolation)
        assert exc_info.value.detail == repr(error)


# =============================================================================
# Callbacks
# =============================================================================

class TestCallbacks:
    """Test ready/fail callback delivery."""

    def test_on_ready_before_resolution(self):
        """Test a callback registered early fires once after resolve."""
        calls = []
        f = Future()
        f.on_ready(calls.append)
        assert calls == []

        f.resolve(10)
        assert calls == [10]

    def test_on_ready_after_resolution(self):
        """Test a late callback fires immediately and synchronously."""
        calls = []
        f = Future.make_ready(10)
        f.on_ready(calls.append)
        assert calls == [10]

    def test_registration_order(self):
        """Test callbacks fire in registration order."""
        order = []
        f = Future()
        f.on_ready(lambda v: order.append("c1"))
        f.on_ready(lambda v: order.append("c2"))
        f.on_ready(lambda v: order.append("c3"))

        f.resolve(None)
        assert order == ["c1", "c2", "c3"]

    def test_callback_registered_during_firing(self):
        """Test a callback added while firing runs once, immediately."""
        order = []
        f = Future()

        def first(value):
            order.append("first")
            f.on_ready(lambda v: order.append("nested"))
            order.append("first-done")

        f.on_ready(first)
        f.on_ready(lambda v: order.append("second"))
        f.resolve(1)

        assert order == ["first", "nested", "first-done", "second"]

    def test_fail_callbacks(self):
        """Test fail callbacks fire and ready callbacks do not."""
        ready, failed = [], []
        f = Future()
        f.on_ready(ready.append)
        f.on_fail(lambda: failed.append(True))

        f.fail(ValueError("x"))
        assert ready == []
        assert failed == [True]

    def test_on_fail_after_failure(self):
        """Test a late fail callback fires immediately."""
        failed = []
        f = Future.make_exception()
        f.on_fail(lambda: failed.append(True))
        assert failed == [True]

    def test_ready_callback_not_fired_on_failed(self):
        """Test late ready callbacks never fire on a failed future."""
        calls = []
        f = Future.make_exception()
        f.on_ready(calls.append)
        assert calls == []

    def test_callback_exception_propagates(self):
        """Test a raising callback surfaces to the resolver."""
        f = Future()

        def bad(value):
            raise KeyError("bad")

        f.on_ready(bad)
        with pytest.raises(KeyError):
            f.resolve(1)
        assert f.is_ready()


# =============================================================================
# Chaining
# =============================================================================

class TestChaining:
    """Test future chaining operations."""

    def test_simple_chain(self):
        """Test simple .then() chain."""
        f = Future.make_ready(10)
        result = f.then(lambda x: x * 2).get()
        assert result == 20

    def test_multi_step_chain(self):
        """Test multi-step chain."""
        result = (Future.make_ready(5)
                  .then(lambda x: x * 2)      # 10
                  .then(lambda x: x + 5)      # 15
                  .then(lambda x: x * 3)      # 45
                  .get())
        assert result == 45

    def test_chain_on_pending(self):
        """Test chain settles when the source resolves."""
        f = Future()
        chained = f.then(lambda x: str(x))
        assert chained.is_pending()

        f.resolve(42)
        assert chained.get() == "42"

    def test_chain_with_error(self):
        """Test error propagation through chain."""
        error = ValueError("error")
        f = Future.make_exception(error)
        result = f.then(lambda x: x * 2)
        assert result.failed()
        assert result.exception() is error

    def test_chain_func_raises(self):
        """Test a raising continuation fails the result."""
        result = Future.make_ready(0).then(lambda x: 1 / x)
        assert result.failed()
        assert isinstance(result.exception(), ZeroDivisionError)

    def test_handle_error(self):
        """Test error handling with handle_error."""
        f = Future.make_exception(ValueError("error"))
        result = f.handle_error(lambda e: "default")
        assert result.get() == "default"

    def test_handle_error_receives_cause(self):
        """Test the handler sees the failure cause."""
        error = ValueError("error")
        seen = []
        Future.make_exception(error).handle_error(seen.append)
        assert seen == [error]

    def test_handle_error_no_error(self):
        """Test handle_error when no error."""
        f = Future.make_ready(42)
        result = f.handle_error(lambda e: 0)
        assert result.get() == 42


# =============================================================================
# asyncio Interop
# =============================================================================

class TestAsyncio:
    """Test awaiting futures from coroutines."""

    @pytest.mark.asyncio
    async def test_await_ready_future(self):
        """Test awaiting an already-ready future."""
        f = Future.make_ready(123)
        result = await f
        assert result == 123

    @pytest.mark.asyncio
    async def test_await_pending_future(self):
        """Test awaiting a future resolved later on the loop."""
        f = Future()
        asyncio.get_running_loop().call_soon(f.resolve, 99)
        assert await f == 99

    @pytest.mark.asyncio
    async def test_await_multiple_futures(self):
        """Test awaiting multiple futures."""
        f1 = Future.make_ready(1)
        f2 = Future.make_ready(2)
        f3 = Future.make_ready(3)

        results = await asyncio.gather(f1, f2, f3)
        assert results == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_await_failed_future(self):
        """Test awaiting a failing future raises."""
        f = Future()
        asyncio.get_running_loop().call_soon(f.fail, RuntimeError("down"))
        with pytest.raises(FutureFailedError):
            await f
