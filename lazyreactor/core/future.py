"""
Future Cell

Single-assignment future with ready/fail signaling.

A future starts pending and moves exactly once to ready (with a value) or
to failed (with an optional cause). Callbacks fire synchronously, in
registration order, on the thread that performs the transition.
"""

import asyncio
import threading
from enum import Enum
from typing import TypeVar, Generic, Callable, List, Any, Optional

from .exceptions import DoubleResolutionError, NotReadyError, FutureFailedError

T = TypeVar('T')
U = TypeVar('U')


class FutureState(Enum):
    """Lifecycle of a future cell."""
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


class Future(Generic[T]):
    """
    Single-assignment asynchronous value.

    Supports explicit callbacks (on_ready / on_fail), continuation chaining
    (.then), composition with ``+`` and awaiting from asyncio coroutines.

    Examples:
        # Callbacks
        f = Future()
        f.on_ready(lambda x: print(x))
        f.resolve(42)

        # Composition
        total = a + b + 1

        # Chaining
        f.then(lambda x: x * 2).then(lambda y: str(y))
    """

    def __init__(self):
        """Create a pending future."""
        self._state = FutureState.PENDING
        self._value: Optional[T] = None
        self._exception: Optional[BaseException] = None
        self._ready_callbacks: List[Callable[[T], Any]] = []
        self._fail_callbacks: List[Callable[[], Any]] = []
        # Guards state checks and registration; never held while callbacks run.
        self._lock = threading.RLock()

    def __repr__(self):
        if self._state is FutureState.READY:
            return f"<Future ready value={self._value!r}>"
        return f"<Future {self._state.value}>"

    @property
    def state(self) -> FutureState:
        return self._state

    def resolve(self, value: T) -> None:
        """
        Resolve the future and fire ready callbacks.

        Args:
            value: The future's value

        Raises:
            DoubleResolutionError if the future is already ready or failed
        """
        with self._lock:
            if self._state is not FutureState.PENDING:
                raise DoubleResolutionError(
                    f"Double resolution: future is already {self._state.value}"
                )
            self._value = value
            self._state = FutureState.READY
            callbacks = self._ready_callbacks
            self._ready_callbacks = []
            self._fail_callbacks = []

        for callback in callbacks:
            callback(value)

    def assign(self, value: T) -> 'Future[T]':
        """Set the value of a pending future. Same contract as resolve()."""
        self.resolve(value)
        return self

    def fail(self, exception: Optional[BaseException] = None) -> None:
        """
        Fail the future and fire fail callbacks.

        Args:
            exception: Optional cause, available through exception()

        Raises:
            DoubleResolutionError if the future is already ready or failed
        """
        with self._lock:
            if self._state is not FutureState.PENDING:
                raise DoubleResolutionError(
                    f"Cannot fail: future is already {self._state.value}"
                )
            self._exception = exception
            self._state = FutureState.FAILED
            callbacks = self._fail_callbacks
            self._ready_callbacks = []
            self._fail_callbacks = []

        for callback in callbacks:
            callback()

    def on_ready(self, callback: Callable[[T], Any]) -> None:
        """
        Register a callback for the ready transition.

        If the future is already ready the callback runs immediately.
        """
        with self._lock:
            if self._state is FutureState.PENDING:
                self._ready_callbacks.append(callback)
                return
            ready = self._state is FutureState.READY

        if ready:
            callback(self._value)

    def on_fail(self, callback: Callable[[], Any]) -> None:
        """
        Register a callback for the failed transition.

        If the future has already failed the callback runs immediately.
        """
        with self._lock:
            if self._state is FutureState.PENDING:
                self._fail_callbacks.append(callback)
                return
            failed = self._state is FutureState.FAILED

        if failed:
            callback()

    def is_ready(self) -> bool:
        """Check if future is ready."""
        return self._state is FutureState.READY

    def is_pending(self) -> bool:
        return self._state is FutureState.PENDING

    def failed(self) -> bool:
        """Check if future has failed."""
        return self._state is FutureState.FAILED

    def exception(self) -> Optional[BaseException]:
        """Failure cause, or None when the future did not fail with one."""
        return self._exception

    def get(self) -> T:
        """
        Get the value.

        Returns:
            The future's value

        Raises:
            NotReadyError if the future is still pending (contract violation)
            FutureFailedError if the future failed; this is the domain
                failure path, not a contract violation
        """
        if self._state is FutureState.READY:
            return self._value

        if self._state is FutureState.FAILED:
            raise FutureFailedError("Future failed", cause=self._exception) from self._exception

        raise NotReadyError("Future not ready")

    def then(self, func: Callable[[T], U]) -> 'Future[U]':
        """
        Explicit continuation chaining.

        Args:
            func: Continuation function that receives the value

        Returns:
            New future for the result. It fails if this future fails or
            if func raises.

        Example:
            future.then(lambda x: x * 2).then(lambda y: str(y))
        """
        result: Future[U] = Future()

        def _on_ready(value):
            try:
                mapped = func(value)
            except Exception as e:
                result.fail(e)
                return
            result.resolve(mapped)

        self.on_ready(_on_ready)
        self.on_fail(lambda: result.fail(self._exception))
        return result

    def handle_error(self, func: Callable[[Optional[BaseException]], T]) -> 'Future[T]':
        """
        Handle errors in the future chain.

        Args:
            func: Error handler that receives the failure cause

        Returns:
            New future holding either this future's value or the
            handler's result
        """
        result: Future[T] = Future()

        def _on_fail():
            try:
                recovered = func(self._exception)
            except Exception as e:
                result.fail(e)
                return
            result.resolve(recovered)

        self.on_ready(result.resolve)
        self.on_fail(_on_fail)
        return result

    def __add__(self, other: Any) -> 'Future':
        from .combinators import compose
        return compose(self, other)

    def __radd__(self, other: Any) -> 'Future':
        from .combinators import compose
        return compose(other, self)

    def __await__(self):
        """
        Make future awaitable.

        Integrates with Python's asyncio event loop. Resolution may happen
        on any thread; the result is delivered through the running loop.
        """
        async def _await_impl():
            if self._state is FutureState.READY:
                # Fast path: already resolved
                return self._value

            if self._state is FutureState.FAILED:
                raise FutureFailedError("Future failed", cause=self._exception)

            loop = asyncio.get_running_loop()
            py_future = loop.create_future()

            def _set_result(value):
                if not py_future.done():
                    py_future.set_result(value)

            def _set_exception():
                if not py_future.done():
                    py_future.set_exception(
                        FutureFailedError("Future failed", cause=self._exception)
                    )

            self.on_ready(lambda value: loop.call_soon_threadsafe(_set_result, value))
            self.on_fail(lambda: loop.call_soon_threadsafe(_set_exception))

            return await py_future

        return _await_impl().__await__()

    @staticmethod
    def make_ready(value: T) -> 'Future[T]':
        """Create a future that's already resolved."""
        f = Future()
        f.resolve(value)
        return f

    @staticmethod
    def make_exception(exception: Optional[BaseException] = None) -> 'Future[T]':
        """Create a future that's already failed."""
        f = Future()
        f.fail(exception)
        return f


def lift(value: Any) -> Future:
    """Return value unchanged if it is a future, else a ready future holding it."""
    if isinstance(value, Future):
        return value
    return Future.make_ready(value)
