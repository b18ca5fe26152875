"""
Future Combinators

Utilities for composing and joining futures.

Failure policy:
- compose fails its result when either operand fails.
- JoinBarrier treats any failed watched future as a failed join.
- when_all fails on the first failed input; when_any fails only when
  every input has failed.
"""

import operator
import threading
from typing import TypeVar, List, Callable, Any, Iterable, Tuple, Union

from .future import Future, lift

T = TypeVar('T')


def compose(a: Any, b: Any, op: Callable[[Any, Any], Any] = operator.add) -> Future:
    """
    Sequentially combine two futures.

    ``b`` is only watched once ``a`` is ready. The result resolves with
    ``op(value_a, value_b)``. Plain values are lifted to ready futures.

    Args:
        a: First operand
        b: Second operand
        op: Binary operation applied to both values

    Returns:
        New future for the combined value

    Example:
        total = compose(price, tax)        # same as price + tax
        ratio = compose(hits, total, operator.truediv)
    """
    a = lift(a)
    b = lift(b)
    result = Future()

    def _step1(value_a):
        def _step2(value_b):
            try:
                combined = op(value_a, value_b)
            except Exception as e:
                result.fail(e)
                return
            result.resolve(combined)

        b.on_ready(_step2)
        b.on_fail(lambda: result.fail(b.exception()))

    a.on_ready(_step1)
    a.on_fail(lambda: result.fail(a.exception()))
    return result


class JoinBarrier:
    """
    AND-join over a set of futures.

    Jobs queued with run_when_all_ready() run exactly once, in queue order,
    when every watched future is ready. If any watched future fails the
    join fails: ready jobs are dropped and failure jobs run instead.

    Example:
        barrier = JoinBarrier().watch(users).watch(orders)
        barrier.run_when_all_ready(lambda: render(users.get(), orders.get()))
    """

    def __init__(self):
        self._pending_count = 0
        self._jobs: List[Callable[[], Any]] = []
        self._failure_jobs: List[Callable[[], Any]] = []
        self._failed = False
        self._lock = threading.Lock()

    @property
    def pending_count(self) -> int:
        return self._pending_count

    @property
    def failed(self) -> bool:
        return self._failed

    def watch(self, future: Future) -> 'JoinBarrier':
        """Add a future to the join."""
        with self._lock:
            self._pending_count += 1
        future.on_ready(self._one_ready)
        future.on_fail(self._one_failed)
        return self

    def run_when_all_ready(self, job: Callable[[], Any]) -> 'JoinBarrier':
        """
        Queue a job for when every watched future is ready.

        Runs immediately if nothing is pending. Never runs once the join
        has failed.
        """
        with self._lock:
            if self._failed:
                return self
            if self._pending_count > 0:
                self._jobs.append(job)
                return self
        job()
        return self

    def run_on_failure(self, job: Callable[[], Any]) -> 'JoinBarrier':
        """Queue a job for when any watched future fails."""
        with self._lock:
            if not self._failed:
                self._failure_jobs.append(job)
                return self
        job()
        return self

    def _one_ready(self, _value: Any) -> None:
        with self._lock:
            if self._failed:
                return
            self._pending_count -= 1
            if self._pending_count > 0:
                return
            jobs = self._jobs
            self._jobs = []

        for job in jobs:
            job()

    def _one_failed(self) -> None:
        with self._lock:
            if self._failed:
                return
            self._failed = True
            self._pending_count -= 1
            jobs = self._failure_jobs
            self._failure_jobs = []
            self._jobs = []

        for job in jobs:
            job()


def when_all(futures: Iterable[Union[Future[T], T]]) -> Future[List[T]]:
    """
    Wait for all futures to complete.

    Args:
        futures: Futures (or plain values) to wait for

    Returns:
        Future resolving to the list of results in input order

    Example:
        both = when_all([fetch_user(), fetch_orders()])
        both.on_ready(lambda results: render(*results))
    """
    futures = [lift(f) for f in futures]
    result: Future[List[T]] = Future()
    barrier = JoinBarrier()

    for f in futures:
        barrier.watch(f)

    def _on_failure():
        cause = next((f.exception() for f in futures if f.failed()), None)
        result.fail(cause)

    barrier.run_when_all_ready(lambda: result.resolve([f.get() for f in futures]))
    barrier.run_on_failure(_on_failure)
    return result


def when_any(futures: Iterable[Union[Future[T], T]]) -> Future[Tuple[int, T]]:
    """
    Wait for the first future to become ready.

    Racing an awaited future against a timer future gives a timeout.

    Args:
        futures: Futures (or plain values)

    Returns:
        Future resolving to (index, value) of the first ready input

    Raises:
        ValueError if futures is empty
    """
    futures = [lift(f) for f in futures]
    if not futures:
        raise ValueError("when_any requires at least one future")

    result: Future[Tuple[int, T]] = Future()
    lock = threading.Lock()
    remaining = len(futures)

    def _won(index, value):
        with lock:
            if not result.is_pending():
                return
        result.resolve((index, value))

    def _lost(f):
        nonlocal remaining
        with lock:
            remaining -= 1
            if remaining > 0 or not result.is_pending():
                return
        result.fail(f.exception())

    for index, f in enumerate(futures):
        f.on_ready(lambda value, index=index: _won(index, value))
        f.on_fail(lambda f=f: _lost(f))

    return result
