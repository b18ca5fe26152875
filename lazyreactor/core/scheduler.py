"""
Cooperative Scheduler

Runs a routine written in plain sequential style inside its own execution
context. The routine suspends at await_value() until a future terminates,
then resumes where it left off.

The routine context is a dedicated thread used strictly as a stackful
coroutine: two semaphores pass control back and forth so that exactly one
of driver and routine executes at any time.

Example:
    a, b = Future(), Future()

    def routine():
        x = await_value("a", a)
        y = await_value("b", b)
        return x + y

    scheduler = start_and_run_once(routine)   # runs until the first await
    a.resolve(10)                             # resumes, suspends on b
    b.resolve(5)                              # resumes, routine finishes
    assert scheduler.completion.get() == 15
"""

import itertools
import logging
import threading
from enum import Enum
from typing import Any, Callable, Optional, TypeVar

from .config import SchedulerConfig
from .exceptions import (
    ContractViolation,
    FutureFailedError,
    NotInRoutineError,
    ReentrantResumeError,
    RoutineFinishedError,
)
from .future import Future

T = TypeVar('T')

logger = logging.getLogger(__name__)

# Scheduler owning the calling routine context, per thread.
_current = threading.local()
_ids = itertools.count(1)


class SchedulerState(Enum):
    """Which side of the handoff holds control."""
    DRIVER_ACTIVE = "driver_active"
    ROUTINE_ACTIVE = "routine_active"


class Scheduler:
    """
    Driver/routine handoff for one logical routine invocation.

    The driver is whichever thread calls start() or resume(); typically the
    thread resolving the future the routine is waiting on.
    """

    def __init__(
        self,
        entry: Callable[[], Any],
        config: Optional[SchedulerConfig] = None,
        name: Optional[str] = None,
    ):
        """
        Create a scheduler for a routine.

        Args:
            entry: Zero-argument callable run as the routine
            config: Execution context settings (defaults if omitted)
            name: Label for logs and the context thread
        """
        self.entry = entry
        self.config = config or SchedulerConfig()
        self.name = name or f"{self.config.name_prefix}-{next(_ids)}"
        self.completion: Future[Any] = Future()

        self._state = SchedulerState.DRIVER_ACTIVE
        self._started = False
        self._finished = False
        self._awaiting: Optional[Future] = None
        self._suspended_on: Optional[str] = None
        self._result: Any = None
        self._error: Optional[BaseException] = None

        self._to_routine = threading.Semaphore(0)
        self._to_driver = threading.Semaphore(0)
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None

    def __repr__(self):
        return f"<Scheduler {self.name} {self._state.value} finished={self._finished}>"

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def suspended_on(self) -> Optional[str]:
        """Label passed to the await_value() the routine is parked in."""
        return self._suspended_on

    def start(self) -> 'Scheduler':
        """
        Establish the routine context and run it until it suspends or ends.

        Raises:
            ReentrantResumeError if the scheduler was already started
        """
        with self._lock:
            if self._started:
                raise ReentrantResumeError(f"Scheduler {self.name} already started")
            self._started = True

        try:
            self._thread = self._create_context()
        except BaseException:
            with self._lock:
                self._started = False
            raise
        logger.debug(f"Starting routine {self.name}")
        self._handoff_to_routine()
        return self

    def resume(self) -> None:
        """
        Hand control to the suspended routine.

        Returns once the routine suspends again or finishes.

        Raises:
            ContractViolation if the routine was never started or its
                awaited future is still pending
            RoutineFinishedError if the routine already finished
            ReentrantResumeError if the routine currently holds control
        """
        if not self._started:
            raise ContractViolation(f"Scheduler {self.name} has not been started")

        awaiting = self._awaiting
        if awaiting is not None and awaiting.is_pending():
            raise ContractViolation(
                f"Routine {self.name} is waiting on {self._suspended_on!r}, which is still pending"
            )

        self._handoff_to_routine()

    def await_value(self, name: str, future: Future[T]) -> T:
        """
        Suspend the routine until future terminates and return its value.

        Must be called from inside this scheduler's routine.

        Args:
            name: Diagnostic label for logs
            future: Future to wait on

        Returns:
            The future's value

        Raises:
            NotInRoutineError if called outside the routine
            FutureFailedError if the future fails
        """
        if threading.current_thread() is not self._thread:
            raise NotInRoutineError(
                f"await_value({name!r}) called outside routine {self.name}"
            )

        if future.is_pending():
            self._awaiting = future
            self._suspended_on = name
            logger.debug(f"[async wait {name}]")

            future.on_ready(lambda _value: self._continue())
            future.on_fail(self._continue)

            # Producers outside this runtime may have settled it meanwhile
            if future.is_pending():
                self._handoff_to_driver()

            self._awaiting = None
            self._suspended_on = None

        if future.failed():
            logger.debug(f"[async failed {name}]")
            raise FutureFailedError(
                f"Awaited future {name!r} failed", cause=future.exception()
            ) from future.exception()

        value = future.get()
        logger.debug(f"[async ready {name}={value!r}]")
        return value

    def _continue(self) -> None:
        # Fired by the awaited future; a no-op when it settles on the
        # routine's own thread before the routine has handed off.
        if threading.current_thread() is self._thread:
            return
        logger.debug("[async continue]")
        self.resume()

    def _create_context(self) -> threading.Thread:
        """Create and start the routine's thread with the configured stack."""
        previous = None
        if self.config.stack_size:
            previous = threading.stack_size(self.config.stack_size)
        try:
            thread = threading.Thread(target=self._run_routine, name=self.name, daemon=True)
            thread.start()
        finally:
            if previous is not None:
                threading.stack_size(previous)
        return thread

    def _run_routine(self) -> None:
        """Routine context body."""
        self._to_routine.acquire()
        _current.scheduler = self
        try:
            self._result = self.entry()
        except BaseException as e:
            # SystemExit and KeyboardInterrupt end the routine as well
            logger.error(f"Routine {self.name} failed: {type(e).__name__}: {e}")
            self._error = e
        finally:
            with self._lock:
                self._finished = True
                self._state = SchedulerState.DRIVER_ACTIVE
            self._to_driver.release()

    def _handoff_to_routine(self) -> None:
        """Driver side: DriverActive -> RoutineActive, block until handed back."""
        with self._lock:
            if self._finished:
                raise RoutineFinishedError(f"Routine {self.name} already finished")
            if self._state is SchedulerState.ROUTINE_ACTIVE:
                raise ReentrantResumeError(f"Routine {self.name} is already running")
            self._state = SchedulerState.ROUTINE_ACTIVE

        self._to_routine.release()
        self._to_driver.acquire()

        if self._finished:
            self._teardown()

    def _handoff_to_driver(self) -> None:
        """Routine side: RoutineActive -> DriverActive, block until resumed."""
        with self._lock:
            self._state = SchedulerState.DRIVER_ACTIVE
        self._to_driver.release()
        self._to_routine.acquire()

    def _teardown(self) -> None:
        """Reap the finished context and settle the completion future."""
        self._thread.join(self.config.join_timeout)
        if self._thread.is_alive():
            logger.warning(f"Routine {self.name} context did not exit within {self.config.join_timeout}s")
        logger.debug(f"Routine {self.name} finished")

        if self._error is not None:
            self.completion.fail(self._error)
        else:
            self.completion.resolve(self._result)


def start_and_run_once(
    entry: Callable[[], Any],
    config: Optional[SchedulerConfig] = None,
) -> Scheduler:
    """
    Launch a routine and run it until its first suspension or its end.

    Args:
        entry: Zero-argument callable run as the routine
        config: Execution context settings

    Returns:
        The routine's scheduler
    """
    return Scheduler(entry, config=config).start()


def current_scheduler() -> Optional[Scheduler]:
    """Scheduler owning the calling routine, or None outside any routine."""
    return getattr(_current, 'scheduler', None)


def await_value(name: str, future: Future[T]) -> T:
    """
    Suspend the calling routine until future terminates.

    Raises:
        NotInRoutineError if not called from a scheduled routine
        FutureFailedError if the future fails
    """
    scheduler = current_scheduler()
    if scheduler is None:
        raise NotInRoutineError(f"await_value({name!r}) called outside a scheduled routine")
    return scheduler.await_value(name, future)
