"""
lazyreactor - Reactive Futures with Cooperative Suspension

A minimal reactive-future runtime.

Features:
- Single-assignment futures with ready/fail callbacks
- Composition (a + b), AND-join barriers, when_all / when_any
- Sequential-style routines that suspend on a future and resume when it settles
- asyncio interop (futures are awaitable)
"""

from .core import (
    Future, FutureState,
    compose, JoinBarrier, when_all, when_any,
    Scheduler, SchedulerState, start_and_run_once, await_value,
    SchedulerConfig,
)
from .core.exceptions import (
    LazyError,
    ContractViolation,
    DoubleResolutionError,
    NotReadyError,
    RoutineFinishedError,
    ReentrantResumeError,
    NotInRoutineError,
    FutureFailedError,
)

__version__ = "0.1.0"

__all__ = [
    'Future',
    'FutureState',
    'compose',
    'JoinBarrier',
    'when_all',
    'when_any',
    'Scheduler',
    'SchedulerState',
    'start_and_run_once',
    'await_value',
    'SchedulerConfig',
    'LazyError',
    'ContractViolation',
    'DoubleResolutionError',
    'NotReadyError',
    'RoutineFinishedError',
    'ReentrantResumeError',
    'NotInRoutineError',
    'FutureFailedError',
]
