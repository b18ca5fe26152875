"""
lazyreactor Core Runtime

Single-assignment futures, combinators and a cooperative scheduler for
sequential-style routines.
"""

from .future import Future, FutureState
from .combinators import compose, JoinBarrier, when_all, when_any
from .scheduler import Scheduler, SchedulerState, start_and_run_once, await_value
from .config import SchedulerConfig

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
]
