"""Runtime exception hierarchy."""

from typing import Optional


class LazyError(Exception):
    """Base exception for all runtime operations."""

    def __init__(self, message: str, detail: Optional[str] = None):
        self.message = message
        self.detail = detail
        super().__init__(message)


class ContractViolation(LazyError):
    """Programmer error: an operation was used outside its contract."""
    pass


class DoubleResolutionError(ContractViolation):
    """Future already reached a terminal state."""
    pass


class NotReadyError(ContractViolation):
    """Value requested from a future that is still pending."""
    pass


class RoutineFinishedError(ContractViolation):
    """Resume requested for a routine that already ran to completion."""
    pass


class ReentrantResumeError(ContractViolation):
    """Handoff requested while the routine already holds control."""
    pass


class NotInRoutineError(ContractViolation):
    """await_value called from outside a scheduled routine."""
    pass


class FutureFailedError(LazyError):
    """The awaited computation did not produce a value."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message, detail=repr(cause) if cause is not None else None)
