"""Exceptions raised by the scheduling engine."""


class SchedulingError(Exception):
    """Base class for scheduling engine errors."""


class EmptyFlowError(SchedulingError, IndexError):
    """Raised when a packet is popped from a flow that holds none."""


class SchedulerStuckError(SchedulingError, RuntimeError):
    """Raised when a scheduler exceeds its tick ceiling without draining."""


class SchedulerStateError(SchedulingError, RuntimeError):
    """Raised when a scheduler is used outside its build/run lifecycle."""
