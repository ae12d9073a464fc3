"""Discrete-time simulation of link scheduling disciplines."""

from linksched.core.enums import SchedulerState, TieBreak
from linksched.core.errors import (
    EmptyFlowError,
    SchedulerStateError,
    SchedulerStuckError,
    SchedulingError,
)
from linksched.core.flow import Flow
from linksched.core.packet import Packet
from linksched.core.port import Port, Transmission
from linksched.core.scheduling_algorithms import (
    DEFAULT_MAX_TICKS,
    DRRScheduler,
    Scheduler,
    WFQScheduler,
    WRRScheduler,
    scheduler_factory,
)

__version__ = "0.1.0"
