"""Enumerations for link scheduling simulation.

This module defines enumerations used throughout the scheduling engine.
"""

from enum import Enum


class SchedulerState(Enum):
    """Lifecycle of a scheduler run.

    Attributes:
        IDLE: Flows are still being registered.
        RUNNING: At least one flow still holds packets.
        DRAINING: Every flow is empty; the port is being flushed.
        TERMINAL: Flows and port are both empty.
    """

    IDLE = 0
    RUNNING = 1
    DRAINING = 2
    TERMINAL = 3


class TieBreak(Enum):
    """Policies for choosing between WFQ flows with equal finish estimates.

    Attributes:
        ARRIVAL: Earliest head packet arrival wins, then lowest flow index.
        INDEX: Lowest flow index wins.
        RANDOM: Uniform choice from the scheduler's seeded generator.
    """

    ARRIVAL = "arrival"
    INDEX = "index"
    RANDOM = "random"
