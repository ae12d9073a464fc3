"""Link scheduling algorithms.

Each scheduler owns a set of flows and one egress port, and advances a
discrete clock one tick at a time until every flow is drained. The tick loop
runs as a SimPy process so the port and the scheduler share one clock.
"""

from abc import ABC, abstractmethod
import logging
import math
from typing import Any, Callable, Generator, Hashable, List, Optional, Sequence, Tuple, Union

import numpy as np
import simpy

from linksched.core.enums import SchedulerState, TieBreak
from linksched.core.errors import SchedulerStateError, SchedulerStuckError
from linksched.core.flow import Flow
from linksched.core.packet import Packet
from linksched.core.port import Port, Transmission

logger = logging.getLogger(__name__)

DEFAULT_MAX_TICKS = 1_000_000

TieBreakPolicy = Union[TieBreak, str, Callable[["WFQScheduler", Sequence[int]], int]]


class Scheduler(ABC):
    """Abstract base class for link scheduling algorithms.

    Attributes:
        env: SimPy environment driving the tick loop.
        name: Human readable scheduler name.
        flows: Registered flows; a flow's position is its index.
        weights: Static weight of each flow.
        port: Egress port shared by all flows.
        timer: Ticks elapsed since the run started.
        max_ticks: Tick ceiling after which the run is aborted.
        state: Lifecycle state of the scheduler.
    """

    def __init__(
        self,
        capacity: float,
        env: Optional[simpy.Environment] = None,
        max_ticks: int = DEFAULT_MAX_TICKS,
    ) -> None:
        """
        Initialize the scheduler.

        Args:
            capacity: Units the egress port transmits per tick.
            env: SimPy environment (default: a new one). Must not have advanced.
            max_ticks: Tick ceiling after which SchedulerStuckError is raised.
        """
        if env is None:
            env = simpy.Environment()
        if env.now != 0:
            raise ValueError("Schedulers need a SimPy environment that has not advanced yet.")
        if max_ticks <= 0:
            raise ValueError(f"max_ticks must be positive, got {max_ticks}")
        self.env = env
        self.name = "Base Scheduler"
        self.flows: List[Flow] = []
        self.weights: List[Any] = []
        self.port = Port(env, capacity)
        self.timer = 0
        self.max_ticks = max_ticks
        self.state = SchedulerState.IDLE

    def add_flow(self, flow: Flow, weight: Any) -> int:
        """
        Register a flow with the scheduler.

        Args:
            flow: Flow preloaded with its packets.
            weight: Scheduling weight of the flow.

        Returns:
            The index identifying the flow for the rest of the run.
        """
        if self.state is not SchedulerState.IDLE:
            raise SchedulerStateError("Flows must be registered before the scheduler runs.")
        if weight <= 0:
            raise ValueError(f"Flow weight must be positive, got {weight}")
        self._register(flow, weight)
        self.flows.append(flow)
        self.weights.append(weight)
        logger.debug("%s registered %r as flow %d with weight %s", self.name, flow, len(self.flows) - 1, weight)
        return len(self.flows) - 1

    def _register(self, flow: Flow, weight: Any) -> None:
        """Set up per-flow state for a flow about to be registered."""

    def drained(self) -> bool:
        """Whether every flow has handed all of its packets to the port."""
        return all(flow.empty() for flow in self.flows)

    def run(self) -> List[Transmission]:
        """
        Run the scheduler until every flow is drained, then flush the port.

        Returns:
            Transmissions in departure order.
        """
        if self.state is not SchedulerState.IDLE:
            raise SchedulerStateError(f"{self.name} has already run; build a new scheduler.")
        if self.env.now != 0:
            raise SchedulerStateError(
                f"{self.name} needs a SimPy environment that has not advanced; it is at {self.env.now}."
            )
        self.state = SchedulerState.RUNNING
        self.env.process(self._serve())
        self.env.run()

        self.state = SchedulerState.DRAINING
        self.port.drain()
        self.state = SchedulerState.TERMINAL

        logger.info(
            "%s finished after %d ticks, %d packets sent", self.name, self.timer, self.port.packets_sent
        )
        return self.port.departures

    def _serve(self) -> Generator[simpy.events.Event, Any, None]:
        while not self.drained():
            yield from self.tick()

    def _advance(self) -> Generator[simpy.events.Event, Any, None]:
        """Advance the clock by one tick and let the port transmit."""
        yield self.env.timeout(1)
        self.timer += 1
        if self.timer > self.max_ticks:
            raise SchedulerStuckError(
                f"{self.name} exceeded {self.max_ticks} ticks with packets still queued"
            )
        self.port.tick()

    def admit(self, flow_index: int) -> Packet:
        """
        Move the head packet of a flow into the egress port.

        Args:
            flow_index: Index of the flow to serve.

        Returns:
            The admitted packet.
        """
        packet = self.flows[flow_index].pop()
        self.port.submit(packet, flow_index)
        return packet

    @abstractmethod
    def tick(self) -> Generator[simpy.events.Event, Any, None]:
        """
        Perform one tick of the scheduling state machine.

        Yields:
            SimPy events that advance the clock.
        """
        pass

    @property
    def departures(self) -> List[Tuple[int, Hashable]]:
        """(flow index, packet id) pairs in departure order."""
        return [(t.flow_index, t.packet.id) for t in self.port.departures]

    @property
    def output(self) -> List[Packet]:
        """Packets in departure order."""
        return [t.packet for t in self.port.departures]

    def __repr__(self) -> str:
        return self.name


class DRRScheduler(Scheduler):
    """Deficit Round Robin (DRR) scheduling algorithm.

    Each flow holds a deficit counter of service units. A round visits every
    flow once in registration order and admits its head packet if the counter
    covers the packet length; after the round every counter grows by the
    flow's weight. Rounds only start while the port is idle.
    """

    def __init__(self, capacity: int, **kwargs) -> None:
        super().__init__(capacity, **kwargs)
        self.name = "DRR"
        self.deficit_counters: List[int] = []
        self.rounds = 0

    def _register(self, flow: Flow, weight: int) -> None:
        self.deficit_counters.append(weight)

    def tick(self):
        yield from self._advance()
        if not self.port.empty():
            return

        self.schedule()
        for i, weight in enumerate(self.weights):
            self.deficit_counters[i] += weight

    def schedule(self) -> List[int]:
        """
        Run one scheduling round over all flows.

        Returns:
            Indices of the flows served during the round.
        """
        served = []
        for i, flow in enumerate(self.flows):
            packet = flow.peek(self.timer)
            if packet is None:
                # An idle flow forfeits its credit
                self.deficit_counters[i] = 0
                continue
            if self.deficit_counters[i] >= packet.length:
                self.deficit_counters[i] -= packet.length
                self.admit(i)
                served.append(i)
        self.rounds += 1
        logger.debug("t=%d DRR round %d served %s, deficits %s", self.timer, self.rounds, served, self.deficit_counters)
        return served


class WFQScheduler(Scheduler):
    """Weighted Fair Queueing (WFQ) scheduling algorithm.

    Every tick the eligible head packet with the smallest estimated finish
    time ``length / (weight / total_weight)`` is admitted. The port is not
    checked for occupancy first, so packets may stack up inside it while it
    transmits.
    """

    def __init__(
        self,
        bandwidth: float,
        tie_break: TieBreakPolicy = TieBreak.ARRIVAL,
        seed: int = 42,
        **kwargs,
    ) -> None:
        """
        Initialize the WFQ scheduler.

        Args:
            bandwidth: Units the egress port transmits per tick.
            tie_break: Policy used when several flows share the minimum estimate.
                Either a TieBreak member (or its value) or a callable taking the
                scheduler and the tied flow indices and returning one of them.
            seed: Seed for the generator used by TieBreak.RANDOM.
            **kwargs: Passed through to Scheduler.
        """
        super().__init__(bandwidth, **kwargs)
        self.name = "WFQ"
        self.total_weight = 0.0
        if isinstance(tie_break, str):
            tie_break = TieBreak(tie_break)
        self.tie_break = tie_break
        self.rng = np.random.default_rng(seed)

    def _register(self, flow: Flow, weight: float) -> None:
        self.total_weight += weight

    def estimate_time(self, flow_index: int, packet: Packet) -> float:
        """
        Estimate the finish time of a packet under a fluid fair share.

        Args:
            flow_index: Index of the flow holding the packet.
            packet: The packet to estimate.

        Returns:
            The packet length divided by the flow's share of the link.
        """
        assumed_rate = self.weights[flow_index] / self.total_weight
        return packet.length / assumed_rate

    def tick(self):
        flow_index = self.schedule()
        if flow_index is not None:
            self.admit(flow_index)
        yield from self._advance()

    def schedule(self) -> Optional[int]:
        """
        Select the flow to serve at the current tick.

        Returns:
            Index of the selected flow, or None if no packet is eligible.
        """
        min_time = math.inf
        candidates: List[int] = []
        for i, flow in enumerate(self.flows):
            packet = flow.peek(self.timer)
            if packet is None:
                continue
            time = self.estimate_time(i, packet)
            if candidates and math.isclose(time, min_time):
                candidates.append(i)
            elif time < min_time:
                min_time = time
                candidates = [i]

        if not candidates:
            return None
        if len(candidates) == 1:
            return candidates[0]
        return self.break_tie(candidates)

    def break_tie(self, candidates: Sequence[int]) -> int:
        """
        Pick one flow among several with the same finish estimate.

        Args:
            candidates: Indices of the tied flows, in registration order.

        Returns:
            The index of the chosen flow.
        """
        if callable(self.tie_break):
            choice = self.tie_break(self, candidates)
            if choice not in candidates:
                raise ValueError(f"Tie-break policy returned {choice}, expected one of {list(candidates)}")
            return choice
        if self.tie_break is TieBreak.INDEX:
            return candidates[0]
        if self.tie_break is TieBreak.RANDOM:
            return int(self.rng.choice(candidates))
        return min(candidates, key=lambda i: (self.flows[i].head_arrival_time(), i))


class WRRScheduler(Scheduler):
    """Weighted Round Robin (WRR) scheduling algorithm.

    Flows must carry fixed-length packets. Each flow may send ``weight``
    packets per round; the first flow in registration order with quota left
    and an eligible packet is served, one packet per tick. When no flow can be
    served every quota is refilled.
    """

    def __init__(self, bandwidth: int, **kwargs) -> None:
        super().__init__(bandwidth, **kwargs)
        self.name = "WRR"
        self.current_weights: List[int] = []

    def _register(self, flow: Flow, weight: int) -> None:
        if flow.fixed_length is None:
            raise ValueError("WRR only schedules flows with a fixed packet length.")
        self.current_weights.append(weight)

    def tick(self):
        if self.port.empty() and self.schedule() is None:
            self.current_weights = list(self.weights)
            logger.debug("t=%d WRR quotas reset to %s", self.timer, self.current_weights)
        yield from self._advance()

    def schedule(self) -> Optional[int]:
        """
        Serve the first flow with quota left and an eligible packet.

        Returns:
            Index of the served flow, or None if no flow could be served.
        """
        for i, flow in enumerate(self.flows):
            if self.current_weights[i] <= 0:
                continue
            if flow.peek(self.timer) is not None:
                self.current_weights[i] -= 1
                self.admit(i)
                return i
        return None


def scheduler_factory(scheduler_type: str, capacity: float, **kwargs) -> Scheduler:
    """
    Factory function to create the appropriate scheduler

    Args:
        scheduler_type: Type of the scheduler ("DRR", "WFQ" or "WRR")
        capacity: Units the egress port transmits per tick
        **kwargs: Additional arguments for the specific scheduler

    Returns:
        An instance of the selected scheduling algorithm
    """
    scheduler_type = scheduler_type.upper()
    if scheduler_type == "DRR":
        return DRRScheduler(capacity, **kwargs)
    elif scheduler_type == "WFQ":
        return WFQScheduler(capacity, **kwargs)
    elif scheduler_type == "WRR":
        return WRRScheduler(capacity, **kwargs)
    raise ValueError(f"Unknown scheduler type: {scheduler_type}")
