"""Port class for link scheduling simulation.

This module defines the Port class, which represents the shared,
capacity-limited egress resource that scheduled packets depart through.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, List, Optional

import simpy

from linksched.core.packet import Packet

logger = logging.getLogger(__name__)


@dataclass
class Transmission:
    """A packet admitted to the port.

    Attributes:
        flow_index: Index of the flow the packet was taken from.
        packet: The admitted packet.
        admitted_at: Tick at which the scheduler submitted the packet.
        departed_at: Tick at which the last unit left the port, if it has.
        remaining: Units of the packet not yet transmitted.
    """

    flow_index: int
    packet: Packet
    admitted_at: float
    departed_at: Optional[float] = None
    remaining: int = field(init=False)

    def __post_init__(self):
        """Initialize derived attributes after initialization."""
        self.remaining = self.packet.length

    def get_delay(self) -> Optional[float]:
        """Ticks between packet arrival and departure, or None if still queued."""
        if self.departed_at is None:
            return None
        return self.departed_at - self.packet.arrival_time


class Port:
    """Represents the egress port shared by all flows of a scheduler.

    Attributes:
        env: SimPy environment providing the current tick.
        id: Port identifier.
        capacity: Units the port transmits per tick.
        history: Transmissions in admission order.
        departures: Transmissions in departure order.
        packets_sent: Number of packets that have departed.
        units_sent: Number of units transmitted so far.
    """

    def __init__(self, env: simpy.Environment, capacity: float, port_id: int = 0):
        """Initialize an egress port.

        Args:
            env: SimPy environment.
            capacity: Units transmitted per tick.
            port_id: Port identifier.
        """
        if capacity <= 0:
            raise ValueError(f"Port capacity must be positive, got {capacity}")
        self.env = env
        self.id = port_id
        self.capacity = capacity
        self.history: List[Transmission] = []
        self.departures: List[Transmission] = []
        self.packets_sent = 0
        self.units_sent = 0
        self._backlog: Deque[Transmission] = deque()
        self._load = 0

    @property
    def current_load(self) -> float:
        """Units staged in the port and not yet transmitted."""
        return self._load

    def empty(self) -> bool:
        """Whether the port can take the next packet without queueing it."""
        return not self._backlog

    def submit(self, packet: Packet, flow_index: int) -> Transmission:
        """Stage a packet for transmission.

        Args:
            packet: The packet to transmit.
            flow_index: Index of the flow the packet came from.

        Returns:
            The transmission record for the packet.
        """
        transmission = Transmission(flow_index, packet, self.env.now)
        self._backlog.append(transmission)
        self._load += packet.length
        self.history.append(transmission)
        logger.debug(
            "t=%s port %s admitted %r from flow %d",
            self.env.now, self.id, packet.id, flow_index,
        )
        return transmission

    def tick(self) -> List[Transmission]:
        """Transmit up to ``capacity`` units of the staged packets.

        Returns:
            Transmissions that completed during this tick.
        """
        budget = self.capacity
        completed = []
        while self._backlog and budget > 0:
            head = self._backlog[0]
            sent = min(head.remaining, budget)
            head.remaining -= sent
            budget -= sent
            self._load -= sent
            self.units_sent += sent
            if head.remaining <= 0:
                head.remaining = 0
                self._depart(self._backlog.popleft())
                completed.append(head)
        return completed

    def drain(self) -> List[Transmission]:
        """Flush every staged packet without rate limiting.

        Returns:
            Transmissions released by the flush.
        """
        flushed = []
        while self._backlog:
            transmission = self._backlog.popleft()
            self.units_sent += transmission.remaining
            self._load -= transmission.remaining
            transmission.remaining = 0
            self._depart(transmission)
            flushed.append(transmission)
        if flushed:
            logger.debug("t=%s port %s flushed %d packets", self.env.now, self.id, len(flushed))
        return flushed

    def _depart(self, transmission: Transmission) -> None:
        transmission.departed_at = self.env.now
        self.departures.append(transmission)
        self.packets_sent += 1
        logger.debug(
            "t=%s port %s sent %r from flow %d",
            self.env.now, self.id, transmission.packet.id, transmission.flow_index,
        )

    def __repr__(self) -> str:
        """Return string representation of the port.

        Returns:
            String representation of the port.
        """
        return f"Port({self.id}, capacity={self.capacity}, load={self.current_load})"
