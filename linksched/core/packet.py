"""Packet class for link scheduling simulation.

This module defines the Packet class, which represents a unit of work
queued on a flow and serviced by the egress port.
"""

from dataclasses import dataclass, replace
from typing import Hashable


@dataclass(frozen=True)
class Packet:
    """Represents a network packet.

    Attributes:
        id: Identifier for the packet, unique within its flow.
        length: Service cost of the packet in port units.
        arrival_time: Tick at which the packet becomes eligible.
    """

    id: Hashable
    length: int
    arrival_time: int = 0

    def __post_init__(self):
        """Validate the packet fields."""
        if self.length <= 0:
            raise ValueError(f"Packet {self.id!r} must have a positive length, got {self.length}")
        if self.arrival_time < 0:
            raise ValueError(
                f"Packet {self.id!r} cannot arrive before tick 0, got {self.arrival_time}"
            )

    def resized(self, length: int) -> "Packet":
        """Return a copy of the packet with a different length.

        Args:
            length: New service cost.

        Returns:
            The resized packet, or this packet if the length already matches.
        """
        if length == self.length:
            return self
        return replace(self, length=length)

    def __repr__(self) -> str:
        return f"Packet({self.id!r}, len={self.length}, t={self.arrival_time})"
