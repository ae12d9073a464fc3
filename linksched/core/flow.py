"""Flow class for link scheduling simulation.

This module defines the Flow class, the ordered backlog of a single traffic
source. Packets are kept sorted by arrival time and only become visible to a
scheduler once the current tick reaches their arrival time.
"""

from dataclasses import replace
from operator import itemgetter
from typing import Hashable, Iterator, List, Optional, Tuple

from linksched.core.errors import EmptyFlowError
from linksched.core.packet import Packet


class Flow:
    """Represents the packet queue of one traffic source.

    Attributes:
        name: Optional label used in logs and reprs.
        fixed_length: If set, every arriving packet is normalized to this length.
        packets_arrived: Number of packets ever added to the flow.
        packets_served: Number of packets popped from the flow.
    """

    def __init__(self, name: Optional[str] = None, fixed_length: Optional[int] = None):
        """Initialize an empty flow.

        Args:
            name: Optional label for the flow.
            fixed_length: Length every packet is normalized to (default: keep
                each packet's own length).
        """
        if fixed_length is not None and fixed_length <= 0:
            raise ValueError(f"Fixed packet length must be positive, got {fixed_length}")
        self.name = name
        self.fixed_length = fixed_length
        self.packets_arrived = 0
        self.packets_served = 0
        self._entries: List[Tuple[Packet, int]] = []

    def arrive(self, packet: Packet, time: Optional[int] = None) -> Packet:
        """Add a packet to the flow.

        The packet is stored with its arrival time; a fixed-length flow replaces
        the packet's length with its own.

        Args:
            packet: The packet to add.
            time: Arrival tick (default: the packet's own arrival time).

        Returns:
            The packet as stored in the flow.
        """
        if time is None:
            time = packet.arrival_time
        if time < 0:
            raise ValueError(f"Arrival time cannot be negative, got {time}")
        if time != packet.arrival_time:
            packet = replace(packet, arrival_time=time)
        if self.fixed_length is not None:
            packet = packet.resized(self.fixed_length)

        self._entries.append((packet, time))
        # list.sort is stable, so equal arrival times keep insertion order
        self._entries.sort(key=itemgetter(1))
        self.packets_arrived += 1
        return packet

    def add(self, packet_id: Hashable, arrival_time: int, length: Optional[int] = None) -> Packet:
        """Create a packet and add it to the flow.

        Args:
            packet_id: Identifier for the new packet.
            arrival_time: Arrival tick of the new packet.
            length: Packet length; defaults to the flow's fixed length.

        Returns:
            The packet as stored in the flow.
        """
        if length is None:
            if self.fixed_length is None:
                raise ValueError("A length is required for flows without a fixed packet length")
            length = self.fixed_length
        return self.arrive(Packet(packet_id, length, arrival_time), arrival_time)

    def peek(self, now: int) -> Optional[Packet]:
        """Return the head packet if it has arrived by ``now``, else None."""
        if not self._entries:
            return None
        packet, arrival_time = self._entries[0]
        if arrival_time <= now:
            return packet
        return None

    def pop(self) -> Packet:
        """Remove and return the head packet.

        Raises:
            EmptyFlowError: If the flow holds no packets.
        """
        if not self._entries:
            raise EmptyFlowError(f"Cannot pop a packet from empty flow {self!r}")
        packet, _ = self._entries.pop(0)
        self.packets_served += 1
        return packet

    def empty(self) -> bool:
        """Whether the flow holds no packets, eligible or not."""
        return not self._entries

    def head_arrival_time(self) -> Optional[int]:
        """Arrival tick of the head packet, or None for an empty flow."""
        if not self._entries:
            return None
        return self._entries[0][1]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Packet]:
        return (packet for packet, _ in self._entries)

    def __repr__(self) -> str:
        label = self.name if self.name is not None else hex(id(self))
        if self.fixed_length is not None:
            return f"Flow({label}, fixed={self.fixed_length}, queued={len(self)})"
        return f"Flow({label}, queued={len(self)})"
