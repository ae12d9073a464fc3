"""Traffic generators for link scheduling simulation.

This module provides functions for generating packet arrival ticks and packet
sizes, and for loading them into flows. Random patterns draw from a
``numpy.random.Generator`` supplied by the caller so runs stay reproducible.
"""

from typing import Callable, Iterable, List, Optional

import numpy as np

from linksched.core.flow import Flow


def constant_arrivals(interval: int, count: int, start: int = 0) -> List[int]:
    """Generate evenly spaced arrival ticks.

    Args:
        interval: Ticks between consecutive packets.
        count: Number of packets.
        start: Arrival tick of the first packet.

    Returns:
        List of arrival ticks.
    """
    if interval < 0:
        raise ValueError(f"Arrival interval cannot be negative, got {interval}")
    return [start + i * interval for i in range(count)]


def poisson_arrivals(rate: float, count: int, rng: np.random.Generator, start: int = 0) -> List[int]:
    """Generate Poisson arrival ticks.

    Args:
        rate: Average number of packets per tick.
        count: Number of packets.
        rng: Random generator to draw inter-arrival gaps from.
        start: Tick the process starts at.

    Returns:
        Non-decreasing list of arrival ticks.
    """
    if rate <= 0:
        raise ValueError(f"Arrival rate must be positive, got {rate}")
    gaps = rng.exponential(1 / rate, size=count)
    return [start + int(t) for t in np.floor(np.cumsum(gaps))]


def bursty_arrivals(burst_size: int, gap: int, bursts: int, start: int = 0) -> List[int]:
    """Generate bursts of packets that arrive on the same tick.

    Args:
        burst_size: Packets per burst.
        gap: Ticks between the starts of consecutive bursts.
        bursts: Number of bursts.
        start: Tick of the first burst.

    Returns:
        List of arrival ticks.
    """
    return [start + b * gap for b in range(bursts) for _ in range(burst_size)]


def constant_size(size: int) -> Callable[[], int]:
    """Generate constant size packets.

    Args:
        size: Length of packets in port units.

    Returns:
        Function that returns constant packet size.
    """
    return lambda: size


def variable_size(min_size: int, max_size: int, rng: np.random.Generator) -> Callable[[], int]:
    """Generate variable size packets.

    Args:
        min_size: Minimum packet length.
        max_size: Maximum packet length (inclusive).
        rng: Random generator to draw sizes from.

    Returns:
        Function that returns random packet size between min_size and max_size.
    """
    return lambda: int(rng.integers(min_size, max_size, endpoint=True))


def build_flow(
    name: str,
    arrivals: Iterable[int],
    packet_size: Callable[[], int],
    fixed_length: Optional[int] = None,
) -> Flow:
    """Create a flow and load it with packets.

    Packet ids are ``"<name>_<n>"`` with ``n`` counting from 1 in arrival order.

    Args:
        name: Flow name, also used as packet id prefix.
        arrivals: Arrival tick of each packet.
        packet_size: Function returning the length of the next packet.
        fixed_length: Fixed packet length of the flow, if any.

    Returns:
        The loaded flow.
    """
    flow = Flow(name, fixed_length=fixed_length)
    for n, arrival_time in enumerate(arrivals, start=1):
        flow.add(f"{name}_{n}", arrival_time, packet_size())
    return flow
