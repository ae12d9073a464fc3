"""Metrics utilities for link scheduling simulation.

This module provides functions for calculating and analyzing scheduler run
metrics, including per-flow service, queueing delay and fairness.
"""

import json
import os
from typing import Any, Dict, Iterable, Optional

import numpy as np

from linksched.core.scheduling_algorithms import Scheduler


def service_by_flow(
    scheduler: Scheduler, start: float = 0, end: Optional[float] = None
) -> Dict[int, int]:
    """Units each flow sent through the port in a departure window.

    Args:
        scheduler: Scheduler that has run.
        start: Earliest departure tick counted (inclusive).
        end: Latest departure tick counted (inclusive, defaults to the end).

    Returns:
        Dictionary mapping flow index to units served.
    """
    service = {i: 0 for i in range(len(scheduler.flows))}
    for transmission in scheduler.port.departures:
        departed_at = transmission.departed_at
        if departed_at < start or (end is not None and departed_at > end):
            continue
        service[transmission.flow_index] += transmission.packet.length
    return service


def calculate_metrics(scheduler: Scheduler) -> Dict[str, Any]:
    """Calculate performance metrics of a finished run.

    Args:
        scheduler: Scheduler that has run.

    Returns:
        Dictionary of calculated metrics.
    """
    port = scheduler.port
    flows: Dict[int, Dict[str, Any]] = {
        i: {"packets": 0, "units": 0, "delays": []} for i in range(len(scheduler.flows))
    }
    for transmission in port.departures:
        stats = flows[transmission.flow_index]
        stats["packets"] += 1
        stats["units"] += transmission.packet.length
        stats["delays"].append(transmission.get_delay())

    total_units = sum(stats["units"] for stats in flows.values())
    per_flow = {}
    for i, stats in flows.items():
        per_flow[i] = {
            "weight": scheduler.weights[i],
            "packets": stats["packets"],
            "units": stats["units"],
            "average_delay": float(np.mean(stats["delays"])) if stats["delays"] else 0.0,
            "service_share": stats["units"] / total_units if total_units else 0.0,
        }

    return {
        "scheduler": scheduler.name,
        "total_ticks": scheduler.timer,
        "packets_sent": port.packets_sent,
        "units_sent": port.units_sent,
        "throughput": port.units_sent / scheduler.timer if scheduler.timer else 0.0,
        "fairness_index": calculate_fairness_index(
            stats["units"] / scheduler.weights[i] for i, stats in flows.items()
        ),
        "flows": per_flow,
    }


def calculate_fairness_index(values: Iterable[float]) -> float:
    """Calculate Jain's fairness index.

    Args:
        values: Per-flow throughputs, usually normalized by weight.

    Returns:
        Fairness index between 0 and 1 (1 is perfectly fair).
    """
    x = np.fromiter(values, dtype=float)
    if x.size == 0:
        return 0.0
    sum_squared = np.sum(x**2)
    if sum_squared == 0:
        return 0.0
    return float(np.sum(x) ** 2 / (x.size * sum_squared))


def save_metrics_to_json(metrics: Dict[str, Any], filename: str = "results/metrics.json") -> None:
    """Save metrics to a JSON file.

    Args:
        metrics: Dictionary of metrics to save.
        filename: Output filename.
    """
    directory = os.path.dirname(filename)
    if directory:
        os.makedirs(directory, exist_ok=True)

    # JSON object keys must be strings
    serializable_metrics = dict(metrics)
    if "flows" in serializable_metrics:
        serializable_metrics["flows"] = {
            str(i): stats for i, stats in serializable_metrics["flows"].items()
        }

    with open(filename, "w") as f:
        json.dump(serializable_metrics, f, indent=2)
