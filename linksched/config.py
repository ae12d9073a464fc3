"""Scheduler configuration.

A SchedulerConfig describes which algorithm to build and how; it can be
created in code, from a dictionary or from a JSON file.
"""

from dataclasses import asdict, dataclass, fields
import json
from typing import Any, Dict, Optional

from linksched.core.enums import TieBreak
from linksched.core.scheduling_algorithms import DEFAULT_MAX_TICKS, Scheduler, scheduler_factory


@dataclass
class SchedulerConfig:
    """Settings for building a scheduler.

    Attributes:
        scheduler_type: "DRR", "WFQ" or "WRR".
        capacity: Units the egress port transmits per tick.
        max_ticks: Tick ceiling after which the run is aborted.
        tie_break: WFQ tie-break policy name.
        seed: Seed for the WFQ random tie-break.
    """

    scheduler_type: str = "DRR"
    capacity: float = 1
    max_ticks: int = DEFAULT_MAX_TICKS
    tie_break: str = TieBreak.ARRIVAL.value
    seed: int = 42

    def __post_init__(self):
        """Validate the configuration values."""
        self.scheduler_type = self.scheduler_type.upper()
        if self.scheduler_type not in ("DRR", "WFQ", "WRR"):
            raise ValueError(f"Unknown scheduler type: {self.scheduler_type}")
        if self.capacity <= 0:
            raise ValueError(f"capacity must be positive, got {self.capacity}")
        if self.max_ticks <= 0:
            raise ValueError(f"max_ticks must be positive, got {self.max_ticks}")
        # Raises ValueError for unknown policy names
        TieBreak(self.tie_break)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SchedulerConfig":
        """Build a configuration from a dictionary.

        Args:
            data: Mapping of field names to values.

        Returns:
            The configuration.
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown scheduler config keys: {sorted(unknown)}")
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config(filename: str) -> SchedulerConfig:
    """Load a scheduler configuration from a JSON file.

    Args:
        filename: Path of the JSON file.

    Returns:
        The configuration.
    """
    with open(filename) as f:
        return SchedulerConfig.from_dict(json.load(f))


def build_scheduler(config: Optional[SchedulerConfig] = None) -> Scheduler:
    """Create the scheduler a configuration describes.

    Args:
        config: Scheduler configuration (default: SchedulerConfig()).

    Returns:
        A scheduler with no flows registered.
    """
    if config is None:
        config = SchedulerConfig()
    kwargs: Dict[str, Any] = {"max_ticks": config.max_ticks}
    if config.scheduler_type == "WFQ":
        kwargs["tie_break"] = TieBreak(config.tie_break)
        kwargs["seed"] = config.seed
    return scheduler_factory(config.scheduler_type, config.capacity, **kwargs)
