"""
Configuration for the subtree matcher.

Two knobs are exposed: the minimum priority a subtree needs to take part in
the top-down phase, and the metric used as priority (height or size). Option
names follow the matcher's own names, with the short GumTree-style aliases
(st_minprio, st_priocalc) accepted as well.
"""

import os
import warnings
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

DEFAULT_MIN_PRIORITY = 1


class PriorityMetric(Enum):
    """Which structural metric orders the traversal queues."""

    HEIGHT = "height"
    SIZE = "size"

    @classmethod
    def parse(cls, value: Any) -> "PriorityMetric":
        """Unknown metric names fall back to height with a warning."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            warnings.warn(
                f"Unknown priority metric {value!r}, falling back to {cls.HEIGHT.value!r}.",
                RuntimeWarning,
            )
            return cls.HEIGHT


OPTION_ALIASES = {
    "st_minprio": "min_priority",
    "st_priocalc": "priority_metric",
}


@dataclass
class MatcherConfig:
    """Settings consumed by SubtreeMatcher.configure()."""

    min_priority: int = DEFAULT_MIN_PRIORITY
    priority_metric: PriorityMetric = PriorityMetric.HEIGHT

    def __post_init__(self) -> None:
        self.priority_metric = PriorityMetric.parse(self.priority_metric)
        if isinstance(self.min_priority, bool) or not isinstance(self.min_priority, int):
            raise ValueError(f"min_priority must be an integer, got {self.min_priority!r}")
        if self.min_priority < 0:
            raise ValueError(f"min_priority must be >= 0, got {self.min_priority}")

    @classmethod
    def from_options(cls, options: Optional[Mapping[str, Any]] = None) -> "MatcherConfig":
        """
        Builds a config from a name -> value mapping. Unrecognized names are
        ignored with a warning so a shared property bag can be passed as is.
        """
        values = {}
        for name, value in (options or {}).items():
            key = OPTION_ALIASES.get(name, name)
            if key not in ("min_priority", "priority_metric"):
                warnings.warn(f"Ignoring unknown matcher option {name!r}.", RuntimeWarning)
                continue
            if key == "min_priority" and isinstance(value, str):
                value = int(value)
            values[key] = value
        return cls(**values)

    @classmethod
    def from_env(cls) -> "MatcherConfig":
        """Load matcher config from environment variables."""
        return cls(
            min_priority=int(os.getenv("AST_DIFF_MIN_PRIORITY", str(DEFAULT_MIN_PRIORITY))),
            priority_metric=os.getenv("AST_DIFF_PRIORITY_METRIC", PriorityMetric.HEIGHT.value),
        )
