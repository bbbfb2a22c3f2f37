"""
Enums used throughout distcalc.

This module contains enums that define constants used across the codebase.
"""

from enum import Enum

from ..exceptions import ConfigError


class Execution(str, Enum):
    """Execution strategy for the table loader and the distance kernel.

    - SEQ: everything runs on the calling thread, in order
    - PAR: one independently scheduled unit of work per row
    - PAR_CHUNKED: contiguous row ranges, one worker per range (loader only;
      kernels treat it like PAR)
    """

    SEQ = "seq"
    PAR = "par"
    PAR_CHUNKED = "par_chunked"

    @property
    def is_parallel(self) -> bool:
        return self is not Execution.SEQ

    @classmethod
    def from_name(cls, name: "str | Execution") -> "Execution":
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name).lower())
        except ValueError:
            raise ConfigError(
                f"Unknown execution strategy '{name}'. Available: {[e.value for e in cls]}"
            ) from None


class Metric(str, Enum):
    """The available distance metrics.

    - L1: taxicab distance, sum of absolute componentwise differences
    - L2: Euclidean distance
    - HAMMING: number of positions at which the components differ
    """

    L1 = "L1"
    L2 = "L2"
    HAMMING = "Hamming"

    @classmethod
    def from_name(cls, name: "str | Metric") -> "Metric":
        """Parse a metric name case-insensitively.

        Raises:
            ConfigError: If the name is not a known metric.
        """
        if isinstance(name, cls):
            return name
        for metric in cls:
            if metric.value.lower() == str(name).lower():
                return metric
        raise ConfigError(f"Invalid math metric name: {name}. Available: {[m.value for m in cls]}")
