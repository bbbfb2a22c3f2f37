"""
Work partitioning and flat buffer helpers for distributed runs.

The query table is split into consecutive row blocks: worker ranks
``1..processor_count-1`` receive one block of ``block_size`` rows each, in rank
order, and the coordinator keeps the trailing remainder. Tables travel as
row-major flat arrays and are re-split on arrival with a known row width.
"""

import math
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np

from ..exceptions import DimensionError, ProtocolError

MIN_ROWS_PER_PROCESS = 1


@dataclass(frozen=True)
class Partition:
    """How ``total_rows`` rows are split over ``processor_count`` processes."""

    total_rows: int
    block_size: int
    processor_count: int

    @property
    def coordinator_rows(self) -> int:
        """Rows kept by the coordinator (the trailing remainder)."""
        return self.total_rows - self.block_size * (self.processor_count - 1)

    def worker_range(self, rank: int) -> Tuple[int, int]:
        """``[start, stop)`` row range of worker ``rank``; empty past ``processor_count``."""
        if rank < 1:
            raise ValueError(f"Worker ranks start at 1, got {rank}")
        if rank >= self.processor_count:
            return (0, 0)
        start = (rank - 1) * self.block_size
        return (start, start + self.block_size)

    def coordinator_range(self) -> Tuple[int, int]:
        return (self.block_size * (self.processor_count - 1), self.total_rows)


def compute_partition(total_rows: int, size: int) -> Partition:
    """Partition ``total_rows`` query rows over a communicator of ``size`` ranks.

    Examples:
        >>> compute_partition(10, 4)
        Partition(total_rows=10, block_size=2, processor_count=4)
        >>> compute_partition(2, 4).processor_count
        2
    """
    if size < 1:
        raise ValueError(f"Communicator size must be at least 1, got {size}")
    processor_count = max(1, min(size, math.ceil(total_rows / MIN_ROWS_PER_PROCESS)))
    return Partition(total_rows, total_rows // processor_count, processor_count)


def table_width(table: Sequence[Any]) -> int:
    """Common row length of ``table`` (0 when empty).

    Raises:
        DimensionError: If the rows do not all have the same length.
    """
    widths = {len(row) for row in table}
    if len(widths) > 1:
        raise DimensionError(f"Rows of unequal length {sorted(widths)}, the table is not rectangular.")
    return widths.pop() if widths else 0


def flatten(table: Sequence[Any], dtype: Any) -> np.ndarray:
    """Concatenate the rows of a rectangular table into one row-major 1-D array."""
    if len(table) == 0:
        return np.empty(0, dtype=dtype)
    return np.ascontiguousarray(np.asarray(table, dtype=dtype).reshape(-1))


def split_flat(flat: np.ndarray, width: int, rows: Optional[int] = None) -> List[np.ndarray]:
    """Re-split a flat buffer into rows of ``width`` elements.

    With ``rows`` given the row count is taken from it rather than inferred
    from the buffer length, so rows of width 0 survive the round trip.

    Raises:
        ProtocolError: If the buffer length is not a multiple of ``width``
            or does not hold ``rows`` rows.
    """
    if rows is not None:
        if flat.size != rows * width:
            raise ProtocolError(f"Flat buffer of {flat.size} elements does not hold {rows} rows of {width}")
        return [flat[i * width : (i + 1) * width] for i in range(rows)]
    if flat.size == 0:
        return []
    if width <= 0 or flat.size % width != 0:
        raise ProtocolError(f"Flat buffer of {flat.size} elements cannot be split into rows of {width}")
    return list(flat.reshape(-1, width))
