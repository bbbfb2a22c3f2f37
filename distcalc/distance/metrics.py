"""
Metric functions for distance computation.

Every function compares one query row against a 2-D block of dataset rows and
returns one distance per dataset row. Results keep the value type of the
inputs: L1 accumulates in that type, L2 accumulates squares in
``numpy.longdouble`` before narrowing, Hamming counts differing components.
"""

from typing import Any, Callable, Dict, Optional, Sequence

import numpy as np

from ..data.enums import Metric
from ..exceptions import ConfigError, DimensionError

# Floating-point components closer than this are considered equal by Hamming
HAMMING_TOLERANCE = 1e-6

# String tables are stored as object arrays; their distances are counts
COUNT_DTYPE = np.dtype(np.int64)


def row_dtype(row: Any) -> np.dtype:
    """Value type of one table row, ``object`` for text rows."""
    dtype = np.asarray(row).dtype
    if dtype.kind in "OSU":
        return np.dtype(object)
    return dtype


def table_dtype(table: Sequence[Any]) -> Optional[np.dtype]:
    """Value type of the first row of ``table``, None for an empty table."""
    if len(table) == 0:
        return None
    return row_dtype(table[0])


def common_dtype(query: Sequence[Any], dataset: Sequence[Any]) -> Optional[np.dtype]:
    """Value type both tables are compared in, None when both are empty.

    Numeric tables of different types are promoted with ``np.result_type``.

    Raises:
        ConfigError: If one table holds text and the other numbers.
    """
    query_dtype = table_dtype(query)
    dataset_dtype = table_dtype(dataset)
    if query_dtype is None or dataset_dtype is None or query_dtype == dataset_dtype:
        return query_dtype if query_dtype is not None else dataset_dtype
    if np.dtype(object) in (query_dtype, dataset_dtype):
        raise ConfigError(f"Cannot compare {query_dtype} values with {dataset_dtype} values")
    return np.result_type(query_dtype, dataset_dtype)


def result_dtype(dtype: np.dtype) -> np.dtype:
    """Element type of a distance matrix computed over values of ``dtype``."""
    return COUNT_DTYPE if dtype == np.dtype(object) else dtype


def check_metric(metric: Metric, dtype: np.dtype) -> None:
    """Reject arithmetic metrics on text values.

    Raises:
        ConfigError: If ``metric`` needs arithmetic and ``dtype`` is text.
    """
    if dtype == np.dtype(object) and metric is not Metric.HAMMING:
        raise ConfigError(f"Metric {metric.value} is not defined for string values, use Hamming")


def _abs_diff(row: np.ndarray, block: np.ndarray) -> np.ndarray:
    # max - min never wraps around for unsigned types
    return np.maximum(block, row) - np.minimum(block, row)


def l1_distances(row: np.ndarray, block: np.ndarray) -> np.ndarray:
    """Taxicab distance between ``row`` and every row of ``block``."""
    return np.sum(_abs_diff(row, block), axis=1, dtype=block.dtype)


def l2_distances(row: np.ndarray, block: np.ndarray) -> np.ndarray:
    """Euclidean distance between ``row`` and every row of ``block``."""
    diff = _abs_diff(row, block).astype(np.longdouble)
    return np.sqrt(np.sum(diff * diff, axis=1)).astype(block.dtype)


def hamming_distances(row: np.ndarray, block: np.ndarray) -> np.ndarray:
    """Number of differing components between ``row`` and every row of ``block``.

    Floating-point components differ when ``|a - b| > HAMMING_TOLERANCE``;
    every other type is compared exactly.
    """
    if np.issubdtype(block.dtype, np.floating):
        differs = np.abs(block - row) > HAMMING_TOLERANCE
    else:
        differs = block != row
    return np.count_nonzero(differs, axis=1).astype(result_dtype(block.dtype))


METRIC_FUNCTIONS: Dict[Metric, Callable[[np.ndarray, np.ndarray], np.ndarray]] = {
    Metric.L1: l1_distances,
    Metric.L2: l2_distances,
    Metric.HAMMING: hamming_distances,
}


def row_distances(row: np.ndarray, block: np.ndarray, metric: Metric) -> np.ndarray:
    """Distances from ``row`` to each row of the 2-D ``block`` under ``metric``."""
    return METRIC_FUNCTIONS[metric](row, block)


def distance(a: Sequence[Any], b: Sequence[Any], metric: "str | Metric") -> Any:
    """Distance between two vectors.

    Args:
        a: First vector
        b: Second vector
        metric: Metric or metric name ("L1", "L2", "Hamming")

    Returns:
        Scalar distance in the value type of ``a``.

    Raises:
        DimensionError: If the vectors have different lengths.
        ConfigError: If the metric is unknown or undefined for the value type.

    Examples:
        >>> float(distance([0.0, 0.0], [3.0, 4.0], "L2"))
        5.0
    """
    metric = Metric.from_name(metric)
    if len(a) != len(b):
        raise DimensionError()
    dtype = row_dtype(a)
    check_metric(metric, dtype)
    block = np.asarray(b, dtype=dtype).reshape(1, len(b))
    return row_distances(np.asarray(a, dtype=dtype), block, metric)[0]
