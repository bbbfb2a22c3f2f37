"""
Distance kernels.

A kernel turns a query table and a dataset table into the full distance matrix
``D[i][j] = distance(query[i], dataset[j])``. Two kernels share one interface:

- ``SequentialKernel`` walks the query rows in order on the calling thread.
- ``ParallelKernel`` schedules one unit of work per query row on a joblib
  thread pool. Each unit writes only its own output row.

Both produce identical matrices. A length mismatch between any compared pair
raises ``DimensionError`` and no partial matrix is ever returned.
"""

import threading
from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence, Union

import numpy as np
from joblib import Parallel, delayed

from ..data.enums import Execution, Metric
from ..exceptions import DimensionError
from ..utils.logging import get_logger
from ..utils.timing import NULL_TIMINGS, TaskTimings
from .metrics import check_metric, common_dtype, result_dtype, row_distances

logger = get_logger(__name__)

DEFAULT_DTYPE = np.dtype(np.float32)


class MathKernel(ABC):
    """Base class for distance kernels.

    Args:
        timings: Task timing registry, updated under ``"compute_distance"``
    """

    name = "base"

    def __init__(self, timings: TaskTimings = NULL_TIMINGS):
        self.timings = timings

    def compute_distance(
        self,
        query: Sequence[Any],
        dataset: Sequence[Any],
        metric: Union[str, Metric],
    ) -> np.ndarray:
        """Compute the ``len(query) x len(dataset)`` distance matrix.

        Args:
            query: Query table (sequence of rows)
            dataset: Dataset table (sequence of rows)
            metric: Metric or metric name

        Returns:
            2-D array in the common value type of the tables (int64 counts for
            text). Numeric tables of different types are promoted.

        Raises:
            DimensionError: If any query row and dataset row differ in length.
            ConfigError: If the metric is unknown or undefined for the values,
                or one table holds text and the other numbers.
        """
        metric = Metric.from_name(metric)
        dtype = common_dtype(query, dataset)
        if dtype is None:
            dtype = DEFAULT_DTYPE
        check_metric(metric, dtype)

        matrix = np.zeros((len(query), len(dataset)), dtype=result_dtype(dtype))
        if len(query) == 0 or len(dataset) == 0:
            return matrix

        widths = {len(row) for row in dataset}
        if len(widths) != 1:
            # every query row mismatches at least one dataset row
            raise DimensionError()
        block = np.asarray(dataset, dtype=dtype).reshape(len(dataset), widths.pop())

        with self.timings.track("compute_distance"):
            self._compute(query, block, metric, dtype, matrix)
        return matrix

    @abstractmethod
    def _compute(
        self,
        query: Sequence[Any],
        block: np.ndarray,
        metric: Metric,
        dtype: np.dtype,
        out: np.ndarray,
    ) -> None:
        """Fill ``out`` row by row, raising ``DimensionError`` on a mismatch."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class SequentialKernel(MathKernel):
    """Kernel computing every query row in order on the calling thread."""

    name = "sequential"

    def _compute(self, query, block, metric, dtype, out):
        width = block.shape[1]
        for i, row in enumerate(query):
            if len(row) != width:
                raise DimensionError()
            out[i] = row_distances(np.asarray(row, dtype=dtype), block, metric)


class ParallelKernel(MathKernel):
    """Kernel computing one query row per unit of work on a thread pool.

    Args:
        n_jobs: Number of worker threads (all cores by default)
        timings: Task timing registry
    """

    name = "parallel"

    def __init__(self, n_jobs: Optional[int] = None, timings: TaskTimings = NULL_TIMINGS):
        super().__init__(timings)
        self.n_jobs = n_jobs or -1

    def _compute(self, query, block, metric, dtype, out):
        width = block.shape[1]
        # set once, never cleared
        mismatch = threading.Event()

        def compute_row(i: int) -> None:
            if mismatch.is_set():
                return
            row = query[i]
            if len(row) != width:
                mismatch.set()
                return
            out[i] = row_distances(np.asarray(row, dtype=dtype), block, metric)

        Parallel(n_jobs=self.n_jobs, backend="threading")(delayed(compute_row)(i) for i in range(len(query)))
        if mismatch.is_set():
            raise DimensionError()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(n_jobs={self.n_jobs})"


def create_kernel(
    execution: Union[str, Execution] = Execution.SEQ,
    timings: TaskTimings = NULL_TIMINGS,
    n_jobs: Optional[int] = None,
) -> MathKernel:
    """Build the kernel matching an execution strategy.

    ``Execution.SEQ`` selects ``SequentialKernel``; both parallel strategies
    select ``ParallelKernel``.
    """
    execution = Execution.from_name(execution)
    if execution.is_parallel:
        kernel: MathKernel = ParallelKernel(n_jobs=n_jobs, timings=timings)
    else:
        kernel = SequentialKernel(timings=timings)
    logger.debug(f"Using {kernel!r} for execution '{execution.value}'")
    return kernel
