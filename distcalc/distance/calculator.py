"""Facade selecting and invoking a distance kernel."""

from typing import Any, Optional, Sequence, Union

import numpy as np

from ..data.enums import Execution, Metric
from ..utils.timing import NULL_TIMINGS, TaskTimings
from .kernel import MathKernel, create_kernel


class DistanceCalculator:
    """Compute distance matrices with a configured kernel.

    Args:
        kernel: The kernel doing the actual work

    Examples:
        >>> calculator = DistanceCalculator.for_execution("seq")
        >>> calculator.compute_distance([[0.0, 0.0]], [[3.0, 4.0]], "L2")
        array([[5.]])
    """

    def __init__(self, kernel: MathKernel):
        self.kernel = kernel

    @classmethod
    def for_execution(
        cls,
        execution: Union[str, Execution] = Execution.SEQ,
        timings: TaskTimings = NULL_TIMINGS,
        n_jobs: Optional[int] = None,
    ) -> "DistanceCalculator":
        """Build a calculator whose kernel matches ``execution``."""
        return cls(create_kernel(execution, timings=timings, n_jobs=n_jobs))

    def compute_distance(
        self,
        query: Sequence[Any],
        dataset: Sequence[Any],
        metric: Union[str, Metric],
    ) -> np.ndarray:
        return self.kernel.compute_distance(query, dataset, metric)

    def __repr__(self) -> str:
        return f"DistanceCalculator(kernel={self.kernel!r})"
