"""
Distance computation module for distcalc.

This module computes brute-force N×M distance matrices between a query table
and a dataset table under the L1, L2 and Hamming metrics.

Main Classes:
- SequentialKernel: computes query rows in order on the calling thread
- ParallelKernel: computes one query row per unit of work on a thread pool
- DistanceCalculator: facade selecting and invoking a kernel

Example:
    >>> from distcalc.distance import DistanceCalculator
    >>> calculator = DistanceCalculator.for_execution("par")
    >>> matrix = calculator.compute_distance(query, dataset, "L1")
"""

from .calculator import DistanceCalculator
from .kernel import MathKernel, ParallelKernel, SequentialKernel, create_kernel
from .metrics import (
    HAMMING_TOLERANCE,
    distance,
    hamming_distances,
    l1_distances,
    l2_distances,
    row_distances,
)

__all__ = [
    "DistanceCalculator",
    "MathKernel",
    "ParallelKernel",
    "SequentialKernel",
    "create_kernel",
    "HAMMING_TOLERANCE",
    "distance",
    "hamming_distances",
    "l1_distances",
    "l2_distances",
    "row_distances",
]
