"""
Distributed distance computation.

Main Classes:
- DistributionCoordinator: partitions the query rows, replicates the dataset
  and gathers the result blocks over a tagged message protocol
- LocalCommunicator: ranks on one host connected by multiprocessing pipes
- MPICommunicator: ranks of an MPI job (requires mpi4py)

Convenience Functions:
- run_local: compute a distance matrix with N local processes
"""

from .communicator import COORDINATOR_RANK, Communicator
from .coordinator import DistributionCoordinator
from .local import LocalCommunicator, run_local
from .mpi import MPICommunicator
from .partition import MIN_ROWS_PER_PROCESS, Partition, compute_partition, flatten, split_flat, table_width
from .registry import CHANNELS, TagRegistry

__all__ = [
    "COORDINATOR_RANK",
    "Communicator",
    "DistributionCoordinator",
    "LocalCommunicator",
    "run_local",
    "MPICommunicator",
    "MIN_ROWS_PER_PROCESS",
    "Partition",
    "compute_partition",
    "flatten",
    "split_flat",
    "table_width",
    "CHANNELS",
    "TagRegistry",
]
