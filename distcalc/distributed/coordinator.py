"""
Coordinator/worker protocol for distributed distance computation.

Every rank runs the same sequence over a ``Communicator``:

1. every rank builds the same ``TagRegistry``;
2. the coordinator (rank 0) partitions the query rows;
3. it sends each worker the vector width, the total query row count and the
   worker's flat query block; the worker derives its block size from the same
   partition;
4. it sends each worker the dataset row count, then the flat dataset;
5. every rank computes its local block with a ``DistanceCalculator``;
6. the coordinator gathers the worker blocks in rank order and appends its own
   block last, which restores the original query row order.

A failed send or receive is fatal; nothing is retried.
"""

from typing import Any, List, Optional, Sequence, Tuple, Union

import numpy as np

from ..data.enums import Metric
from ..data.numeric import DEFAULT_NUMERIC_TYPE, NumericType, get_numeric_type
from ..distance.calculator import DistanceCalculator
from ..exceptions import ConfigError, DimensionError, ProtocolError
from ..utils.logging import get_logger
from ..utils.timing import NULL_TIMINGS, TaskTimings
from .communicator import COORDINATOR_RANK, Communicator
from .partition import Partition, compute_partition, flatten, split_flat, table_width
from .registry import TagRegistry

logger = get_logger(__name__)


class DistributionCoordinator:
    """Run the distributed protocol on one rank.

    Args:
        communicator: Transport connecting all ranks
        calculator: Calculator used for the local block (sequential by default)
        numeric_type: Value type of both tables; must be the same on every rank
        timings: Task timing registry

    Examples:
        >>> coordinator = DistributionCoordinator(communicator, numeric_type="float64")
        >>> matrix = coordinator.run(query, dataset, "L2")  # rank 0; workers pass None
    """

    def __init__(
        self,
        communicator: Communicator,
        calculator: Optional[DistanceCalculator] = None,
        numeric_type: Union[str, NumericType] = DEFAULT_NUMERIC_TYPE,
        timings: TaskTimings = NULL_TIMINGS,
    ):
        self.communicator = communicator
        self.numeric_type = get_numeric_type(numeric_type)
        if not self.numeric_type.is_numeric:
            raise ConfigError("Distributed computation requires a numeric value type")
        self.dtype = self.numeric_type.dtype
        self.calculator = calculator or DistanceCalculator.for_execution("seq", timings=timings)
        self.timings = timings
        self.registry = TagRegistry()
        self._vector_size = 0

    @property
    def rank(self) -> int:
        return self.communicator.rank

    @property
    def size(self) -> int:
        return self.communicator.size

    def _tag(self, name: str) -> int:
        return self.registry.tag(name)

    # Coordinator side

    def distribute_task(self, query: Sequence[Any], dataset: Sequence[Any]) -> Tuple[List[Any], Partition]:
        """Send every worker its query block and the full dataset.

        Args:
            query: Full query table
            dataset: Full dataset table

        Returns:
            Tuple of (the coordinator's own query rows, the partition used).

        Raises:
            DimensionError: If a table is not rectangular or the widths differ.
        """
        query_width = table_width(query)
        dataset_width = table_width(dataset)
        if len(query) > 0 and len(dataset) > 0 and query_width != dataset_width:
            raise DimensionError()
        self._vector_size = query_width if len(query) > 0 else dataset_width

        partition = compute_partition(len(query), self.size)
        logger.debug(
            f"Partition of {partition.total_rows} query rows: {partition.processor_count} processes, "
            f"block size {partition.block_size}, coordinator keeps {partition.coordinator_rows}"
        )

        with self.timings.track("distribute_task"):
            flat_query = flatten(query, self.dtype)
            for rank in range(1, self.size):
                start, stop = partition.worker_range(rank)
                block = flat_query[start * query_width : stop * query_width]
                self.communicator.send_scalar(self._vector_size, rank, self._tag("vectorSize"))
                self.communicator.send_scalar(len(query), rank, self._tag("querySize"))
                self.communicator.send_buffer(block, rank, self._tag("queryMatrix"))

            flat_dataset = flatten(dataset, self.dtype)
            for rank in range(1, self.size):
                self.communicator.send_scalar(len(dataset), rank, self._tag("dataSetSize"))
                self.communicator.send_buffer(flat_dataset, rank, self._tag("dataSetMatrix"))

        start, stop = partition.coordinator_range()
        return list(query[start:stop]), partition

    def receive_distance_matrix(
        self, partition: Partition, dataset_rows: int, local_matrix: np.ndarray
    ) -> np.ndarray:
        """Gather the worker blocks in rank order and append the local block last."""
        blocks = []
        with self.timings.track("gather"):
            for rank in range(1, self.size):
                start, stop = partition.worker_range(rank)
                rows = stop - start
                flat = self.communicator.recv_buffer(
                    rank, self._tag("distanceMatrix"), rows * dataset_rows, local_matrix.dtype
                )
                blocks.append(flat.reshape(rows, dataset_rows))
        blocks.append(local_matrix)
        return np.concatenate(blocks, axis=0)

    # Worker side

    def receive_query(self) -> List[np.ndarray]:
        """Receive this worker's block of query rows.

        The coordinator announces the total query row count; the block size
        follows from the same partition the coordinator computed.
        """
        self._vector_size = self.communicator.recv_scalar(COORDINATOR_RANK, self._tag("vectorSize"))
        total_rows = self.communicator.recv_scalar(COORDINATOR_RANK, self._tag("querySize"))
        start, stop = compute_partition(total_rows, self.size).worker_range(self.rank)
        rows = stop - start
        flat = self.communicator.recv_buffer(
            COORDINATOR_RANK, self._tag("queryMatrix"), rows * self._vector_size, self.dtype
        )
        return split_flat(flat, self._vector_size, rows)

    def receive_dataset(self) -> List[np.ndarray]:
        """Receive the full dataset; must follow ``receive_query``."""
        rows = self.communicator.recv_scalar(COORDINATOR_RANK, self._tag("dataSetSize"))
        flat = self.communicator.recv_buffer(
            COORDINATOR_RANK, self._tag("dataSetMatrix"), rows * self._vector_size, self.dtype
        )
        return split_flat(flat, self._vector_size, rows)

    def send_distance_matrix(self, matrix: np.ndarray) -> None:
        """Send this worker's result block to the coordinator."""
        flat = np.ascontiguousarray(matrix).reshape(-1)
        self.communicator.send_buffer(flat, COORDINATOR_RANK, self._tag("distanceMatrix"))

    # Whole protocol

    def run(
        self,
        query: Optional[Sequence[Any]],
        dataset: Optional[Sequence[Any]],
        metric: Union[str, Metric],
    ) -> Optional[np.ndarray]:
        """Run the protocol on this rank.

        Args:
            query: Full query table on the coordinator, ignored on workers
            dataset: Full dataset table on the coordinator, ignored on workers
            metric: Metric or metric name, identical on every rank

        Returns:
            The full distance matrix on the coordinator, None on workers.

        Raises:
            DimensionError: If the tables cannot be compared.
            ProtocolError: If a message is missing or has an unexpected size.
        """
        metric = Metric.from_name(metric)

        if not self.communicator.is_coordinator:
            local_query = self.receive_query()
            local_dataset = self.receive_dataset()
            logger.debug(f"Received {len(local_query)} query rows and {len(local_dataset)} dataset rows")
            matrix = self._compute_local(local_query, local_dataset, metric)
            self.send_distance_matrix(matrix)
            return None

        if query is None or dataset is None:
            raise ProtocolError("The coordinator needs both the query and the dataset")
        local_query, partition = self.distribute_task(query, dataset)
        local_matrix = self._compute_local(local_query, dataset, metric)
        matrix = self.receive_distance_matrix(partition, len(dataset), local_matrix)
        logger.info(f"Gathered {matrix.shape[0]}x{matrix.shape[1]} distance matrix from {self.size} processes")
        return matrix

    def _compute_local(self, query: Sequence[Any], dataset: Sequence[Any], metric: Metric) -> np.ndarray:
        query = [np.asarray(row, dtype=self.dtype) for row in query]
        dataset = [np.asarray(row, dtype=self.dtype) for row in dataset]
        matrix = self.calculator.compute_distance(query, dataset, metric)
        # an empty side yields a matrix in the default type; the gather needs ours
        return matrix.astype(self.dtype, copy=False).reshape(len(query), len(dataset))
