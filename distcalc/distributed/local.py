"""
Single-host communicator over ``multiprocessing`` pipes.

Rank 0 holds one pipe per worker; each worker holds one pipe to rank 0.
Messages are ``(kind, tag, payload)`` tuples. A receive for a given source and
tag returns the first matching message from that source and keeps the others
pending, the way MPI matches tags.
"""

import multiprocessing
from collections import deque
from multiprocessing.connection import Connection
from typing import Any, Deque, Dict, Optional, Sequence, Tuple, Union

import numpy as np

from ..data.enums import Execution, Metric
from ..data.numeric import DEFAULT_NUMERIC_TYPE, NumericType, get_numeric_type
from ..distance.calculator import DistanceCalculator
from ..exceptions import ConfigError, DistcalcError, ProtocolError
from ..utils.config import LoggingConfig
from ..utils.logging import get_logger, setup_logging
from ..utils.timing import NULL_TIMINGS, TaskTimings
from .communicator import Communicator, check_payload
from .coordinator import DistributionCoordinator

logger = get_logger(__name__)

_SCALAR = "scalar"
_BUFFER = "buffer"

# Seconds to wait for workers to exit once the coordinator is done
JOIN_TIMEOUT = 10.0

Message = Tuple[str, int, Any]


class LocalCommunicator(Communicator):
    """Communicator over ``multiprocessing`` connections.

    Args:
        rank: Rank of this process
        size: Number of processes
        connections: Peer rank -> connection to that peer
    """

    def __init__(self, rank: int, size: int, connections: Dict[int, Connection]):
        if not 0 <= rank < size:
            raise ConfigError(f"Rank {rank} is outside a communicator of size {size}")
        self._rank = rank
        self._size = size
        self._connections = connections
        self._pending: Dict[int, Deque[Message]] = {peer: deque() for peer in connections}

    @property
    def rank(self) -> int:
        return self._rank

    @property
    def size(self) -> int:
        return self._size

    def _connection(self, peer: int) -> Connection:
        try:
            return self._connections[peer]
        except KeyError:
            raise ProtocolError(f"Rank {self._rank} has no connection to rank {peer}") from None

    def _send(self, message: Message, dest: int) -> None:
        try:
            self._connection(dest).send(message)
        except (OSError, ValueError) as e:
            raise ProtocolError(f"Sending to rank {dest} failed: {e}") from e

    def _recv(self, kind: str, source: int, tag: int) -> Any:
        connection = self._connection(source)
        pending = self._pending[source]
        for i, (pending_kind, pending_tag, payload) in enumerate(pending):
            if pending_tag == tag:
                del pending[i]
                return self._check_kind(kind, pending_kind, source, tag, payload)

        while True:
            try:
                message = connection.recv()
            except (EOFError, OSError) as e:
                raise ProtocolError(f"Connection to rank {source} closed while waiting for tag {tag}") from e
            message_kind, message_tag, payload = message
            if message_tag == tag:
                return self._check_kind(kind, message_kind, source, tag, payload)
            pending.append(message)

    @staticmethod
    def _check_kind(expected: str, actual: str, source: int, tag: int, payload: Any) -> Any:
        if expected != actual:
            raise ProtocolError(f"Expected a {expected} from rank {source} (tag {tag}), got a {actual}")
        return payload

    def send_scalar(self, value: int, dest: int, tag: int) -> None:
        self._send((_SCALAR, tag, int(value)), dest)

    def recv_scalar(self, source: int, tag: int) -> int:
        return self._recv(_SCALAR, source, tag)

    def send_buffer(self, buffer: np.ndarray, dest: int, tag: int) -> None:
        self._send((_BUFFER, tag, np.ascontiguousarray(buffer)), dest)

    def recv_buffer(self, source: int, tag: int, count: int, dtype: Any) -> np.ndarray:
        payload = self._recv(_BUFFER, source, tag)
        return check_payload(np.asarray(payload), count, dtype, source, tag)

    def close(self) -> None:
        for connection in self._connections.values():
            connection.close()


def _worker_main(
    connection: Connection,
    rank: int,
    size: int,
    numeric_type: str,
    metric: str,
    execution: str,
    log_level: str,
) -> None:
    """Entry point of a spawned worker rank."""
    setup_logging(LoggingConfig(level=log_level, rank=rank))
    communicator = LocalCommunicator(rank, size, {0: connection})
    try:
        calculator = DistanceCalculator.for_execution(execution)
        DistributionCoordinator(communicator, calculator, numeric_type).run(None, None, metric)
    except DistcalcError as e:
        logger.error(f"Worker failed: {e}")
        raise SystemExit(1) from e
    finally:
        communicator.close()


def run_local(
    query: Sequence[Any],
    dataset: Sequence[Any],
    metric: Union[str, Metric],
    processes: int = 2,
    numeric_type: Union[str, NumericType] = DEFAULT_NUMERIC_TYPE,
    execution: Union[str, Execution] = Execution.SEQ,
    timings: TaskTimings = NULL_TIMINGS,
    start_method: Optional[str] = "spawn",
    log_level: str = "WARNING",
) -> np.ndarray:
    """Compute the distance matrix with ``processes`` local ranks.

    Ranks ``1..processes-1`` are started as child processes; rank 0 runs the
    coordinator in the calling process.

    Args:
        query: Query table
        dataset: Dataset table
        metric: Metric or metric name
        processes: Total number of ranks, coordinator included
        numeric_type: Value type shared by every rank
        execution: Kernel execution strategy used on every rank
        timings: Task timing registry of the coordinator
        start_method: ``multiprocessing`` start method
        log_level: Log level of the worker processes

    Returns:
        The full ``len(query) x len(dataset)`` distance matrix.

    Raises:
        ConfigError: If ``processes`` is smaller than 1.
        DimensionError: If the tables cannot be compared.
        ProtocolError: If a worker dies or sends a malformed result.
    """
    if processes < 1:
        raise ConfigError(f"Number of processes must be at least 1, got {processes}")
    metric = Metric.from_name(metric)
    numeric_type = get_numeric_type(numeric_type)
    execution = Execution.from_name(execution)

    context = multiprocessing.get_context(start_method)
    connections: Dict[int, Connection] = {}
    workers = []
    try:
        for rank in range(1, processes):
            parent_end, child_end = context.Pipe()
            worker = context.Process(
                target=_worker_main,
                args=(child_end, rank, processes, numeric_type.name, metric.value, execution.value, log_level),
                name=f"distcalc-rank-{rank}",
                daemon=True,
            )
            worker.start()
            # only the child keeps this end; a dead worker then reads as EOF
            child_end.close()
            connections[rank] = parent_end
            workers.append(worker)

        communicator = LocalCommunicator(0, processes, connections)
        calculator = DistanceCalculator.for_execution(execution, timings=timings)
        coordinator = DistributionCoordinator(communicator, calculator, numeric_type, timings)
        logger.info(f"Running distributed computation on {processes} local processes")
        return coordinator.run(query, dataset, metric)
    finally:
        for connection in connections.values():
            connection.close()
        for worker in workers:
            worker.join(JOIN_TIMEOUT)
            if worker.is_alive():
                logger.warning(f"Terminating unresponsive worker {worker.name}")
                worker.terminate()
                worker.join()
