"""
MPI communicator backed by mpi4py.

mpi4py is an optional dependency (``pip install distcalc[mpi]``); it is only
imported when an ``MPICommunicator`` is created. Scalars travel as pickled
Python ints, buffers as raw bytes through ``Send``/``Recv`` after a ``Probe``
that checks the payload length.
"""

from typing import Any

import numpy as np

from ..exceptions import ConfigError, ProtocolError
from ..utils.logging import get_logger
from .communicator import Communicator

logger = get_logger(__name__)


def _import_mpi() -> Any:
    try:
        from mpi4py import MPI
    except ImportError as e:
        raise ConfigError(f"The MPI backend needs mpi4py. Install it with 'pip install distcalc[mpi]': {e}") from e
    return MPI


class MPICommunicator(Communicator):
    """Communicator over an MPI intra-communicator (``COMM_WORLD`` by default)."""

    def __init__(self, comm: Any = None):
        self.MPI = _import_mpi()
        self.comm = comm if comm is not None else self.MPI.COMM_WORLD

    @property
    def rank(self) -> int:
        return self.comm.Get_rank()

    @property
    def size(self) -> int:
        return self.comm.Get_size()

    def send_scalar(self, value: int, dest: int, tag: int) -> None:
        self.comm.send(int(value), dest=dest, tag=tag)

    def recv_scalar(self, source: int, tag: int) -> int:
        value = self.comm.recv(source=source, tag=tag)
        if not isinstance(value, int):
            raise ProtocolError(f"Expected an integer from rank {source} (tag {tag}), got {type(value).__name__}")
        return value

    def send_buffer(self, buffer: np.ndarray, dest: int, tag: int) -> None:
        buffer = np.ascontiguousarray(buffer)
        self.comm.Send([buffer, self.MPI.BYTE], dest=dest, tag=tag)

    def recv_buffer(self, source: int, tag: int, count: int, dtype: Any) -> np.ndarray:
        dtype = np.dtype(dtype)
        status = self.MPI.Status()
        self.comm.Probe(source=source, tag=tag, status=status)
        received_bytes = status.Get_count(self.MPI.BYTE)
        if received_bytes != count * dtype.itemsize:
            # consume the message so the communicator is left in a clean state
            self.comm.Recv([bytearray(received_bytes), self.MPI.BYTE], source=source, tag=tag)
            raise ProtocolError(
                f"Payload size mismatch from rank {source} (tag {tag}): expected {count} elements "
                f"({count * dtype.itemsize} bytes), got {received_bytes} bytes"
            )
        buffer = np.empty(count, dtype=dtype)
        self.comm.Recv([buffer, self.MPI.BYTE], source=source, tag=tag)
        return buffer

    def abort(self, code: int = 1) -> None:
        logger.error(f"Rank {self.rank} aborting the MPI job")
        self.comm.Abort(code)

    def close(self) -> None:
        logger.debug(f"Rank {self.rank} leaving the MPI communicator")
