"""
Point-to-point messaging interface for distributed runs.

A communicator connects ``size`` processes identified by their rank. Rank 0
coordinates. Messages are tagged; a receive names its source and tag and
blocks until a matching message arrives. Buffers are 1-D numpy arrays whose
length the receiver knows in advance.
"""

from abc import ABC, abstractmethod
from typing import Any

import numpy as np

from ..exceptions import ProtocolError

COORDINATOR_RANK = 0


class Communicator(ABC):
    """Base class for message transports."""

    @property
    @abstractmethod
    def rank(self) -> int:
        """Rank of the calling process."""

    @property
    @abstractmethod
    def size(self) -> int:
        """Number of processes in the communicator."""

    @property
    def is_coordinator(self) -> bool:
        return self.rank == COORDINATOR_RANK

    @abstractmethod
    def send_scalar(self, value: int, dest: int, tag: int) -> None:
        """Send one integer to ``dest``."""

    @abstractmethod
    def recv_scalar(self, source: int, tag: int) -> int:
        """Receive one integer from ``source``."""

    @abstractmethod
    def send_buffer(self, buffer: np.ndarray, dest: int, tag: int) -> None:
        """Send a 1-D array to ``dest``."""

    @abstractmethod
    def recv_buffer(self, source: int, tag: int, count: int, dtype: Any) -> np.ndarray:
        """Receive a 1-D array of exactly ``count`` elements of ``dtype``.

        Raises:
            ProtocolError: If the payload length or type differs.
        """

    def abort(self, code: int = 1) -> None:
        """Terminate every rank after a fatal error on this one."""

    def close(self) -> None:
        pass

    def __enter__(self) -> "Communicator":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(rank={self.rank}, size={self.size})"


def check_payload(buffer: np.ndarray, count: int, dtype: Any, source: int, tag: int) -> np.ndarray:
    """Validate a received buffer against the announced length and type."""
    dtype = np.dtype(dtype)
    if buffer.dtype != dtype:
        raise ProtocolError(f"Expected {dtype.name} payload from rank {source} (tag {tag}), got {buffer.dtype.name}")
    if buffer.size != count:
        raise ProtocolError(
            f"Payload size mismatch from rank {source} (tag {tag}): expected {count} elements, got {buffer.size}"
        )
    return buffer
