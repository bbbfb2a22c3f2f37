"""
Output management for distance matrices.

A matrix is either written to the configured file (delimited text or ``.npy``)
or, when no output path is configured, rendered into the log.
"""

from pathlib import Path
from typing import Optional

import numpy as np

from ..config import OutputConfig
from ..data.writer import format_table, write_table
from ..exceptions import TableIOError
from ..utils.logging import get_logger

logger = get_logger(__name__)


class OutputManager:
    """Writes or displays the result matrix according to an ``OutputConfig``."""

    def __init__(self, output_config: OutputConfig):
        self.config = output_config

    def save_distance_matrix(self, matrix: np.ndarray) -> Optional[Path]:
        """Persist ``matrix``; returns the written path, or None when it was only logged."""
        if self.config.path is None:
            self.display(matrix)
            return None

        path = self.config.path
        if self.config.format == "npy":
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                # np.save appends .npy to bare names; write through a handle to keep the path as given
                with open(path, "wb") as f:
                    np.save(f, matrix)
            except OSError as e:
                raise TableIOError(str(path), e.strerror or str(e)) from e
            logger.info(f"Matrix written to {path}")
            return path
        return write_table(matrix, path)

    def display(self, matrix: np.ndarray) -> None:
        logger.info(f"The distance matrix ({matrix.shape[0]}x{matrix.shape[1]}):\n{format_table(matrix)}")
