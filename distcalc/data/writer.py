"""Writing tables and distance matrices as delimited text."""

from pathlib import Path
from typing import Any, Iterable, Union

import numpy as np

from ..exceptions import TableIOError
from ..utils.logging import get_logger

logger = get_logger(__name__)

SEPARATOR = ", "


def _format_value(value: Any) -> str:
    # numpy scalars print the shortest text that round-trips in their own dtype
    return str(value)


def format_table(table: Union[np.ndarray, Iterable[Iterable[Any]]]) -> str:
    """Render a table one row per line, values separated by ``", "``.

    Examples:
        >>> format_table([[1, 2], [3, 4]])
        '1, 2\\n3, 4\\n'
    """
    lines = []
    for row in table:
        lines.append(SEPARATOR.join(_format_value(value) for value in row))
    return "".join(line + "\n" for line in lines)


def write_table(table: Union[np.ndarray, Iterable[Iterable[Any]]], path: Union[str, Path]) -> Path:
    """Write ``table`` to ``path`` in the format produced by ``format_table``.

    Raises:
        TableIOError: If the file cannot be written.
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            f.write(format_table(table))
    except OSError as e:
        raise TableIOError(str(path), e.strerror or str(e)) from e
    logger.info(f"Matrix written to {path}")
    return path
