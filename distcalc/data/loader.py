"""
Table loading from delimited text.

The loader memory-maps the source, indexes its lines and converts every cell to
the requested ``NumericType``. Three execution strategies are available:

- ``Execution.SEQ``: a single pass over rows and cells, in order.
- ``Execution.PAR``: one unit of work per row, scheduled on a joblib thread
  pool, each writing into its own slot of a preallocated table.
- ``Execution.PAR_CHUNKED``: contiguous row ranges of at least
  ``MIN_ROWS_PER_THREAD`` rows, one worker per range.

All strategies return identical tables. The parallel ones collect every
conversion error and raise them together as a ``TableLoadError``.
"""

import math
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Any, List, Optional, Sequence, Tuple, Union

import numpy as np
from joblib import Parallel, delayed

from ..exceptions import FormatError, TableLoadError
from ..utils.logging import get_logger
from ..utils.timing import NULL_TIMINGS, TaskTimings
from .buffer import Row, RowBuffer, Source
from .enums import Execution
from .numeric import DEFAULT_NUMERIC_TYPE, NumericType, get_numeric_type

logger = get_logger(__name__)

MIN_ROWS_PER_THREAD = 25

TableRow = Union[np.ndarray, List[str]]
Table = List[TableRow]


def hardware_concurrency() -> int:
    """Number of worker threads available, falling back to 2 when unknown."""
    return os.cpu_count() or 2


def _convert_row(row: Row, numeric_type: NumericType, index: int) -> TableRow:
    return numeric_type.make_row(row.values(numeric_type, index))


def _load_sequential(rows: Sequence[Row], numeric_type: NumericType) -> Table:
    return [_convert_row(row, numeric_type, i) for i, row in enumerate(rows)]


def _load_parallel(rows: Sequence[Row], numeric_type: NumericType, n_jobs: Optional[int]) -> Table:
    table: List[Any] = [None] * len(rows)

    def load_one(index: int) -> Optional[FormatError]:
        try:
            table[index] = _convert_row(rows[index], numeric_type, index)
        except FormatError as e:
            return e
        return None

    results = Parallel(n_jobs=n_jobs or -1, backend="threading")(delayed(load_one)(i) for i in range(len(rows)))
    errors = [e for e in results if e is not None]
    if errors:
        raise TableLoadError(errors)
    return table


def chunk_ranges(total_rows: int, max_workers: Optional[int] = None) -> List[Tuple[int, int]]:
    """Split ``total_rows`` into contiguous ``[start, stop)`` ranges.

    The number of ranges is ``ceil(total_rows / MIN_ROWS_PER_THREAD)`` bounded
    by ``max_workers`` (hardware concurrency by default). The last range
    absorbs the remainder.

    Examples:
        >>> chunk_ranges(60, max_workers=8)
        [(0, 30), (30, 60)]
    """
    if total_rows <= 0:
        return []
    max_workers = max_workers or hardware_concurrency()
    num_chunks = max(1, min(max_workers, math.ceil(total_rows / MIN_ROWS_PER_THREAD)))
    chunk_size = total_rows // num_chunks
    ranges = [(i * chunk_size, (i + 1) * chunk_size) for i in range(num_chunks - 1)]
    ranges.append(((num_chunks - 1) * chunk_size, total_rows))
    return ranges


def _load_chunked(rows: Sequence[Row], numeric_type: NumericType, n_jobs: Optional[int]) -> Table:
    table: List[Any] = [None] * len(rows)
    ranges = chunk_ranges(len(rows), n_jobs)

    def load_range(start: int, stop: int) -> List[FormatError]:
        errors = []
        for index in range(start, stop):
            try:
                table[index] = _convert_row(rows[index], numeric_type, index)
            except FormatError as e:
                errors.append(e)
        return errors

    errors: List[FormatError] = []
    if ranges:
        with ThreadPoolExecutor(max_workers=len(ranges)) as executor:
            futures = [executor.submit(load_range, start, stop) for start, stop in ranges]
            for future in futures:
                errors.extend(future.result())
    if errors:
        raise TableLoadError(errors)
    return table


def load_table(
    source: Source,
    numeric_type: Union[str, NumericType] = DEFAULT_NUMERIC_TYPE,
    execution: Union[str, Execution] = Execution.SEQ,
    timings: TaskTimings = NULL_TIMINGS,
    n_jobs: Optional[int] = None,
) -> Table:
    """Load a delimited text table.

    Args:
        source: Path, binary/text stream or raw bytes
        numeric_type: Target value type (name or ``NumericType``)
        execution: Loading strategy
        timings: Task timing registry, updated under ``"load_table"``
        n_jobs: Worker count for the parallel strategies (all cores by default)

    Returns:
        List of rows. Numeric rows are 1-D numpy arrays of the target dtype,
        string rows are lists of ``str``. Blank lines are skipped; rows are not
        required to have equal widths.

    Raises:
        TableIOError: If the source cannot be opened or read.
        FormatError: If a cell does not convert (sequential strategy).
        TableLoadError: If one or more rows fail to convert (parallel strategies).
    """
    numeric_type = get_numeric_type(numeric_type)
    execution = Execution.from_name(execution)

    with timings.track("load_table"):
        with RowBuffer.open(source) as buffer:
            rows = buffer.rows()
            logger.debug(f"Loading {len(rows)} rows from {buffer.name} as {numeric_type.name} ({execution.value})")
            if execution is Execution.SEQ:
                table = _load_sequential(rows, numeric_type)
            elif execution is Execution.PAR:
                table = _load_parallel(rows, numeric_type, n_jobs)
            else:
                table = _load_chunked(rows, numeric_type, n_jobs)
    return table


def load_tables(
    query_source: Source,
    dataset_source: Source,
    numeric_type: Union[str, NumericType] = DEFAULT_NUMERIC_TYPE,
    execution: Union[str, Execution] = Execution.SEQ,
    timings: TaskTimings = NULL_TIMINGS,
    n_jobs: Optional[int] = None,
) -> Tuple[Table, Table]:
    """Load the query and dataset tables.

    With a parallel strategy both sources load concurrently and the failures
    of both are reported together in one ``TableLoadError``.

    Returns:
        Tuple of (query, dataset) tables.
    """
    execution = Execution.from_name(execution)
    if not execution.is_parallel:
        with timings.track("load_query"):
            query = load_table(query_source, numeric_type, execution, n_jobs=n_jobs)
        with timings.track("load_dataset"):
            dataset = load_table(dataset_source, numeric_type, execution, n_jobs=n_jobs)
        return query, dataset

    def load_one(name: str, source: Source) -> Table:
        with timings.track(name):
            return load_table(source, numeric_type, execution, n_jobs=n_jobs)

    with ThreadPoolExecutor(max_workers=2) as executor:
        futures = [
            executor.submit(load_one, "load_query", query_source),
            executor.submit(load_one, "load_dataset", dataset_source),
        ]
        results: List[Table] = []
        errors: List[BaseException] = []
        for future in futures:
            try:
                results.append(future.result())
            except TableLoadError as e:
                errors.extend(e.errors)
            except (OSError, ValueError) as e:
                errors.append(e)
    if errors:
        raise TableLoadError(errors)
    return results[0], results[1]
