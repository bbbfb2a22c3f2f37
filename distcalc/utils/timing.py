"""
Execution-time bookkeeping for named tasks.

A ``TaskTimings`` instance is created once per run and handed to the objects
that do measurable work (loader, kernels, coordinator). Each named task keeps a
call count and the accumulated wall-clock duration; the totals can be written
to a ``time.log`` style file at the end of the run.
"""

import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, Optional, Union

from .logging import get_logger

logger = get_logger(__name__)


@dataclass
class TaskPerformance:
    """Accumulated statistics for one task name."""

    duration: float = 0.0
    num_calls: int = 0


class TaskTimings:
    """Thread-safe registry of task durations.

    Args:
        enabled: When False, ``track`` is a no-op and nothing is recorded.

    Examples:
        >>> timings = TaskTimings()
        >>> with timings.track("load_query"):
        ...     pass
        >>> timings.get("load_query").num_calls
        1
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._lock = threading.Lock()
        self._tasks: Dict[str, TaskPerformance] = {}

    def update(self, name: str, duration: float, num_calls: int = 1) -> None:
        """Add ``duration`` seconds and ``num_calls`` calls to task ``name``."""
        if not self.enabled:
            return
        with self._lock:
            performance = self._tasks.setdefault(name, TaskPerformance())
            performance.duration += duration
            performance.num_calls += num_calls

    @contextmanager
    def track(self, name: str) -> Iterator[None]:
        """Time the enclosed block under ``name``.

        The duration is recorded even when the block raises.
        """
        start = time.perf_counter()
        try:
            yield
        finally:
            self.update(name, time.perf_counter() - start)

    def get(self, name: str) -> Optional[TaskPerformance]:
        with self._lock:
            performance = self._tasks.get(name)
            if performance is None:
                return None
            return TaskPerformance(performance.duration, performance.num_calls)

    def as_dict(self) -> Dict[str, TaskPerformance]:
        with self._lock:
            return {name: TaskPerformance(p.duration, p.num_calls) for name, p in self._tasks.items()}

    def dump(self, path: Union[str, Path] = "time.log") -> Path:
        """Append one line per task to ``path``.

        Args:
            path: Destination log file, appended to if it already exists.

        Returns:
            The path written to.
        """
        path = Path(path)
        with open(path, "a") as f:
            for name, performance in sorted(self.as_dict().items()):
                f.write(
                    f"Task: {name} | count of call: {performance.num_calls}"
                    f" | duration: {performance.duration:.6f}\n"
                )
        logger.info(f"Task timings written to {path}")
        return path


# Shared disabled instance for callers that do not collect timings
NULL_TIMINGS = TaskTimings(enabled=False)
