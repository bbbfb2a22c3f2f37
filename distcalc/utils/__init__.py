from distcalc.utils.config import LoggingConfig, default_logging_config
from distcalc.utils.logging import get_logger, setup_logging
from distcalc.utils.timing import NULL_TIMINGS, TaskPerformance, TaskTimings

__all__ = [
    "LoggingConfig",
    "default_logging_config",
    "get_logger",
    "setup_logging",
    "NULL_TIMINGS",
    "TaskPerformance",
    "TaskTimings",
]
