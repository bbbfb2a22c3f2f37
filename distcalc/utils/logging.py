import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional

from distcalc.utils.config import LoggingConfig, default_logging_config


class ColorizedFormatter(logging.Formatter):
    """Formatter coloring the level name of console records."""

    # ANSI color codes
    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[41m",  # Red background
    }
    RESET = "\033[0m"

    def __init__(self, fmt: str, datefmt: str, use_colors: bool = True):
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname) if self.use_colors else None
        if color is None:
            return super().format(record)
        levelname = record.levelname
        record.levelname = f"{color}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


class RankFilter(logging.Filter):
    """Stamp every record with the rank of the process that emitted it.

    Installed on the handlers, so records of third-party loggers carry the
    rank as well.
    """

    def __init__(self, rank: Optional[int]):
        super().__init__()
        self.rank = rank

    def filter(self, record: logging.LogRecord) -> bool:
        record.rank = self.rank
        return True


def build_handlers(config: LoggingConfig) -> List[logging.Handler]:
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(
        ColorizedFormatter(config.format, config.date_format, use_colors=config.use_colors and sys.stdout.isatty())
    )
    handlers: List[logging.Handler] = [console_handler]

    if config.log_file:
        if config.create_log_dir:
            Path(config.log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(config.log_file, maxBytes=config.max_bytes, backupCount=config.backup_count)
        file_handler.setFormatter(logging.Formatter(config.format, config.date_format))
        handlers.append(file_handler)

    rank_filter = RankFilter(config.rank)
    for handler in handlers:
        handler.addFilter(rank_filter)
    return handlers


def setup_logging(config: Optional[LoggingConfig] = None) -> None:
    """
    Set up logging for distcalc.

    Called once by the command line and once in every spawned worker process,
    each with its own rank.

    Args:
        config: Optional LoggingConfig instance. If None, uses default configuration.
    """
    if config is None:
        config = default_logging_config

    logging.basicConfig(level=getattr(logging, config.level), handlers=build_handlers(config), force=True)

    # numpy reports overflow in casts as RuntimeWarning
    logging.captureWarnings(True)
    # joblib is chatty at DEBUG about backend selection
    logging.getLogger("joblib").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.debug(f"Logging configured with level {config.level}")
    if config.log_file:
        logger.info(f"Logging to file: {config.log_file}")


def get_logger(name: str) -> logging.Logger:
    """Logger for a distcalc module, typically ``get_logger(__name__)``."""
    return logging.getLogger(name)
