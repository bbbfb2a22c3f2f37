"""
Exceptions for the distcalc framework.

Every error raised by the core derives from ``DistcalcError``. Where a builtin
category fits (``OSError`` for unreadable sources, ``ValueError`` for bad
values) the distcalc error also derives from it so callers can catch either.
"""

from typing import List, Optional, Sequence


class DistcalcError(Exception):
    """Base exception for distcalc operations."""

    pass


class TableIOError(DistcalcError, OSError):
    """Raised when a table source cannot be opened or read."""

    def __init__(self, source: str, reason: str = ""):
        self.source = source
        self.reason = reason
        super().__init__(f"Cannot read table source '{source}': {reason}")


class FormatError(DistcalcError, ValueError):
    """Raised when a token cannot be converted to the requested type."""

    def __init__(self, token: str, type_name: str = "", row: Optional[int] = None):
        self.token = token
        self.type_name = type_name
        self.row = row
        location = f" (row {row})" if row is not None else ""
        super().__init__(f"Type mismatch, cannot convert '{token}' to {type_name}{location}")


class TableLoadError(DistcalcError):
    """Raised when one or more independent load units failed.

    Attributes:
        errors: Every unit-level exception, in unit order.
    """

    def __init__(self, errors: Sequence[BaseException]):
        self.errors: List[BaseException] = list(errors)
        super().__init__(" | ".join(str(e) for e in self.errors))


class DimensionError(DistcalcError, ValueError):
    """Raised when compared vectors have different lengths."""

    def __init__(self, message: str = "The vector sizes is not equal, distance computation is impossible."):
        super().__init__(message)


class ProtocolError(DistcalcError):
    """Raised when a distributed message violates the expected sequence or size."""

    pass


class ConfigError(DistcalcError, ValueError):
    """Raised for unknown metrics, types, execution strategies or invalid topology."""

    pass
