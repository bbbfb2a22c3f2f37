"""
Text-to-value conversion traits.

A ``NumericType`` describes how one token of a table is converted to the target
type and which numpy dtype a row of such values is stored in. One trait exists
per supported type; the loader and the cells are parameterized by it instead of
having one conversion routine per type.
"""

import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

import numpy as np

from ..exceptions import ConfigError, FormatError

_SIGNED_INT = re.compile(rb"-?[0-9]+")
_UNSIGNED_INT = re.compile(rb"[0-9]+")


@dataclass(frozen=True)
class NumericType:
    """Conversion trait for one target type.

    Attributes:
        name: Canonical type name ("float32", "int64", "str", ...)
        dtype: numpy dtype used for rows of this type, None for strings
        parse: Callable converting one raw token (bytes) to a scalar
    """

    name: str
    dtype: Optional[np.dtype]
    parse: Callable[[bytes], Any]

    @property
    def is_numeric(self) -> bool:
        return self.dtype is not None

    @property
    def is_floating(self) -> bool:
        return self.dtype is not None and np.issubdtype(self.dtype, np.floating)

    def convert(self, token: bytes) -> Any:
        """Convert a raw token, raising ``FormatError`` on failure."""
        try:
            return self.parse(token)
        except FormatError:
            raise
        except (ValueError, OverflowError, UnicodeDecodeError):
            raise FormatError(_show(token), self.name) from None

    def make_row(self, values: List[Any]) -> Union[np.ndarray, List[str]]:
        """Pack converted scalars into one table row."""
        if self.dtype is None:
            return values
        return np.array(values, dtype=self.dtype)


def _show(token: bytes) -> str:
    return token.decode("utf-8", errors="replace")


def _int_parser(dtype: np.dtype) -> Callable[[bytes], int]:
    info = np.iinfo(dtype)
    pattern = _SIGNED_INT if info.min < 0 else _UNSIGNED_INT

    def parse(token: bytes) -> int:
        if pattern.fullmatch(token) is None:
            raise FormatError(_show(token), dtype.name)
        value = int(token)
        if value < info.min or value > info.max:
            raise FormatError(_show(token), dtype.name)
        return value

    return parse


def _is_inf_literal(token: bytes) -> bool:
    return token.lstrip(b"+-").lower() in (b"inf", b"infinity")


def _float_parser(dtype: np.dtype) -> Callable[[bytes], Any]:
    def parse(token: bytes) -> Any:
        # float() tolerates digit separators and surrounding whitespace
        if b"_" in token or token != token.strip():
            raise FormatError(_show(token), dtype.name)
        value = float(token)
        if dtype == np.longdouble:
            value = np.longdouble(token.decode("ascii"))
        if np.isnan(value) or _is_inf_literal(token):
            return value
        # overflow reads as infinity, which the token did not spell
        if not np.isfinite(dtype.type(value)):
            raise FormatError(_show(token), dtype.name)
        return value

    return parse


def _str_parser(token: bytes) -> str:
    return token.decode("utf-8")


def _build_registry() -> Dict[str, NumericType]:
    registry: Dict[str, NumericType] = {}
    for name in ("int8", "int16", "int32", "int64", "uint8", "uint16", "uint32", "uint64"):
        dtype = np.dtype(name)
        registry[name] = NumericType(name, dtype, _int_parser(dtype))
    for name in ("float32", "float64", "longdouble"):
        dtype = np.dtype(name)
        registry[name] = NumericType(name, dtype, _float_parser(dtype))
    registry["str"] = NumericType("str", None, _str_parser)
    return registry


NUMERIC_TYPES: Dict[str, NumericType] = _build_registry()

# Aliases accepted on the command line and in config files
_ALIASES = {
    "float": "float32",
    "double": "float64",
    "int": "int32",
    "long": "int64",
    "string": "str",
}

DEFAULT_NUMERIC_TYPE = NUMERIC_TYPES["float32"]


def get_numeric_type(name: Union[str, NumericType, np.dtype, type]) -> NumericType:
    """Look up the conversion trait for a type name or numpy dtype.

    Args:
        name: Type name ("float32", "double", "int64", "str", ...), numpy dtype,
            or an existing ``NumericType``

    Returns:
        The matching ``NumericType``.

    Raises:
        ConfigError: If the type is not supported.
    """
    if isinstance(name, NumericType):
        return name
    if name is str:
        return NUMERIC_TYPES["str"]
    if not isinstance(name, str):
        try:
            name = np.dtype(name).name
        except TypeError:
            raise ConfigError(f"Unsupported value type: {name!r}") from None
    key = _ALIASES.get(name.lower(), name.lower())
    if key == "float128" or key == "float96":
        key = "longdouble"
    if key not in NUMERIC_TYPES:
        raise ConfigError(f"Unsupported value type '{name}'. Available: {sorted(NUMERIC_TYPES)}")
    return NUMERIC_TYPES[key]
