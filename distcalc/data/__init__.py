"""
Table model and loading for distcalc.

Main Classes:
- RowBuffer / Row / Cell: lazy, zero-copy views over delimited text
- NumericType: text-to-value conversion trait, one per supported type

Functions:
- load_table / load_tables: parse delimited text into tables
- write_table / format_table: render tables as delimited text
"""

from .buffer import Cell, Row, RowBuffer, RowCursor
from .enums import Execution, Metric
from .loader import MIN_ROWS_PER_THREAD, Table, chunk_ranges, load_table, load_tables
from .numeric import DEFAULT_NUMERIC_TYPE, NUMERIC_TYPES, NumericType, get_numeric_type
from .writer import format_table, write_table

__all__ = [
    "Cell",
    "Row",
    "RowBuffer",
    "RowCursor",
    "Execution",
    "Metric",
    "MIN_ROWS_PER_THREAD",
    "Table",
    "chunk_ranges",
    "load_table",
    "load_tables",
    "DEFAULT_NUMERIC_TYPE",
    "NUMERIC_TYPES",
    "NumericType",
    "get_numeric_type",
    "format_table",
    "write_table",
]
