"""
Lazy, zero-copy views over delimited text.

A ``RowBuffer`` owns the raw bytes of one source (memory mapped when it comes
from a file) and the ``(offset, length)`` index of every line. ``Row`` and
``Cell`` objects are small views into that buffer: nothing is copied until a
cell is converted to a value.

Tokens are separated by any run of comma, tab or space characters. Leading and
trailing delimiters never produce empty tokens.
"""

import io
import mmap
import re
from pathlib import Path
from typing import IO, Any, Iterator, List, Optional, Tuple, Union

from ..exceptions import FormatError, TableIOError
from .numeric import NumericType, get_numeric_type

DELIMITERS = b"\t ,"
_TOKEN = re.compile(rb"[^\t ,]+")

Source = Union[str, Path, IO[bytes], IO[str], bytes]


class Cell:
    """Immutable view of one token inside a row buffer."""

    __slots__ = ("_data", "_start", "_end")

    def __init__(self, data: Any, start: int, end: int):
        self._data = data
        self._start = start
        self._end = end

    @property
    def span(self) -> Tuple[int, int]:
        return self._start, self._end

    def raw(self) -> bytes:
        return bytes(self._data[self._start : self._end])

    def get(self, numeric_type: Union[str, NumericType] = "float32") -> Any:
        """Convert the token to ``numeric_type``.

        Raises:
            FormatError: If the token does not represent a value of that type.
        """
        return get_numeric_type(numeric_type).convert(self.raw())

    def __str__(self) -> str:
        return self.raw().decode("utf-8", errors="replace")

    def __repr__(self) -> str:
        return f"Cell({str(self)!r})"


class RowCursor:
    """Forward-only position within a row.

    The cursor always rests either on the first byte of a token or on the end
    of the row, so two cursors over the same buffer are equal iff they point
    at the same token. The token boundary is found once and cached; repeated
    dereferencing without advancing costs nothing extra.
    """

    __slots__ = ("_data", "_pos", "_end", "_match")

    def __init__(self, data: Any, pos: int, end: int):
        self._data = data
        self._end = end
        self._match = _TOKEN.search(data, pos, end) if pos < end else None
        self._pos = self._match.start() if self._match is not None else end

    @property
    def position(self) -> int:
        return self._pos

    @property
    def at_end(self) -> bool:
        return self._match is None

    def cell(self) -> Cell:
        if self._match is None:
            raise IndexError("Dereferencing a row cursor past the end of the row")
        return Cell(self._data, self._match.start(), self._match.end())

    def advance(self) -> "RowCursor":
        if self._match is None:
            raise IndexError("Advancing a row cursor past the end of the row")
        return RowCursor(self._data, self._match.end(), self._end)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RowCursor):
            return NotImplemented
        return self._data is other._data and self._pos == other._pos

    def __hash__(self) -> int:
        return hash((id(self._data), self._pos))


class Row:
    """View of one line of a ``RowBuffer``.

    Iterating a row yields its cells lazily; each iteration restarts the scan
    from the beginning of the line.
    """

    __slots__ = ("_data", "offset", "length")

    def __init__(self, data: Any, offset: int, length: int):
        self._data = data
        self.offset = offset
        self.length = length

    def begin(self) -> RowCursor:
        return RowCursor(self._data, self.offset, self.offset + self.length)

    def end(self) -> RowCursor:
        end = self.offset + self.length
        return RowCursor(self._data, end, end)

    def __iter__(self) -> Iterator[Cell]:
        cursor = self.begin()
        while not cursor.at_end:
            yield cursor.cell()
            cursor = cursor.advance()

    def is_blank(self) -> bool:
        return self.begin().at_end

    def as_bytes(self) -> bytes:
        return bytes(self._data[self.offset : self.offset + self.length])

    def values(self, numeric_type: NumericType, row_index: Optional[int] = None) -> List[Any]:
        """Convert every cell of the row, tagging conversion errors with the row index."""
        values = []
        for cell in self:
            try:
                values.append(numeric_type.convert(cell.raw()))
            except FormatError as e:
                if row_index is None or e.row is not None:
                    raise
                raise FormatError(e.token, e.type_name, row_index) from None
        return values

    def __repr__(self) -> str:
        return f"Row({self.as_bytes()!r})"


class RowBuffer:
    """Arena owning the bytes of one source and the index of its lines.

    Args:
        data: The raw bytes (or an ``mmap`` over them)
        name: Human-readable origin, used in error messages

    Use ``RowBuffer.open`` to build one from a path or stream. The buffer is a
    context manager; closing it releases the memory map.
    """

    def __init__(self, data: Any, name: str = "<memory>"):
        self._data = data
        self.name = name
        self._lines = self._index_lines(data)

    @staticmethod
    def _index_lines(data: Any) -> List[Tuple[int, int]]:
        lines = []
        size = len(data)
        start = 0
        while start < size:
            newline = data.find(b"\n", start)
            stop = size if newline == -1 else newline
            end = stop
            if end > start and data[end - 1 : end] == b"\r":
                end -= 1
            lines.append((start, end - start))
            start = stop + 1
        return lines

    @classmethod
    def open(cls, source: Source) -> "RowBuffer":
        """Create a buffer from a path, a byte/text stream or raw bytes.

        Raises:
            TableIOError: If the path does not exist or cannot be read.
        """
        if isinstance(source, bytes):
            return cls(source)
        if isinstance(source, (str, Path)):
            path = Path(source)
            try:
                with open(path, "rb") as f:
                    try:
                        data = mmap.mmap(f.fileno(), 0, access=mmap.ACCESS_READ)
                    except ValueError:
                        # empty files cannot be mapped
                        data = f.read()
            except OSError as e:
                raise TableIOError(str(path), e.strerror or str(e)) from e
            return cls(data, str(path))
        if isinstance(source, io.TextIOBase):
            return cls(source.read().encode("utf-8"), getattr(source, "name", "<stream>"))
        try:
            content = source.read()
        except (OSError, AttributeError) as e:
            raise TableIOError(repr(source), str(e)) from e
        if isinstance(content, str):
            content = content.encode("utf-8")
        return cls(content, getattr(source, "name", "<stream>"))

    def __len__(self) -> int:
        return len(self._lines)

    def __getitem__(self, index: int) -> Row:
        offset, length = self._lines[index]
        return Row(self._data, offset, length)

    def __iter__(self) -> Iterator[Row]:
        for offset, length in self._lines:
            yield Row(self._data, offset, length)

    def rows(self) -> List[Row]:
        """Non-blank rows, in source order."""
        return [row for row in self if not row.is_blank()]

    def close(self) -> None:
        if isinstance(self._data, mmap.mmap):
            self._data.close()

    def __enter__(self) -> "RowBuffer":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
