"""
Tests for the lazy row buffer views.

This test suite covers:
- Line indexing (CRLF, trailing newline, blank lines)
- Tokenization over mixed delimiters
- Cursor equality and caching
- Opening sources of different kinds
"""

import io

import pytest

from distcalc.data.buffer import Cell, RowBuffer
from distcalc.exceptions import FormatError, TableIOError


def tokens(row):
    return [str(cell) for cell in row]


@pytest.mark.unit
class TestLineIndex:
    """Test splitting a buffer into lines."""

    def test_lines(self):
        buffer = RowBuffer(b"1,2\n3,4\n")
        assert len(buffer) == 2
        assert buffer[0].as_bytes() == b"1,2"
        assert buffer[1].as_bytes() == b"3,4"

    def test_no_trailing_newline(self):
        buffer = RowBuffer(b"1,2\n3,4")
        assert [row.as_bytes() for row in buffer] == [b"1,2", b"3,4"]

    def test_crlf(self):
        buffer = RowBuffer(b"1,2\r\n3,4\r\n")
        assert [row.as_bytes() for row in buffer] == [b"1,2", b"3,4"]

    def test_blank_rows_skipped(self):
        buffer = RowBuffer(b"1,2\n\n  \n3,4\n")
        assert len(buffer) == 4
        assert [row.as_bytes() for row in buffer.rows()] == [b"1,2", b"3,4"]

    def test_empty(self):
        buffer = RowBuffer(b"")
        assert len(buffer) == 0
        assert buffer.rows() == []


@pytest.mark.unit
class TestTokenization:
    """Test iterating the cells of a row."""

    @pytest.mark.parametrize(
        "line",
        [b"1,2,3", b"1 2 3", b"1\t2\t3", b"1, 2, 3", b"1 ,\t2  3", b",1,2,3,", b"  1 2 3  "],
    )
    def test_delimiters_interchangeable(self, line):
        assert tokens(RowBuffer(line)[0]) == ["1", "2", "3"]

    def test_no_empty_tokens(self):
        assert tokens(RowBuffer(b"1,,,2")[0]) == ["1", "2"]

    def test_iteration_restarts(self):
        row = RowBuffer(b"4 5")[0]
        assert tokens(row) == tokens(row) == ["4", "5"]

    def test_cell_conversion(self):
        cell = next(iter(RowBuffer(b"2.5,x")[0]))
        assert isinstance(cell, Cell)
        assert cell.get("float64") == 2.5
        assert cell.raw() == b"2.5"

    def test_cell_conversion_failure(self):
        cells = list(RowBuffer(b"2.5,x")[0])
        with pytest.raises(FormatError):
            cells[1].get("float64")

    def test_values_tag_row_index(self):
        from distcalc.data.numeric import get_numeric_type

        row = RowBuffer(b"1,oops")[0]
        with pytest.raises(FormatError) as exc_info:
            row.values(get_numeric_type("int32"), row_index=7)
        assert exc_info.value.row == 7
        assert "(row 7)" in str(exc_info.value)


@pytest.mark.unit
class TestRowCursor:
    """Test cursor positioning and equality."""

    def test_begin_equals_end_for_blank_row(self):
        row = RowBuffer(b" , \n")[0]
        assert row.begin() == row.end()
        assert row.begin().at_end

    def test_advance_reaches_end(self):
        row = RowBuffer(b"1,2")[0]
        cursor = row.begin().advance().advance()
        assert cursor == row.end()

    def test_equality_requires_same_buffer(self):
        first = RowBuffer(bytes(bytearray(b"1,2")))[0]
        second = RowBuffer(bytes(bytearray(b"1,2")))[0]
        assert first.begin() != second.begin()

    def test_cursor_skips_leading_delimiters(self):
        row = RowBuffer(b"  7")[0]
        assert row.begin().position == 2

    def test_repeated_dereference_is_stable(self):
        cursor = RowBuffer(b"12,34")[0].begin()
        assert cursor.cell().raw() == cursor.cell().raw() == b"12"

    def test_past_end(self):
        row = RowBuffer(b"1")[0]
        with pytest.raises(IndexError):
            row.end().cell()
        with pytest.raises(IndexError):
            row.end().advance()


@pytest.mark.unit
class TestOpen:
    """Test creating buffers from sources."""

    def test_open_path(self, write_csv):
        path = write_csv("table.csv", "1,2\n3,4\n")
        with RowBuffer.open(path) as buffer:
            assert buffer.name == str(path)
            assert tokens(buffer[1]) == ["3", "4"]

    def test_open_empty_file(self, write_csv):
        path = write_csv("empty.csv", "")
        with RowBuffer.open(path) as buffer:
            assert len(buffer) == 0

    def test_open_missing_file(self, tmp_path):
        with pytest.raises(TableIOError) as exc_info:
            RowBuffer.open(tmp_path / "missing.csv")
        assert isinstance(exc_info.value, OSError)

    def test_open_text_stream(self):
        buffer = RowBuffer.open(io.StringIO("a b\n"))
        assert tokens(buffer[0]) == ["a", "b"]

    def test_open_binary_stream(self):
        buffer = RowBuffer.open(io.BytesIO(b"1\t2\n"))
        assert tokens(buffer[0]) == ["1", "2"]
