"""Tests for the table writer."""

import numpy as np
import pytest

from distcalc.data.loader import load_table
from distcalc.data.writer import format_table, write_table
from distcalc.exceptions import TableIOError


@pytest.mark.unit
class TestFormatTable:
    """Test rendering tables as text."""

    def test_format(self):
        assert format_table([[1, 2, 3], [4, 5, 6]]) == "1, 2, 3\n4, 5, 6\n"

    def test_float32_matrix(self):
        matrix = np.array([[0.5, 1.25]], dtype=np.float32)
        assert format_table(matrix) == "0.5, 1.25\n"

    def test_empty(self):
        assert format_table([]) == ""

    def test_empty_rows(self):
        assert format_table(np.zeros((2, 0))) == "\n\n"


@pytest.mark.unit
class TestWriteTable:
    """Test writing tables to files."""

    def test_write_creates_parent(self, tmp_path):
        path = write_table([[1, 2]], tmp_path / "nested" / "out.csv")
        assert path.read_text() == "1, 2\n"

    def test_round_trip(self, tmp_path):
        rng = np.random.default_rng(42)
        matrix = rng.uniform(-100, 100, size=(12, 5)).astype(np.float32)
        path = write_table(matrix, tmp_path / "round.csv")
        reloaded = np.vstack(load_table(path, "float32"))
        np.testing.assert_allclose(reloaded, matrix, rtol=1e-6)

    def test_round_trip_float64(self, tmp_path):
        rng = np.random.default_rng(7)
        matrix = rng.normal(size=(4, 3))
        path = write_table(matrix, tmp_path / "round64.csv")
        np.testing.assert_array_equal(np.vstack(load_table(path, "float64")), matrix)

    def test_unwritable_path(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("")
        with pytest.raises(TableIOError):
            write_table([[1]], blocker / "out.csv")
