"""
Tests for partitioning, flat buffers and the tag registry.

This test suite covers:
- Block size and processor count arithmetic
- Worker and coordinator row ranges covering the table in order
- Flatten / split round trips and malformed buffers
- Deterministic tag assignment
"""

import numpy as np
import pytest

from distcalc.distributed.partition import compute_partition, flatten, split_flat, table_width
from distcalc.distributed.registry import CHANNELS, TagRegistry
from distcalc.exceptions import DimensionError, ProtocolError


@pytest.mark.unit
class TestPartition:
    """Test splitting query rows over ranks."""

    def test_even_split(self):
        partition = compute_partition(8, 4)
        assert partition.block_size == 2
        assert partition.processor_count == 4
        assert partition.coordinator_rows == 2

    def test_remainder_goes_to_coordinator(self):
        partition = compute_partition(10, 4)
        assert partition.block_size == 2
        assert partition.coordinator_rows == 4
        assert partition.coordinator_range() == (6, 10)

    def test_more_ranks_than_rows(self):
        partition = compute_partition(2, 4)
        assert partition.processor_count == 2
        assert partition.worker_range(1) == (0, 1)
        assert partition.worker_range(2) == (0, 0)
        assert partition.worker_range(3) == (0, 0)
        assert partition.coordinator_range() == (1, 2)

    def test_no_rows(self):
        partition = compute_partition(0, 4)
        assert partition.processor_count == 1
        assert partition.block_size == 0
        assert partition.coordinator_range() == (0, 0)

    def test_single_rank(self):
        partition = compute_partition(5, 1)
        assert partition.coordinator_range() == (0, 5)

    @pytest.mark.parametrize("rows,size", [(1, 1), (7, 2), (10, 4), (3, 8), (100, 7)])
    def test_ranges_cover_rows_in_order(self, rows, size):
        partition = compute_partition(rows, size)
        covered = []
        for rank in range(1, size):
            start, stop = partition.worker_range(rank)
            covered.extend(range(start, stop))
        start, stop = partition.coordinator_range()
        covered.extend(range(start, stop))
        assert covered == list(range(rows))

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            compute_partition(5, 0)

    def test_invalid_worker_rank(self):
        with pytest.raises(ValueError):
            compute_partition(5, 2).worker_range(0)


@pytest.mark.unit
class TestFlatBuffers:
    """Test flattening tables for transport."""

    def test_round_trip(self):
        table = [np.array([1.0, 2.0, 3.0]), np.array([4.0, 5.0, 6.0])]
        flat = flatten(table, np.float32)
        assert flat.dtype == np.float32
        np.testing.assert_array_equal(flat, [1, 2, 3, 4, 5, 6])
        rows = split_flat(flat, 3)
        np.testing.assert_array_equal(np.vstack(rows), np.vstack(table))

    def test_empty(self):
        assert flatten([], np.float64).size == 0
        assert split_flat(np.empty(0), 3) == []

    def test_split_with_row_count(self):
        rows = split_flat(np.empty(0), 0, rows=3)
        assert len(rows) == 3
        assert all(row.size == 0 for row in rows)
        np.testing.assert_array_equal(np.vstack(split_flat(np.arange(6.0), 2, rows=3)), [[0, 1], [2, 3], [4, 5]])

    def test_split_row_count_mismatch(self):
        with pytest.raises(ProtocolError):
            split_flat(np.arange(6.0), 2, rows=2)

    def test_split_wrong_width(self):
        with pytest.raises(ProtocolError):
            split_flat(np.arange(7.0), 3)

    def test_table_width(self):
        assert table_width([[1, 2], [3, 4]]) == 2
        assert table_width([]) == 0
        with pytest.raises(DimensionError):
            table_width([[1, 2], [3]])


@pytest.mark.unit
class TestTagRegistry:
    """Test deterministic tag assignment."""

    def test_fixed_order(self):
        registry = TagRegistry()
        assert [registry.tag(name) for name in CHANNELS] == [0, 1, 2, 3, 4, 5]
        assert registry.tag("vectorSize") == 0
        assert registry.tag("distanceMatrix") == 5

    def test_independent_registries_agree(self):
        assert TagRegistry() == TagRegistry()
        assert TagRegistry().names() == list(CHANNELS)

    def test_register_is_idempotent(self):
        registry = TagRegistry()
        assert registry.register("queryMatrix") == 3
        assert len(registry) == len(CHANNELS)

    def test_register_new_channel(self):
        registry = TagRegistry()
        assert registry.register("extra") == 6
        assert "extra" in registry

    def test_unknown_channel(self):
        with pytest.raises(ProtocolError):
            TagRegistry().tag("nope")
