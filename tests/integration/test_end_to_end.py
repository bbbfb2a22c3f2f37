"""
End-to-end tests from text files to the written distance matrix.

These tests exercise loading, computing and writing together, the way the
command line runs them.
"""

import numpy as np
import pytest
from scipy.spatial.distance import cdist

from distcalc.data.enums import Execution
from distcalc.data.loader import load_tables
from distcalc.data.writer import write_table
from distcalc.distance import DistanceCalculator


@pytest.mark.integration
class TestEndToEnd:
    """Test file-to-matrix pipelines."""

    @pytest.mark.parametrize("execution", [Execution.SEQ, Execution.PAR, Execution.PAR_CHUNKED])
    def test_matches_scipy(self, tmp_path, execution):
        rng = np.random.default_rng(21)
        query = rng.uniform(-10, 10, size=(60, 6))
        dataset = rng.uniform(-10, 10, size=(31, 6))
        query_path = write_table(query, tmp_path / "query.csv")
        dataset_path = write_table(dataset, tmp_path / "dataset.csv")

        loaded_query, loaded_dataset = load_tables(query_path, dataset_path, "float64", execution)
        calculator = DistanceCalculator.for_execution(execution)

        np.testing.assert_allclose(
            calculator.compute_distance(loaded_query, loaded_dataset, "L1"), cdist(query, dataset, "cityblock")
        )
        np.testing.assert_allclose(
            calculator.compute_distance(loaded_query, loaded_dataset, "L2"), cdist(query, dataset, "euclidean")
        )

    def test_mixed_delimiters(self, write_csv):
        query = write_csv("query.csv", "1\t2 3\n2,3,4\n3 , 4 ,5\r\n")
        dataset = write_csv("dataset.csv", "3 4 5\n\n2\t3\t4\n1,2,3")
        loaded_query, loaded_dataset = load_tables(query, dataset, "float32", Execution.PAR)
        matrix = DistanceCalculator.for_execution("par").compute_distance(loaded_query, loaded_dataset, "L1")
        np.testing.assert_array_equal(matrix, [[6, 3, 0], [3, 0, 3], [0, 3, 6]])

    def test_string_tables_hamming(self, write_csv):
        query = write_csv("query.txt", "a b c\nx y z\n")
        dataset = write_csv("dataset.txt", "a b d\n")
        loaded_query, loaded_dataset = load_tables(query, dataset, "str")
        matrix = DistanceCalculator.for_execution("seq").compute_distance(loaded_query, loaded_dataset, "Hamming")
        np.testing.assert_array_equal(matrix, [[1], [3]])
