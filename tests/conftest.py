import numpy as np
import pytest


@pytest.fixture(scope="module")
def scenario_query():
    """Three 3-dimensional query vectors."""
    return [
        np.array([1.0, 2.0, 3.0], dtype=np.float32),
        np.array([2.0, 3.0, 4.0], dtype=np.float32),
        np.array([3.0, 4.0, 5.0], dtype=np.float32),
    ]


@pytest.fixture(scope="module")
def scenario_dataset():
    """Three 3-dimensional dataset vectors."""
    return [
        np.array([3.0, 4.0, 5.0], dtype=np.float32),
        np.array([2.0, 3.0, 4.0], dtype=np.float32),
        np.array([1.0, 2.0, 3.0], dtype=np.float32),
    ]


@pytest.fixture
def write_csv(tmp_path):
    """Write text to a file under tmp_path and return its path."""

    def _write(name, text):
        path = tmp_path / name
        path.write_text(text)
        return path

    return _write


@pytest.fixture
def random_tables():
    """Random float64 query and dataset tables with a fixed seed."""

    def _make(query_rows=7, dataset_rows=5, width=4, seed=0):
        rng = np.random.default_rng(seed)
        query = list(rng.normal(size=(query_rows, width)))
        dataset = list(rng.normal(size=(dataset_rows, width)))
        return query, dataset

    return _make
