"""distcalc: brute-force distance matrices between large sets of numeric vectors."""

from ._version import __version__

# Only import version by default for fast loading
__all__ = [
    "__version__",
    "AppConfig",
    "DistanceApplication",
    "DistanceCalculator",
    "DistributionCoordinator",
    "Execution",
    "Metric",
    "load_table",
    "run_local",
    "write_table",
]


def __getattr__(name):
    """Lazy loading of heavy modules to keep imports fast."""
    if name == "AppConfig":
        from .config import AppConfig

        return AppConfig
    elif name == "DistanceApplication":
        from .pipeline import DistanceApplication

        return DistanceApplication
    elif name == "DistanceCalculator":
        from .distance import DistanceCalculator

        return DistanceCalculator
    elif name == "DistributionCoordinator":
        from .distributed import DistributionCoordinator

        return DistributionCoordinator
    elif name == "Execution":
        from .data.enums import Execution

        return Execution
    elif name == "Metric":
        from .data.enums import Metric

        return Metric
    elif name == "load_table":
        from .data.loader import load_table

        return load_table
    elif name == "run_local":
        from .distributed import run_local

        return run_local
    elif name == "write_table":
        from .data.writer import write_table

        return write_table
    else:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
