"""
Configuration system for distcalc runs.

This module provides YAML-based configuration for the distance computation
application. Every section is a dataclass validated in ``__post_init__``.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .data.enums import Execution, Metric
from .data.numeric import get_numeric_type
from .exceptions import ConfigError
from .utils.logging import get_logger

logger = get_logger(__name__)

DISTRIBUTED_BACKENDS = ["none", "local", "mpi"]
OUTPUT_FORMATS = ["csv", "npy"]


def _optional_path(value: Optional[Union[str, Path]]) -> Optional[Path]:
    if value is None or value == "":
        return None
    return Path(value)


@dataclass
class DataConfig:
    """Configuration for the input tables."""

    query: Optional[Path] = None
    dataset: Optional[Path] = None
    dtype: str = "float32"

    def __post_init__(self):
        self.query = _optional_path(self.query)
        self.dataset = _optional_path(self.dataset)
        # canonical name, raises ConfigError for unsupported types
        self.dtype = get_numeric_type(self.dtype).name


@dataclass
class ComputeConfig:
    """Configuration for the distance computation."""

    metric: str = "L1"
    parallel: bool = False
    loader_execution: Optional[str] = None  # defaults to "par" when parallel, else "seq"
    n_jobs: Optional[int] = None

    def __post_init__(self):
        self.metric = Metric.from_name(self.metric).value
        if self.loader_execution is not None:
            self.loader_execution = Execution.from_name(self.loader_execution).value
        if self.n_jobs is not None and self.n_jobs < 1:
            raise ConfigError(f"n_jobs must be at least 1, got {self.n_jobs}")

    @property
    def kernel_execution(self) -> Execution:
        return Execution.PAR if self.parallel else Execution.SEQ

    @property
    def table_execution(self) -> Execution:
        if self.loader_execution is not None:
            return Execution(self.loader_execution)
        return self.kernel_execution


@dataclass
class DistributedConfig:
    """Configuration for multi-process runs."""

    backend: str = "none"  # none, local, mpi
    processes: int = 2  # used by the local backend; MPI takes the job size

    def __post_init__(self):
        self.backend = str(self.backend).lower()
        if self.backend not in DISTRIBUTED_BACKENDS:
            raise ConfigError(f"Unknown distributed backend '{self.backend}'. Available: {DISTRIBUTED_BACKENDS}")
        if self.processes < 1:
            raise ConfigError(f"Number of processes must be at least 1, got {self.processes}")

    @property
    def enabled(self) -> bool:
        return self.backend != "none"


@dataclass
class OutputConfig:
    """Configuration for the result matrix."""

    path: Optional[Path] = None  # None logs the matrix instead of writing it
    format: str = "csv"
    overwrite: bool = False

    def __post_init__(self):
        self.path = _optional_path(self.path)
        if self.format not in OUTPUT_FORMATS:
            raise ConfigError(f"Unknown output format '{self.format}'. Available: {OUTPUT_FORMATS}")


@dataclass
class AppConfig:
    """Main configuration for a distcalc run.

    Example YAML:
    ```yaml
    data:
      query: "query.csv"
      dataset: "dataset.csv"
      dtype: "float32"

    compute:
      metric: "L2"
      parallel: true
      n_jobs: 8

    distributed:
      backend: "local"
      processes: 4

    output:
      path: "distances.csv"

    debug: false
    log_timings: "time.log"
    ```
    """

    data: DataConfig = field(default_factory=DataConfig)
    compute: ComputeConfig = field(default_factory=ComputeConfig)
    distributed: DistributedConfig = field(default_factory=DistributedConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    debug: bool = False
    log_timings: Optional[Path] = None

    def __post_init__(self):
        self.log_timings = _optional_path(self.log_timings)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "AppConfig":
        """Load configuration from a YAML file.

        Args:
            path: Path to the YAML configuration file.

        Returns:
            AppConfig instance.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigError: If a value is invalid.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, "r") as f:
            config_dict = yaml.safe_load(f) or {}

        return cls.from_dict(config_dict)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "AppConfig":
        """Create configuration from a dictionary."""
        try:
            return cls(
                data=DataConfig(**config_dict.get("data", {})),
                compute=ComputeConfig(**config_dict.get("compute", {})),
                distributed=DistributedConfig(**config_dict.get("distributed", {})),
                output=OutputConfig(**config_dict.get("output", {})),
                debug=bool(config_dict.get("debug", False)),
                log_timings=config_dict.get("log_timings"),
            )
        except TypeError as e:
            # unknown keys in a section
            raise ConfigError(f"Invalid configuration: {e}") from e

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "data": {
                "query": str(self.data.query) if self.data.query else None,
                "dataset": str(self.data.dataset) if self.data.dataset else None,
                "dtype": self.data.dtype,
            },
            "compute": {
                "metric": self.compute.metric,
                "parallel": self.compute.parallel,
                "loader_execution": self.compute.loader_execution,
                "n_jobs": self.compute.n_jobs,
            },
            "distributed": {
                "backend": self.distributed.backend,
                "processes": self.distributed.processes,
            },
            "output": {
                "path": str(self.output.path) if self.output.path else None,
                "format": self.output.format,
                "overwrite": self.output.overwrite,
            },
            "debug": self.debug,
            "log_timings": str(self.log_timings) if self.log_timings else None,
        }

    def to_yaml(self, path: Union[str, Path]) -> None:
        """Save configuration to a YAML file.

        Args:
            path: Path to save the YAML file.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

        logger.info(f"Configuration saved to {path}")

    @property
    def paths_equal(self) -> bool:
        """True when query and data set point to the same file."""
        if self.data.query is None or self.data.dataset is None:
            return False
        return self.data.query.resolve() == self.data.dataset.resolve()

    def validate(self) -> List[str]:
        """Validate configuration and return list of warnings/errors.

        Returns:
            List of warning/error messages.
        """
        issues = []

        if self.data.query is None:
            issues.append("No query file configured")
        elif not self.data.query.exists():
            issues.append(f"The query file does not exist: {self.data.query}")

        if self.data.dataset is None:
            issues.append("No data set file configured")
        elif not self.data.dataset.exists():
            issues.append(f"The data set file does not exist: {self.data.dataset}")

        if self.output.path is not None and self.output.path.exists() and not self.output.overwrite:
            issues.append(f"The output file already exists: {self.output.path}")

        if self.paths_equal:
            issues.append("The query and data set paths are equal")

        if self.distributed.enabled and self.data.dtype == "str":
            issues.append("Distributed computation requires a numeric dtype")

        return issues


def create_default_config(output_path: Union[str, Path] = "config.yaml") -> AppConfig:
    """Create and save a default configuration file.

    Args:
        output_path: Path to save the configuration file.

    Returns:
        Default AppConfig instance.
    """
    config = AppConfig(
        data=DataConfig(query="query.csv", dataset="dataset.csv"),
        output=OutputConfig(path="distances.csv"),
    )
    config.to_yaml(output_path)
    return config
