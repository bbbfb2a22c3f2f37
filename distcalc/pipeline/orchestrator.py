"""
Main application orchestrator for distcalc.

This module provides the ``DistanceApplication`` class that runs one complete
computation:
1. Argument checks (inputs exist, output does not)
2. Execution summary
3. Loading of the query and data set tables
4. Distance computation, in-process or distributed
5. Writing (or logging) the distance matrix
6. Optional task timing dump

Example:
    >>> from distcalc.config import AppConfig
    >>> from distcalc.pipeline import DistanceApplication
    >>> config = AppConfig.from_yaml("config.yaml")
    >>> matrix = DistanceApplication(config).run()
"""

from typing import Optional, Tuple

import numpy as np

from ..config import AppConfig
from ..data.loader import Table, load_tables
from ..distance.calculator import DistanceCalculator
from ..distributed.communicator import Communicator
from ..distributed.coordinator import DistributionCoordinator
from ..distributed.local import run_local
from ..exceptions import ConfigError, DistcalcError
from ..utils.logging import get_logger
from ..utils.timing import TaskTimings
from .output import OutputManager

logger = get_logger(__name__)


class DistanceApplication:
    """Run a distance computation described by an ``AppConfig``.

    Attributes:
        config: Application configuration
        timings: Task timings, recorded only when ``config.log_timings`` is set
        communicator: MPI communicator, created lazily for the ``mpi`` backend

    Examples:
        >>> app = DistanceApplication(config)
        >>> exit_code = app.execute()
    """

    def __init__(self, config: AppConfig, communicator: Optional[Communicator] = None):
        self.config = config
        self.timings = TaskTimings(enabled=config.log_timings is not None)
        self._communicator = communicator
        self.output = OutputManager(config.output)

    @property
    def communicator(self) -> Communicator:
        if self._communicator is None:
            from ..distributed.mpi import MPICommunicator

            self._communicator = MPICommunicator()
        return self._communicator

    @property
    def is_mpi(self) -> bool:
        return self.config.distributed.backend == "mpi"

    @property
    def is_coordinator(self) -> bool:
        return not self.is_mpi or self.communicator.is_coordinator

    def create_distance_calculator(self) -> DistanceCalculator:
        return DistanceCalculator.for_execution(
            self.config.compute.kernel_execution,
            timings=self.timings,
            n_jobs=self.config.compute.n_jobs,
        )

    def check_arguments(self) -> None:
        """Check input and output paths before any work is done.

        Raises:
            ConfigError: If an input is missing or the output already exists.
        """
        logger.info("Analyze parameters.")
        data = self.config.data
        if data.query is None or not data.query.exists():
            raise ConfigError(f"The query file not exists. Path: {data.query}")
        if data.dataset is None or not data.dataset.exists():
            raise ConfigError(f"The data set file not exists. Path: {data.dataset}")

        output = self.config.output
        if output.path is not None and output.path.exists() and not output.overwrite:
            raise ConfigError(f"The output file already exists. File path: {output.path}")

        if self.config.paths_equal:
            logger.warning("The query and data set paths is equal.")

        if self.config.distributed.enabled and data.dtype == "str":
            raise ConfigError("Distributed computation requires a numeric dtype")

    def show_summary(self) -> None:
        if self.config.debug:
            logger.warning("Running in debug mode.")
        distributed = self.config.distributed
        if distributed.backend == "local":
            processes = str(distributed.processes)
        elif distributed.backend == "mpi":
            processes = str(self.communicator.size)
        else:
            processes = "1"
        logger.info(
            "The execution summary:\n"
            f"The query path:       {self.config.data.query}\n"
            f"The data set path:    {self.config.data.dataset}\n"
            f"The output path:      {self.config.output.path or ''}\n"
            f"The math metric type: {self.config.compute.metric}\n"
            f"The value type:       {self.config.data.dtype}\n"
            f"Execute parallel:     {str(self.config.compute.parallel).lower()}\n"
            f"Backend / processes:  {distributed.backend} / {processes}"
        )

    def load_tables(self) -> Tuple[Table, Table]:
        logger.info("CSV files loading.")
        query, dataset = load_tables(
            self.config.data.query,
            self.config.data.dataset,
            numeric_type=self.config.data.dtype,
            execution=self.config.compute.table_execution,
            timings=self.timings,
            n_jobs=self.config.compute.n_jobs,
        )
        logger.info(f"Loaded {len(query)} query rows and {len(dataset)} data set rows")
        return query, dataset

    def compute_distances(self, query: Table, dataset: Table) -> np.ndarray:
        logger.info("Compute distances.")
        compute = self.config.compute
        backend = self.config.distributed.backend
        if backend == "local":
            return run_local(
                query,
                dataset,
                compute.metric,
                processes=self.config.distributed.processes,
                numeric_type=self.config.data.dtype,
                execution=compute.kernel_execution,
                timings=self.timings,
                log_level="DEBUG" if self.config.debug else "WARNING",
            )
        if backend == "mpi":
            coordinator = DistributionCoordinator(
                self.communicator, self.create_distance_calculator(), self.config.data.dtype, self.timings
            )
            return coordinator.run(query, dataset, compute.metric)
        return self.create_distance_calculator().compute_distance(query, dataset, compute.metric)

    def run_worker(self) -> None:
        """Take part in an MPI run as a worker rank."""
        coordinator = DistributionCoordinator(
            self.communicator, self.create_distance_calculator(), self.config.data.dtype, self.timings
        )
        coordinator.run(None, None, self.config.compute.metric)

    def run(self) -> Optional[np.ndarray]:
        """Run the complete computation.

        Returns:
            The distance matrix on the coordinating process, None on MPI workers.

        Raises:
            DistcalcError: For any invalid input, format or protocol failure.
        """
        if not self.is_coordinator:
            self.run_worker()
            return None

        self.check_arguments()
        self.show_summary()

        query, dataset = self.load_tables()
        matrix = self.compute_distances(query, dataset)
        self.output.save_distance_matrix(matrix)

        if self.config.log_timings is not None:
            self.timings.dump(self.config.log_timings)

        logger.info("The distance computing completed successfully.")
        return matrix

    def execute(self) -> int:
        """Run and translate failures into an exit code.

        Errors are logged; in debug mode the traceback is logged as well.

        Returns:
            0 on success, 1 on failure.
        """
        try:
            self.run()
        except (DistcalcError, OSError) as e:
            logger.error(str(e), exc_info=self.config.debug)
            if self._communicator is not None and self._communicator.size > 1:
                # workers would otherwise block forever on their next receive
                self._communicator.abort(1)
            return 1
        return 0
