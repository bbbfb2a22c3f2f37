"""
Command-line interface for distcalc.

This module provides a click-based CLI for computing distance matrices.

Usage:
    distcalc run --query q.csv --dataset d.csv              # L1, sequential, print result
    distcalc run --query q.csv --dataset d.csv -o out.csv --metric L2 --parallel
    distcalc run --config config.yaml --backend local -n 4  # 4 local processes
    mpiexec -n 4 distcalc run --config config.yaml --backend mpi
    distcalc init                                           # Create sample config file
"""

from pathlib import Path
from typing import Optional

import click

from .config import DISTRIBUTED_BACKENDS, AppConfig, create_default_config
from .data.enums import Metric
from .data.numeric import NUMERIC_TYPES
from .exceptions import ConfigError
from .utils.config import LoggingConfig
from .utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """distcalc: the distances calculator tool

    Calculates distances between big numerical vectors, on one thread, many
    threads or many processes.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    # Configure logging based on verbosity
    log_level = "DEBUG" if verbose else "INFO"
    setup_logging(LoggingConfig(level=log_level))


@cli.command()
@click.option("--query", "-q", type=click.Path(), help="CSV file containing the query vectors")
@click.option("--dataset", "-d", type=click.Path(), help="CSV file containing the data set vectors")
@click.option("--out", "-o", type=click.Path(), help="Output file (the matrix is logged when omitted)")
@click.option(
    "--metric",
    "-m",
    type=click.Choice([m.value for m in Metric], case_sensitive=False),
    help="The math metric type [default: L1]",
)
@click.option("--parallel/--sequential", default=None, help="Load and compute in parallel")
@click.option("--dtype", type=click.Choice(sorted(NUMERIC_TYPES)), help="Value type [default: float32]")
@click.option("--backend", type=click.Choice(DISTRIBUTED_BACKENDS), help="Distributed backend [default: none]")
@click.option("--processes", "-n", type=int, help="Number of local processes for the local backend")
@click.option("--n-jobs", "-j", type=int, help="Number of worker threads in parallel mode")
@click.option("--config", "-c", "config_path", type=click.Path(exists=True), help="YAML configuration file")
@click.option("--timings", type=click.Path(), help="Append task timings to this file")
@click.option("--overwrite", is_flag=True, help="Replace an existing output file")
@click.option("--debug", is_flag=True, help="Run in debug mode (log tracebacks)")
@click.pass_context
def run(
    ctx: click.Context,
    query: Optional[str],
    dataset: Optional[str],
    out: Optional[str],
    metric: Optional[str],
    parallel: Optional[bool],
    dtype: Optional[str],
    backend: Optional[str],
    processes: Optional[int],
    n_jobs: Optional[int],
    config_path: Optional[str],
    timings: Optional[str],
    overwrite: bool,
    debug: bool,
) -> None:
    """Compute the distance matrix between a query and a data set.

    Options given on the command line override the configuration file.

    Examples:
        distcalc run -q query.csv -d dataset.csv
        distcalc run -q query.csv -d dataset.csv -o distances.csv -m Hamming --parallel
        distcalc run -c config.yaml --backend local -n 4 --timings time.log
    """
    from .pipeline import DistanceApplication

    try:
        cfg = AppConfig.from_yaml(config_path) if config_path else AppConfig()
        _apply_overrides(
            cfg,
            query=query,
            dataset=dataset,
            out=out,
            metric=metric,
            parallel=parallel,
            dtype=dtype,
            backend=backend,
            processes=processes,
            n_jobs=n_jobs,
            timings=timings,
            overwrite=overwrite,
            debug=debug,
        )
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    app = DistanceApplication(cfg)
    if cfg.debug or cfg.distributed.backend == "mpi":
        level = "DEBUG" if cfg.debug or ctx.obj.get("verbose") else "INFO"
        try:
            rank = app.communicator.rank if cfg.distributed.backend == "mpi" else None
        except ConfigError as e:
            click.echo(f"Error: {e}", err=True)
            raise SystemExit(1)
        setup_logging(LoggingConfig(level=level, rank=rank))

    raise SystemExit(app.execute())


def _apply_overrides(cfg: AppConfig, **options) -> None:
    """Copy command-line options that were given onto ``cfg``, revalidating each section."""
    if options["query"]:
        cfg.data.query = Path(options["query"])
    if options["dataset"]:
        cfg.data.dataset = Path(options["dataset"])
    if options["dtype"]:
        cfg.data.dtype = options["dtype"]
    if options["out"]:
        cfg.output.path = Path(options["out"])
    if options["overwrite"]:
        cfg.output.overwrite = True
    if options["metric"]:
        cfg.compute.metric = options["metric"]
    if options["parallel"] is not None:
        cfg.compute.parallel = options["parallel"]
    if options["n_jobs"] is not None:
        cfg.compute.n_jobs = options["n_jobs"]
    if options["backend"]:
        cfg.distributed.backend = options["backend"]
    if options["processes"] is not None:
        cfg.distributed.processes = options["processes"]
    if options["timings"]:
        cfg.log_timings = Path(options["timings"])
    if options["debug"]:
        cfg.debug = True

    cfg.data.__post_init__()
    cfg.compute.__post_init__()
    cfg.distributed.__post_init__()
    cfg.output.__post_init__()


@cli.command()
@click.option("--output", "-o", default="config.yaml", help="Output file path")
def init(output: str) -> None:
    """Create a sample configuration file.

    Examples:
        distcalc init
        distcalc init --output my_config.yaml
    """
    create_default_config(output)
    click.echo(f"Created configuration file: {output}")
    click.echo("\nEdit the file to point at your query and data set, then run:")
    click.echo(f"  distcalc run --config {output}")


@cli.command("list-types")
def list_types() -> None:
    """List the supported value types and metrics."""
    click.echo("Value types:")
    for name in sorted(NUMERIC_TYPES):
        click.echo(f"  - {name}")
    click.echo("\nMetrics:")
    for metric in Metric:
        click.echo(f"  - {metric.value}")


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
