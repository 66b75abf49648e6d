"""LeaseQueue worker command."""

import asyncio
import logging
import sys
from typing import Optional

import click

from leasequeue import Config, TaskDaemon

from .main import get_config_value, import_task_modules, load_config_file, main, resolve_db_url

logger = logging.getLogger("leasequeue")


@main.command()
@click.option(
    "--db-url",
    envvar="DATABASE_URL",
    help="Database URL",
    metavar="URL",
)
@click.option(
    "--config",
    type=click.Path(exists=True),
    help="Path to leasequeue.yaml config file",
    metavar="PATH",
)
@click.option(
    "--task-module",
    multiple=True,
    help="Task module to import (can be used multiple times)",
    metavar="MODULE",
)
@click.option(
    "--worker-id",
    default=None,
    help="Lease owner prefix (auto-generated if not provided)",
    metavar="ID",
)
@click.option(
    "--concurrency",
    type=int,
    default=None,
    help="Number of tasks to execute at once",
    metavar="N",
)
@click.option(
    "--poll-interval",
    type=float,
    default=None,
    help="Poll interval in seconds",
    metavar="SECONDS",
)
@click.option(
    "--lease-duration",
    type=int,
    default=None,
    help="Lease taken on each task, in seconds",
    metavar="SECONDS",
)
@click.option(
    "--retry-delay",
    type=int,
    default=None,
    help="Default wait before retrying a failed task, in seconds",
    metavar="SECONDS",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    default="INFO",
    help="Logging level",
)
def worker(
    db_url: Optional[str],
    config: Optional[str],
    task_module: tuple[str, ...],
    worker_id: Optional[str],
    concurrency: Optional[int],
    poll_interval: Optional[float],
    lease_duration: Optional[int],
    retry_delay: Optional[int],
    log_level: str,
) -> None:
    """Run a LeaseQueue task daemon.

    Configuration priority: CLI flags > config file > environment variables > defaults.
    """
    logging.getLogger("leasequeue").setLevel(log_level)

    config_data: dict = {}
    if config:
        config_data = load_config_file(config)
        logger.info(f"Loaded config from {config}")

    final_db_url = resolve_db_url(db_url, config_data)

    task_modules = list(task_module) or get_config_value(None, config_data, "tasks.modules", [])
    if not task_modules:
        raise click.ClickException(
            "No task modules provided. Use --task-module to specify at least one module.\n"
            "Example: leasequeue worker --db-url postgresql+psycopg://... --task-module myapp.tasks"
        )

    logger.info(f"Importing task modules: {', '.join(task_modules)}")
    import_task_modules(task_modules)

    config_kwargs: dict = {"database_url": final_db_url}
    for key, value in (
        ("worker_id", get_config_value(worker_id, config_data, "worker.id")),
        ("default_lease_seconds", get_config_value(lease_duration, config_data, "lease.duration_seconds")),
        ("default_wait_before_retry_seconds", get_config_value(retry_delay, config_data, "retry.delay_seconds")),
        ("minimum_yield_seconds", get_config_value(None, config_data, "retry.minimum_yield_seconds")),
        ("use_database_clock", get_config_value(None, config_data, "database.use_clock")),
    ):
        if value is not None:
            config_kwargs[key] = value

    try:
        cfg = Config(**config_kwargs)
    except Exception as e:
        raise click.ClickException(f"Invalid configuration: {e}")

    worker_concurrency = get_config_value(concurrency, config_data, "worker.concurrency", 1)
    worker_poll_interval = get_config_value(poll_interval, config_data, "worker.poll_interval_seconds", 1.0)

    logger.info("Starting LeaseQueue daemon...")
    logger.info(f"  Concurrency: {worker_concurrency}")
    logger.info(f"  Poll interval: {worker_poll_interval}s")
    logger.info(f"  Lease duration: {cfg.default_lease_seconds}s")
    logger.info(f"  Task modules: {', '.join(task_modules)}")

    asyncio.run(_run_daemon(cfg, worker_concurrency, worker_poll_interval))


async def _run_daemon(config: Config, concurrency: int, poll_interval: float) -> None:
    """Initialize and run the daemon."""
    try:
        daemon = TaskDaemon(config, concurrency=concurrency, poll_interval_seconds=poll_interval)
        await daemon.run()
    except Exception as e:
        logger.error(f"Daemon error: {e}", exc_info=True)
        sys.exit(1)
