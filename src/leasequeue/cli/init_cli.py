"""LeaseQueue init command."""

import logging
from typing import Optional

import click
from sqlalchemy import inspect

from leasequeue.db import init_database, make_engine

from .main import load_config_file, main, resolve_db_url

logger = logging.getLogger("leasequeue")

TABLES = ("worker_activetask", "worker_archivetask", "worker_taskdata")


@main.command(name="init")
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
    "--force",
    is_flag=True,
    help="Run even if the tables already exist",
)
def init_cmd(db_url: Optional[str], config: Optional[str], force: bool) -> None:
    """Initialize the LeaseQueue database.

    Creates the task tables if they don't exist.
    """
    config_data: dict = {}
    if config:
        config_data = load_config_file(config)
        logger.info(f"Loaded config from {config}")

    final_db_url = resolve_db_url(db_url, config_data)

    try:
        existing = set(inspect(make_engine(final_db_url)).get_table_names())

        if existing.issuperset(TABLES):
            if not force:
                click.secho("The task tables already exist", fg="yellow")
                click.echo("Database is already initialized.")
                click.echo("To run anyway, use: leasequeue init --force")
                return
            logger.info("Reinitializing database (--force flag used)...")
        else:
            logger.info("Initializing LeaseQueue database...")

        init_database(final_db_url)
        click.secho("Database initialized successfully", fg="green")
        click.echo(f"   Tables: {', '.join(TABLES)}")

    except Exception as e:
        raise click.ClickException(f"Database error: {e}")
