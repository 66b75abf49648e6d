"""LeaseQueue show command."""

from typing import Optional

import click

from leasequeue import Config, get_archived_task, get_task, init, is_leased

from .main import load_config_file, main, resolve_db_url


@main.command()
@click.argument("task_id", type=int)
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
def show(task_id: int, db_url: Optional[str], config: Optional[str]) -> None:
    """Show the state of an active or archived task."""
    config_data = load_config_file(config) if config else {}
    init(Config(database_url=resolve_db_url(db_url, config_data)))

    active = get_task(task_id)
    if active is not None:
        state = "leased" if is_leased(active) else "queued"
        click.echo(f"Task {active.id} ({active.task_class}): active, {state}")
        click.echo(f"   Priority: {active.priority}")
        click.echo(f"   Failures: {active.failure_count}")
        if active.lease_owner:
            click.echo(f"   Lease: {active.lease_owner} until {active.lease_expires}")
        return

    archived = get_archived_task(task_id)
    if archived is None:
        raise click.ClickException(f"Task {task_id} not found")

    click.echo(f"Task {archived.id} ({archived.task_class}): archived, {archived.result.value}")
    click.echo(f"   Failures: {archived.failure_count}")
    click.echo(f"   Duration: {archived.duration}us")
