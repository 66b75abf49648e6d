"""LeaseQueue schedule command."""

import logging
from typing import Optional

import click

from leasequeue import Config, init, schedule_task
from leasequeue.exceptions import LeaseQueueError

from .main import import_task_modules, load_config_file, main, parse_key_values, resolve_db_url

logger = logging.getLogger("leasequeue")


@main.command()
@click.argument("task_class")
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
    help="Task module to import for data validation (can be used multiple times)",
    metavar="MODULE",
)
@click.option(
    "--data",
    multiple=True,
    help="Task data as key=value (can be used multiple times)",
    metavar="KEY=VALUE",
)
@click.option(
    "--priority",
    type=int,
    default=None,
    help="Task priority (higher = leased first)",
    metavar="N",
)
@click.option(
    "--object-phid",
    default=None,
    help="Identifier of the object the task operates on",
    metavar="PHID",
)
def schedule(
    task_class: str,
    db_url: Optional[str],
    config: Optional[str],
    task_module: tuple[str, ...],
    data: tuple[str, ...],
    priority: Optional[int],
    object_phid: Optional[str],
) -> None:
    """Schedule a task for execution.

    TASK_CLASS is the name the worker was registered under.

    Examples:
        leasequeue schedule send_email --data to=user@example.com
        leasequeue schedule Reindex --task-module myapp.tasks --priority 10
    """
    config_data: dict = {}
    if config:
        config_data = load_config_file(config)
        logger.info(f"Loaded config from {config}")

    final_db_url = resolve_db_url(db_url, config_data)

    task_modules = list(task_module) or config_data.get("tasks", {}).get("modules", [])
    if task_modules:
        import_task_modules(task_modules)

    payload = parse_key_values(data)

    try:
        init(Config(database_url=final_db_url))
        task = schedule_task(task_class, payload or None, priority=priority, object_phid=object_phid)
    except LeaseQueueError as e:
        raise click.ClickException(str(e))
    except Exception as e:
        raise click.ClickException(f"Failed to schedule task: {e}")

    click.secho(f"Task scheduled: {task.id}", fg="green")
    click.echo(f"   Class: {task_class}")
    click.echo(f"   Priority: {task.priority}")
    if payload:
        click.echo(f"   Data: {payload}")
