"""LeaseQueue CLI main entrypoint."""

import importlib
import logging
from pathlib import Path
from typing import Optional

import click
import yaml

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("leasequeue")


def load_config_file(config_path: str) -> dict:
    """Read a leasequeue.yaml file; an empty file yields no settings."""
    path = Path(config_path)
    if not path.is_file():
        raise click.ClickException(f"Config file not found: {config_path}")

    try:
        loaded = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise click.ClickException(f"Invalid YAML in config file: {e}") from e

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise click.ClickException(f"Config file {config_path} must contain a mapping")
    return loaded


def import_task_modules(modules: list[str]) -> None:
    """Import the modules that define workers, so their registrations run."""
    for module_name in modules:
        try:
            importlib.import_module(module_name)
        except ImportError as e:
            raise click.ClickException(f"Cannot import task module '{module_name}': {e}") from e
        logger.debug(f"Registered workers from {module_name}")


def get_config_value(cli_value, config_dict: dict, config_key: str, default=None):
    """Resolve a setting: CLI flag, then the dotted `config_key` in the file, then `default`.

    Example:
        lease = get_config_value(lease_duration, config_data, "lease.duration_seconds", 7200)
    """
    if cli_value is not None:
        return cli_value

    node = config_dict
    for part in config_key.split("."):
        node = node.get(part) if isinstance(node, dict) else None
        if node is None:
            return default
    return node


def resolve_db_url(db_url: Optional[str], config_data: dict) -> str:
    final_db_url = get_config_value(db_url, config_data, "database.url")
    if not final_db_url:
        raise click.ClickException("DATABASE_URL not provided. Use --db-url flag or DATABASE_URL env var")
    return final_db_url


def parse_key_values(pairs: tuple[str, ...]) -> dict:
    """Parse key=value pairs, converting numbers and booleans."""
    values: dict = {}
    for pair in pairs:
        if "=" not in pair:
            raise click.ClickException(f"Invalid argument format: {pair}. Use key=value")
        key, value = pair.split("=", 1)

        try:
            values[key] = int(value)
        except ValueError:
            try:
                values[key] = float(value)
            except ValueError:
                if value.lower() in ("true", "false"):
                    values[key] = value.lower() == "true"
                else:
                    values[key] = value
    return values


@click.group()
@click.version_option(package_name="leasequeue")
def main() -> None:
    """LeaseQueue: lease-based task queue with retries."""
    pass


# Import commands to register them with the main group
from . import daemon_cli, init_cli, schedule_cli, show_cli  # noqa: E402, F401
