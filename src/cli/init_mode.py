"""Init mode: run the group setup wizard on demand."""

from pathlib import Path

import typer

from src.config import GROUP_CONFIG_PATH
from src.setup.wizard import run_wizard

from .shared import console, get_service, logger


def init(
    config_path: Path = typer.Option(GROUP_CONFIG_PATH, "--config", "-c", help="Where to write the group config"),
) -> None:
    """Create a group interactively and save it to the group config file."""
    log = logger.bind(command="init", config_path=str(config_path))
    log.info("init.start")
    run_wizard(get_service(), config_path, console)
