"""Serve mode: seed groups, run the setup wizard if needed, then start the HTTP API."""

import sys

import typer
import uvicorn

from src.config import API_HOST, API_PORT, GROUP_CONFIG_PATH, SKIP_WIZARD
from src.api.server import create_app
from src.setup.group_config import seed_groups_from_config
from src.setup.wizard import run_wizard

from .shared import console, get_service, logger


def serve(
    port: int = typer.Option(API_PORT, "--port", "-p", help="Port for the API server"),
    host: str = typer.Option(API_HOST, "--host", "-h", help="Bind host"),
    skip_wizard: bool = typer.Option(
        SKIP_WIZARD,
        "--skip-wizard",
        help="Do not prompt for a group when no group config file exists",
    ),
) -> None:
    """Start the mail API; on first run (no config file) walk through group setup."""
    log = logger.bind(command="serve", port=port)
    log.info("serve.start")
    service = get_service()

    if GROUP_CONFIG_PATH.exists():
        try:
            seed_groups_from_config(service, GROUP_CONFIG_PATH)
        except ValueError as e:
            console.print(f"[red]Config error: {e}[/red]")
            log.error("serve.config_error", error=str(e))
            raise typer.Exit(1) from e
        console.print(f"[dim]Configuration file found at {GROUP_CONFIG_PATH}. Wizard will not run.[/dim]")
    elif not skip_wizard and sys.stdin.isatty():
        run_wizard(service, GROUP_CONFIG_PATH, console)
    else:
        log.info("serve.wizard_skipped", config_path=str(GROUP_CONFIG_PATH))

    app = create_app(service.db)
    console.print(f"[green]Server listening on http://{host}:{port}[/green]")
    try:
        uvicorn.run(app, host=host, port=port, log_level="info")
    except KeyboardInterrupt:
        console.print("\n[dim]Shutting down...[/dim]")
    finally:
        service.db.dispose()
