"""CLI commands: one module per mode (serve, init, groups, reset)."""

from typer import Typer

from src.cli import groups_mode, init_mode, reset_mode, serve_mode

app = Typer(help="Agent Mail Sandbox: isolated email networks for agent groups")


def register_commands() -> None:
    """Register all CLI commands on the global app."""
    app.command()(serve_mode.serve)
    app.command()(init_mode.init)
    app.command()(groups_mode.groups)
    app.command(name="add-agent")(groups_mode.add_agent)
    app.command()(reset_mode.reset)


register_commands()
