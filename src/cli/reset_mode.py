"""Reset mode: delete every message, thread and group."""

import typer

from .shared import console, get_service, logger


def reset(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
) -> None:
    """Irreversibly delete all groups, threads and messages."""
    if not yes and not typer.confirm("This deletes all groups, threads and messages. Continue?"):
        console.print("[dim]Aborted.[/dim]")
        raise typer.Exit()
    counts = get_service().reset()
    console.print(
        f"[green]Deleted {counts['messages']} messages, {counts['threads']} threads, {counts['groups']} groups.[/green]"
    )
    logger.info("reset.ok", **counts)
