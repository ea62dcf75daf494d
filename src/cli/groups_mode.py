"""Group commands: list groups, add agents to a group."""

import typer

from src.mail.errors import MailError

from .shared import console, get_service, logger, print_groups


def groups() -> None:
    """List groups with their agents and thread counts."""
    print_groups(get_service().list_groups())


def add_agent(
    group_id: str = typer.Argument(..., help="Group ID, e.g. @team"),
    agents: list[str] = typer.Argument(..., help="Agent addresses to add"),
    create: bool = typer.Option(False, "--create", help="Create the group if it does not exist"),
) -> None:
    """Add agents to a group's roster."""
    log = logger.bind(command="add-agent", group_id=group_id)
    service = get_service()
    try:
        if create:
            service.ensure_group(group_id)
        group = service.add_agents(group_id, agents)
    except MailError as e:
        console.print(f"[red]{e.message}[/red]")
        log.warning("add_agent.failed", error=e.message)
        raise typer.Exit(1) from e
    console.print(f"[green]{group.id}: {', '.join(group.agents)}[/green]")
    log.info("add_agent.ok", agents=group.agents)
