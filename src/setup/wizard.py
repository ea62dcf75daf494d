"""Interactive setup wizard: ask for a group id and its agents, create the group, write the config file."""

from pathlib import Path

from rich.console import Console

from src.mail.errors import ValidationError
from src.mail.service import MailService
from src.models.mail import Group
from src.setup.group_config import save_group_config
from src.utils.logger import get_logger

logger = get_logger("agent_mail.setup.wizard")

GROUP_PREFIX = "@"


def normalize_group_id(raw: str) -> str:
    """'team' and '@team' both become '@team'."""
    value = raw.strip()
    if not value:
        return ""
    return value if value.startswith(GROUP_PREFIX) else f"{GROUP_PREFIX}{value}"


def run_wizard(service: MailService, config_path: Path, console: Console) -> Group:
    """Prompt until a group id is given, then collect agent addresses until a blank line."""
    console.print("[bold]Welcome to the Agent Mail setup wizard![/bold]")
    console.print("Let's set up your initial group configuration.\n")

    group_id = ""
    while not group_id:
        group_id = normalize_group_id(console.input(f"Enter a unique Group ID ({GROUP_PREFIX}"))
        if not group_id:
            console.print("[red]Group ID cannot be empty.[/red]")

    agents: list[str] = []
    while True:
        agent = console.input("Enter an Agent Address to add (or leave blank to finish): ").strip()
        if not agent:
            break
        if agent in agents:
            console.print(f"[yellow]{agent} already added.[/yellow]")
            continue
        agents.append(agent)

    try:
        group = service.create_group(group_id, agents)
    except ValidationError:
        # Group exists already: keep it and extend the roster
        group = service.add_agents(group_id, agents) if agents else service.get_group(group_id)
    console.print(f"\n[green]Group created in database: {group.id}[/green]")

    save_group_config(config_path, group)
    console.print(f"[dim]Configuration also saved to {config_path}[/dim]")
    logger.info("wizard.completed", group_id=group.id, agents=group.agents)
    return group
