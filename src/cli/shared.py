"""Shared CLI helpers: console, logger, database/service construction, group table."""

from rich.console import Console
from rich.table import Table

from src.db import init_db
from src.mail.service import MailService
from src.models.mail import Group
from src.utils.logger import get_logger

console = Console()
logger = get_logger("agent_mail.cli")


def get_service() -> MailService:
    """Open the configured database (creating tables) and wrap it in a MailService."""
    return MailService(init_db())


def print_groups(groups: list[Group]) -> None:
    if not groups:
        console.print("[yellow]No groups configured.[/yellow]")
        return
    table = Table(title="Groups")
    table.add_column("Group ID", style="cyan")
    table.add_column("Agents", style="green")
    table.add_column("Threads", justify="right")
    table.add_column("Created", style="dim")
    for g in groups:
        table.add_row(g.id, ", ".join(g.agents) or "-", str(len(g.threads)), g.created_at.isoformat())
    console.print(table)
