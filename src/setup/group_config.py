"""Group config file: load (YAML or JSON), save (JSON) and seed groups into the database.

Accepted shapes:
    {"id": "@team", "agents": ["pm", "dev"]}                 (written by the setup wizard)
    {"groups": [{"id": "@team", "agents": ["pm", "dev"]}]}
"""

import json
from pathlib import Path
from typing import Any

import yaml

from src.mail.service import MailService
from src.models.mail import Group
from src.utils.logger import get_logger

logger = get_logger("agent_mail.setup.group_config")


def _parse_group(entry: Any, path: Path) -> dict[str, Any]:
    if not isinstance(entry, dict):
        raise ValueError(f"Group entry in {path} must be an object, got {type(entry).__name__}")
    group_id = str(entry.get("id") or "").strip()
    if not group_id:
        raise ValueError(f"Group entry in {path} is missing 'id'")
    agents = entry.get("agents") or []
    if not isinstance(agents, list):
        raise ValueError(f"Group {group_id!r} in {path}: 'agents' must be a list")
    return {"id": group_id, "agents": [str(a).strip() for a in agents if a is not None and str(a).strip()]}


def load_group_config(path: Path) -> list[dict[str, Any]]:
    """Return [{"id", "agents"}, ...] from the config file. Missing file -> []."""
    if not path.exists():
        logger.debug("group_config.file_missing", path=str(path))
        return []
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid group config {path}: {e}") from e
    if data is None:
        return []
    if not isinstance(data, dict):
        raise ValueError(f"Group config {path} must be an object, got {type(data).__name__}")
    if "groups" in data:
        entries = data["groups"] or []
        if not isinstance(entries, list):
            raise ValueError(f"Group config {path}: 'groups' must be a list")
        return [_parse_group(e, path) for e in entries]
    return [_parse_group(data, path)]


def save_group_config(path: Path, group: Group) -> None:
    """Write one group as JSON, creating the parent directory."""
    path.parent.mkdir(parents=True, exist_ok=True)
    data = group.model_dump(by_alias=True, mode="json")
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    logger.info("group_config.saved", path=str(path), group_id=group.id, agents=len(group.agents))


def seed_groups_from_config(service: MailService, path: Path) -> list[Group]:
    """Create groups from the config file and add any missing agents. Safe to run on every start."""
    seeded: list[Group] = []
    for entry in load_group_config(path):
        group = service.ensure_group(entry["id"])
        missing = [a for a in entry["agents"] if a not in group.agents]
        if missing:
            group = service.add_agents(group.id, missing)
        seeded.append(group)
    if seeded:
        logger.info("group_config.seeded", path=str(path), groups=[g.id for g in seeded])
    return seeded
