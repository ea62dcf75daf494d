"""Group repository: create, fetch, list, update roster, delete all."""

from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from src.db.base import as_utc
from src.db.models.group import GroupRecord
from src.db.models.thread import ThreadRecord
from src.models.mail import Group


def _to_group(session: Session, row: GroupRecord) -> Group:
    thread_ids = list(
        session.scalars(
            select(ThreadRecord.thread_id)
            .where(ThreadRecord.group_id == row.id)
            .order_by(ThreadRecord.created_at.asc())
        ).all()
    )
    return Group(
        id=row.id,
        created_at=as_utc(row.created_at),
        agents=list(row.agents or []),
        threads=thread_ids,
    )


def get_group(session: Session, group_id: str) -> Optional[Group]:
    """Return the group with its thread ids, or None."""
    row = session.get(GroupRecord, group_id)
    if row is None:
        return None
    return _to_group(session, row)


def create_group(session: Session, group: Group) -> None:
    session.add(GroupRecord(id=group.id, created_at=group.created_at, agents=list(group.agents)))
    session.flush()


def update_group_agents(session: Session, group_id: str, agents: list[str]) -> bool:
    """Replace the roster. Returns False if the group does not exist."""
    row = session.get(GroupRecord, group_id)
    if row is None:
        return False
    # New list object so the JSON column is marked dirty
    row.agents = list(agents)
    session.flush()
    return True


def list_groups(session: Session) -> list[Group]:
    rows = session.scalars(select(GroupRecord).order_by(GroupRecord.created_at.asc())).all()
    return [_to_group(session, row) for row in rows]


def delete_all_groups(session: Session) -> int:
    result = session.execute(delete(GroupRecord))
    return result.rowcount or 0
