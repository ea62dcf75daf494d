"""Message repository: insert (advancing the thread's last_index), fetch by composite key, list/search."""

from typing import Optional

from sqlalchemy import Select, delete, select
from sqlalchemy.orm import Session

from src.db.base import as_utc
from src.db.models.message import MessageRecipient, MessageRecord
from src.db.repositories.thread_repo import update_thread_last_index
from src.models.mail import Message


def _to_message(row: MessageRecord) -> Message:
    return Message(
        message_id=row.message_id,
        thread_id=row.thread_id,
        group_id=row.group_id,
        from_agent=row.from_agent,
        to=row.to_agents,
        subject=row.subject or "",
        body=row.body,
        created_at=as_utc(row.created_at),
    )


def _newest_first(q: Select, limit: Optional[int]) -> Select:
    q = q.order_by(MessageRecord.id.desc())
    if limit is not None and limit > 0:
        q = q.limit(limit)
    return q


def create_message(session: Session, message: Message) -> None:
    """Insert the message and its recipients, then set the thread's last_index to its id."""
    row = MessageRecord(
        message_id=message.message_id,
        thread_id=message.thread_id,
        group_id=message.group_id,
        from_agent=message.from_agent,
        subject=message.subject or "",
        body=message.body,
        created_at=message.created_at,
        recipients=[MessageRecipient(agent=agent, position=i) for i, agent in enumerate(message.to)],
    )
    session.add(row)
    session.flush()
    update_thread_last_index(session, message.thread_id, message.message_id)


def get_message(session: Session, thread_id: str, message_id: str) -> Optional[Message]:
    row = session.scalars(
        select(MessageRecord)
        .where(MessageRecord.thread_id == thread_id)
        .where(MessageRecord.message_id == message_id)
    ).first()
    if row is None:
        return None
    return _to_message(row)


def list_messages_by_thread(session: Session, thread_id: str) -> list[Message]:
    """Messages of a thread in creation order."""
    rows = session.scalars(
        select(MessageRecord).where(MessageRecord.thread_id == thread_id).order_by(MessageRecord.id.asc())
    ).all()
    return [_to_message(row) for row in rows]


def list_messages_by_group(session: Session, group_id: str, limit: Optional[int] = None) -> list[Message]:
    """Messages of a group, newest first, capped at limit when limit > 0."""
    q = _newest_first(select(MessageRecord).where(MessageRecord.group_id == group_id), limit)
    return [_to_message(row) for row in session.scalars(q).all()]


def find_messages_by_id(session: Session, message_id: str, group_id: Optional[str] = None) -> list[Message]:
    """Every message carrying this id across threads (optionally within one group), newest first."""
    q = select(MessageRecord).where(MessageRecord.message_id == message_id)
    if group_id:
        q = q.where(MessageRecord.group_id == group_id)
    q = _newest_first(q, None)
    return [_to_message(row) for row in session.scalars(q).all()]


def list_messages_for_agent(
    session: Session,
    agent: str,
    group_id: Optional[str] = None,
    limit: Optional[int] = None,
) -> list[Message]:
    """Messages where agent is among the recipients, newest first."""
    received = select(MessageRecipient.message_pk).where(MessageRecipient.agent == agent)
    q = select(MessageRecord).where(MessageRecord.id.in_(received))
    if group_id:
        q = q.where(MessageRecord.group_id == group_id)
    q = _newest_first(q, limit)
    return [_to_message(row) for row in session.scalars(q).all()]


def list_messages_by_agent(
    session: Session,
    agent: str,
    group_id: Optional[str] = None,
    limit: Optional[int] = None,
) -> list[Message]:
    """Messages sent by agent, newest first."""
    q = select(MessageRecord).where(MessageRecord.from_agent == agent)
    if group_id:
        q = q.where(MessageRecord.group_id == group_id)
    q = _newest_first(q, limit)
    return [_to_message(row) for row in session.scalars(q).all()]


def delete_all_messages(session: Session) -> int:
    session.execute(delete(MessageRecipient))
    result = session.execute(delete(MessageRecord))
    return result.rowcount or 0
