"""Thread repository: create, fetch (with message ids), update last_index."""

from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from src.db.base import as_utc
from src.db.models.message import MessageRecord
from src.db.models.thread import ThreadRecord
from src.models.mail import Thread


def _to_thread(session: Session, row: ThreadRecord) -> Thread:
    message_ids = list(
        session.scalars(
            select(MessageRecord.message_id)
            .where(MessageRecord.thread_id == row.thread_id)
            .order_by(MessageRecord.id.asc())
        ).all()
    )
    return Thread(
        thread_id=row.thread_id,
        group_id=row.group_id,
        subject=row.subject or "",
        created_at=as_utc(row.created_at),
        created_by=row.created_by,
        messages=message_ids,
        last_index=row.last_index,
    )


def get_thread(session: Session, thread_id: str) -> Optional[Thread]:
    """Return the thread with its message ids in creation order, or None."""
    row = session.get(ThreadRecord, thread_id)
    if row is None:
        return None
    return _to_thread(session, row)


def create_thread(session: Session, thread: Thread) -> None:
    session.add(
        ThreadRecord(
            thread_id=thread.thread_id,
            group_id=thread.group_id,
            subject=thread.subject,
            created_at=thread.created_at,
            created_by=thread.created_by,
            last_index=thread.last_index,
        )
    )
    session.flush()


def update_thread_last_index(session: Session, thread_id: str, last_index: str) -> bool:
    """Set last_index. Returns False if the thread does not exist."""
    result = session.execute(
        update(ThreadRecord).where(ThreadRecord.thread_id == thread_id).values(last_index=last_index)
    )
    return bool(result.rowcount)


def delete_all_threads(session: Session) -> int:
    result = session.execute(delete(ThreadRecord))
    return result.rowcount or 0
