"""Thread/message identity: plan new messages and normalize reply subjects.

Everything here is pure. A ``MessagePlan`` says what to persist; the storage layer
persists it. Message ids are thread-local, zero-based and stringified ("0", "1", ...).
"""

import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from src.models.mail import Message, Thread

FIRST_MESSAGE_ID = "0"
NO_SUBJECT_REPLY = "Re: No subject"

_REPLY_PREFIX = re.compile(r"^re:", re.IGNORECASE)


@dataclass
class MessagePlan:
    """Message to insert, plus the thread to create first when the message starts one."""

    message: Message
    new_thread: Optional[Thread] = None

    @property
    def new_thread_created(self) -> bool:
        return self.new_thread is not None


def _now() -> datetime:
    return datetime.now(timezone.utc)


def next_message_id(last_index: str) -> str:
    """Id following last_index. Raises ValueError if last_index is not a non-negative integer."""
    value = int(last_index)
    if value < 0:
        raise ValueError(f"last_index must be non-negative, got {last_index!r}")
    return str(value + 1)


def new_thread(group_id: str, created_by: str, subject: Optional[str] = None) -> Thread:
    """Fresh thread with a UUID and last_index at the first message id."""
    return Thread(
        thread_id=str(uuid.uuid4()),
        group_id=group_id,
        subject=subject or "",
        created_at=_now(),
        created_by=created_by,
        messages=[],
        last_index=FIRST_MESSAGE_ID,
    )


def plan_message(
    group_id: str,
    from_agent: str,
    to: list[str],
    body: str,
    thread: Optional[Thread] = None,
    subject: Optional[str] = None,
) -> MessagePlan:
    """Plan a message.

    Without ``thread`` a new thread is spawned and the message gets id "0".
    With ``thread`` (the current persisted state) the message gets ``last_index + 1``.
    """
    if thread is None:
        spawned = new_thread(group_id, from_agent, subject)
        message_id = FIRST_MESSAGE_ID
        spawned.messages.append(message_id)
        thread_id = spawned.thread_id
    else:
        spawned = None
        message_id = next_message_id(thread.last_index)
        thread_id = thread.thread_id

    message = Message(
        message_id=message_id,
        thread_id=thread_id,
        group_id=group_id,
        from_agent=from_agent,
        to=list(to),
        subject=subject or "",
        body=body,
        created_at=_now(),
    )
    return MessagePlan(message=message, new_thread=spawned)


def compute_reply_subject(thread_subject: Optional[str]) -> str:
    """'Re: <subject>' unless the subject already starts with 're:' (any case)."""
    trimmed = (thread_subject or "").strip()
    if not trimmed:
        return NO_SUBJECT_REPLY
    if _REPLY_PREFIX.match(trimmed):
        return trimmed
    return f"Re: {trimmed}"
