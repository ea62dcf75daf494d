"""Re-export all ORM models so Base.metadata has all tables."""

from src.db.models.group import GroupRecord
from src.db.models.message import MessageRecipient, MessageRecord
from src.db.models.thread import ThreadRecord

__all__ = [
    "GroupRecord",
    "ThreadRecord",
    "MessageRecord",
    "MessageRecipient",
]
