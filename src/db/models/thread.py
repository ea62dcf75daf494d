"""ORM model for threads."""

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.db.base import Base, created_at_utc


class ThreadRecord(Base):
    """One row per thread. last_index is the most recently allocated message id."""

    __tablename__ = "threads"

    thread_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    group_id: Mapped[str] = mapped_column(
        String(256), ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True
    )
    subject: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[created_at_utc]
    created_by: Mapped[str] = mapped_column(String(256), nullable=False)
    last_index: Mapped[str] = mapped_column(String(32), nullable=False, default="0")
