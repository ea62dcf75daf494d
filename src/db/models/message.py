"""ORM models for messages and their recipients.

The surrogate ``id`` orders rows by creation; ``(thread_id, message_id)`` is the public identity.
Recipients live in their own table so "messages for agent X" is a plain join.
"""

from sqlalchemy import ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.db.base import Base, created_at_utc


class MessageRecord(Base):
    """One row per message."""

    __tablename__ = "messages"
    __table_args__ = (UniqueConstraint("thread_id", "message_id", name="uq_messages_thread_message"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    message_id: Mapped[str] = mapped_column(String(32), nullable=False)
    thread_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("threads.thread_id", ondelete="CASCADE"), nullable=False, index=True
    )
    group_id: Mapped[str] = mapped_column(
        String(256), ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True
    )
    from_agent: Mapped[str] = mapped_column(String(256), nullable=False, index=True)
    subject: Mapped[str] = mapped_column(Text, nullable=False, default="")
    body: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[created_at_utc]

    recipients: Mapped[list["MessageRecipient"]] = relationship(
        "MessageRecipient",
        back_populates="message",
        order_by="MessageRecipient.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def to_agents(self) -> list[str]:
        return [r.agent for r in self.recipients]


class MessageRecipient(Base):
    """Recipient address of a message, kept in input order (duplicates allowed)."""

    __tablename__ = "message_recipients"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    message_pk: Mapped[int] = mapped_column(
        Integer, ForeignKey("messages.id", ondelete="CASCADE"), nullable=False, index=True
    )
    agent: Mapped[str] = mapped_column(String(256), nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    message: Mapped[MessageRecord] = relationship("MessageRecord", back_populates="recipients")
