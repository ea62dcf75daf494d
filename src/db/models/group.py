"""ORM model for groups: id, creation time and the agent roster."""

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from src.db.base import Base, created_at_utc


class GroupRecord(Base):
    """One row per group. agents is an order-preserving JSON list of addresses."""

    __tablename__ = "groups"

    id: Mapped[str] = mapped_column(String(256), primary_key=True)
    created_at: Mapped[created_at_utc]
    agents: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
