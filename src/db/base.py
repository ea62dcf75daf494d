"""SQLAlchemy declarative base and shared column helpers."""

from datetime import datetime, timezone
from typing import Annotated

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Timestamp column with default now(); SQLite drops tzinfo, repositories restore it
created_at_utc = Annotated[
    datetime,
    mapped_column(DateTime(timezone=True), nullable=False, default=utcnow),
]


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from SQLite."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
