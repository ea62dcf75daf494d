"""Pydantic models for groups, threads and messages."""

from src.models.mail import (
    Group,
    Message,
    MessageLocation,
    MessagePreview,
    MessageReceipt,
    Thread,
    ThreadWithMessages,
)

__all__ = [
    "Group",
    "Thread",
    "Message",
    "MessagePreview",
    "MessageReceipt",
    "MessageLocation",
    "ThreadWithMessages",
]
