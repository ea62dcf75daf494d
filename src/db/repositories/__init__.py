"""DB repositories: sync functions over a Session that return pydantic mail models."""

from src.db.repositories import group_repo, message_repo, thread_repo

__all__ = [
    "group_repo",
    "thread_repo",
    "message_repo",
]
