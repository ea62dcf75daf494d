"""Utility modules."""

from src.utils.logger import get_logger, request_context

__all__ = [
    "get_logger",
    "request_context",
]
