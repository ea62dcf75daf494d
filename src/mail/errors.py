"""Error taxonomy raised by the mail core and mapped to HTTP statuses by the API layer."""

from typing import Any, Optional

from src.models.mail import MessageLocation


class MailError(Exception):
    """Base class. ``data`` is optional structured detail returned to the caller."""

    status_code = 500

    def __init__(self, message: str, data: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.data = data


class ValidationError(MailError):
    """Missing/empty field, empty recipient list, unknown agent or group mismatch."""

    status_code = 400


class NotFoundError(MailError):
    """Unknown group, thread or message."""

    status_code = 404


class AmbiguousMessageError(MailError):
    """A message id matched in more than one thread; caller must supply threadId."""

    status_code = 400

    def __init__(self, message_id: str, locations: list[MessageLocation]):
        self.message_id = message_id
        self.locations = locations
        super().__init__(
            "Multiple messages found with that messageId. Provide threadId to disambiguate.",
            data=[loc.model_dump(by_alias=True) for loc in locations],
        )

    @property
    def thread_ids(self) -> list[str]:
        return [loc.thread_id for loc in self.locations]


class InternalError(MailError):
    """Storage failure or a thread that could not be created."""

    status_code = 500
