"""Group, thread and message models.

Wire names are camelCase (``threadId``, ``from``); Python attributes are snake_case.
Dump with ``model_dump(by_alias=True)`` when serializing for the API.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class Group(BaseModel):
    """Isolated namespace of agents and the threads they own."""

    id: str
    created_at: datetime = Field(..., alias="createdAt")
    agents: list[str] = Field(default_factory=list)
    threads: list[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True}

    def has_agent(self, agent: str) -> bool:
        return agent in self.agents


class Thread(BaseModel):
    """Conversation inside a group. last_index is the most recently allocated message id."""

    thread_id: str = Field(..., alias="threadId")
    group_id: str = Field(..., alias="groupId")
    subject: str = ""
    created_at: datetime = Field(..., alias="createdAt")
    created_by: str = Field(..., alias="createdBy")
    messages: list[str] = Field(default_factory=list)
    last_index: str = Field("0", alias="lastIndex")

    model_config = {"populate_by_name": True}


class Message(BaseModel):
    """Single message; identity is (thread_id, message_id)."""

    message_id: str = Field(..., alias="messageId")
    thread_id: str = Field(..., alias="threadId")
    group_id: str = Field(..., alias="groupId")
    from_agent: str = Field(..., alias="from")
    to: list[str] = Field(default_factory=list)
    subject: str = ""
    body: str
    created_at: datetime = Field(..., alias="createdAt")

    model_config = {"populate_by_name": True}


class MessagePreview(BaseModel):
    """Inbox row with the body cut to a fixed-length prefix."""

    message_id: str = Field(..., alias="messageId")
    thread_id: str = Field(..., alias="threadId")
    group_id: str = Field(..., alias="groupId")
    from_agent: str = Field(..., alias="from")
    subject: str = ""
    body_preview: str = Field(..., alias="bodyPreview")
    created_at: datetime = Field(..., alias="createdAt")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_message(cls, message: Message, preview_length: int) -> "MessagePreview":
        # Strict prefix, no ellipsis
        return cls(
            message_id=message.message_id,
            thread_id=message.thread_id,
            group_id=message.group_id,
            from_agent=message.from_agent,
            subject=message.subject,
            body_preview=message.body[:preview_length],
            created_at=message.created_at,
        )


class MessageReceipt(BaseModel):
    """Result of storing a message."""

    message_id: str = Field(..., alias="messageId")
    thread_id: str = Field(..., alias="threadId")
    new_thread_created: bool = Field(..., alias="newThreadCreated")

    model_config = {"populate_by_name": True}


class MessageLocation(BaseModel):
    """Where a message id was found; used to report ambiguous lookups."""

    thread_id: str = Field(..., alias="threadId")
    group_id: str = Field(..., alias="groupId")

    model_config = {"populate_by_name": True}


class ThreadWithMessages(BaseModel):
    thread: Thread
    messages: list[Message]
