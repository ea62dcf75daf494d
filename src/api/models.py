"""Pydantic request bodies for the HTTP API.

Fields are optional here so the mail service reports every missing field in one
"Missing required fields" message instead of pydantic's per-field errors.
"""

from typing import Optional, Union

from pydantic import BaseModel, Field

_CAMEL = {"populate_by_name": True, "extra": "ignore"}


class CreateMessageBody(BaseModel):
    """Raw append: new thread when thread_id is absent, otherwise next id in that thread."""

    group_id: Optional[str] = Field(None, alias="groupId")
    from_agent: Optional[str] = Field(None, alias="from")
    to: Union[str, list[str], None] = None
    body: Optional[str] = None
    thread_id: Optional[str] = Field(None, alias="threadId")
    subject: Optional[str] = None

    model_config = _CAMEL


class WriteEmailBody(BaseModel):
    group_id: Optional[str] = Field(None, alias="groupId")
    from_agent: Optional[str] = Field(None, alias="from")
    to: Union[str, list[str], None] = None
    subject: Optional[str] = None
    body: Optional[str] = None

    model_config = _CAMEL


class ReplyEmailBody(BaseModel):
    """Reply and reply-all. reply_to_message_id defaults to the latest message in the thread."""

    group_id: Optional[str] = Field(None, alias="groupId")
    thread_id: Optional[str] = Field(None, alias="threadId")
    reply_to_message_id: Optional[str] = Field(None, alias="replyToMessageId")
    from_agent: Optional[str] = Field(None, alias="from")
    body: Optional[str] = None

    model_config = _CAMEL


class CreateGroupBody(BaseModel):
    id: Optional[str] = Field(None, alias="groupId")
    agents: list[str] = Field(default_factory=list)

    model_config = _CAMEL


class AddAgentsBody(BaseModel):
    agents: Union[str, list[str]] = Field(default_factory=list)

    model_config = _CAMEL

    def agent_list(self) -> list[str]:
        if isinstance(self.agents, str):
            return [self.agents]
        return list(self.agents)
