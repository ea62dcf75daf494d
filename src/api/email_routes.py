"""Email API: write, reply, reply-all, raw message append, inbox, message and thread reads."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from src.api.envelope import get_service, ok
from src.api.models import CreateMessageBody, ReplyEmailBody, WriteEmailBody
from src.config import DEFAULT_INBOX_LIMIT
from src.mail.service import MailService, parse_limit

router = APIRouter(tags=["email"])


def _limit(limit: Optional[str], num_of_recent_emails: Optional[str]) -> int:
    raw = num_of_recent_emails if num_of_recent_emails is not None else limit
    return parse_limit(raw, DEFAULT_INBOX_LIMIT)


@router.post("/messages")
async def create_message(body: CreateMessageBody, service: MailService = Depends(get_service)) -> JSONResponse:
    """Append to threadId, or start a new thread when threadId is absent. No roster check."""
    receipt = service.create_message(
        group_id=body.group_id,
        from_agent=body.from_agent,
        to=body.to,
        body=body.body,
        thread_id=body.thread_id,
        subject=body.subject,
    )
    message = "Message created with new thread" if receipt.new_thread_created else "Message added to existing thread"
    return ok(receipt, message=message, status_code=201)


@router.post("/emails/write")
async def write_email(body: WriteEmailBody, service: MailService = Depends(get_service)) -> JSONResponse:
    receipt = service.write_email(
        group_id=body.group_id,
        from_agent=body.from_agent,
        to=body.to,
        body=body.body,
        subject=body.subject,
    )
    return ok(receipt, message="Email sent", status_code=201)


@router.post("/emails/reply")
async def reply_email(body: ReplyEmailBody, service: MailService = Depends(get_service)) -> JSONResponse:
    receipt = service.reply_email(
        thread_id=body.thread_id,
        from_agent=body.from_agent,
        body=body.body,
        reply_to_message_id=body.reply_to_message_id,
        group_id=body.group_id,
    )
    return ok(receipt, message="Reply sent", status_code=201)


@router.post("/emails/reply-all")
async def reply_all_email(body: ReplyEmailBody, service: MailService = Depends(get_service)) -> JSONResponse:
    receipt = service.reply_all_email(
        thread_id=body.thread_id,
        from_agent=body.from_agent,
        body=body.body,
        reply_to_message_id=body.reply_to_message_id,
        group_id=body.group_id,
    )
    return ok(receipt, message="Reply-all sent", status_code=201)


@router.get("/inbox")
async def get_inbox(
    group_id: Optional[str] = Query(None, alias="groupId"),
    agent: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    num_of_recent_emails: Optional[str] = Query(None, alias="numOfRecentEmails"),
    service: MailService = Depends(get_service),
) -> JSONResponse:
    """Most recent messages of the group with full bodies; ?agent= keeps only that agent's received mail."""
    return ok(service.get_inbox(group_id, agent, _limit(limit, num_of_recent_emails)))


@router.get("/inbox/short")
async def get_inbox_short(
    group_id: Optional[str] = Query(None, alias="groupId"),
    agent: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    num_of_recent_emails: Optional[str] = Query(None, alias="numOfRecentEmails"),
    service: MailService = Depends(get_service),
) -> JSONResponse:
    """Same as /inbox with bodyPreview (first 500 characters) instead of body."""
    return ok(service.get_inbox_preview(group_id, agent, _limit(limit, num_of_recent_emails)))


@router.get("/messages/by-name/{agent}")
async def get_messages_for_agent(
    agent: str,
    group_id: Optional[str] = Query(None, alias="groupId"),
    limit: Optional[str] = Query(None),
    num_of_recent_emails: Optional[str] = Query(None, alias="numOfRecentEmails"),
    service: MailService = Depends(get_service),
) -> JSONResponse:
    """Messages where the agent is a recipient."""
    return ok(service.get_messages_for_agent(agent, group_id, _limit(limit, num_of_recent_emails)))


@router.get("/messages/sent-by/{agent}")
async def get_messages_by_agent(
    agent: str,
    group_id: Optional[str] = Query(None, alias="groupId"),
    limit: Optional[str] = Query(None),
    num_of_recent_emails: Optional[str] = Query(None, alias="numOfRecentEmails"),
    service: MailService = Depends(get_service),
) -> JSONResponse:
    """Messages the agent sent."""
    return ok(service.get_messages_by_agent(agent, group_id, _limit(limit, num_of_recent_emails)))


@router.get("/messages/{message_id}")
async def get_message(
    message_id: str,
    thread_id: Optional[str] = Query(None, alias="threadId"),
    group_id: Optional[str] = Query(None, alias="groupId"),
    service: MailService = Depends(get_service),
) -> JSONResponse:
    """Message ids repeat across threads; without threadId an ambiguous id is a 400 listing the threads."""
    return ok(service.get_message(message_id, thread_id, group_id))


@router.get("/threads/{thread_id}")
async def get_thread(thread_id: str, service: MailService = Depends(get_service)) -> JSONResponse:
    return ok(service.get_thread(thread_id))
