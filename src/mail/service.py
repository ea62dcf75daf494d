"""Mail service: the operations behind the HTTP API and CLI.

Holds no state of its own; everything lives behind the injected Database handle.
Each write runs in one transaction. Appends to an existing thread also hold that
thread's lock so two writers cannot allocate the same message id.
"""

from datetime import datetime, timezone
from typing import Optional, Union

from src.config import BODY_PREVIEW_LENGTH, DEFAULT_INBOX_LIMIT
from src.db import Database
from src.db.repositories import group_repo, message_repo, thread_repo
from src.mail.errors import AmbiguousMessageError, NotFoundError, ValidationError
from src.mail.recipients import (
    check_membership,
    normalize_recipients,
    reply_all_recipients,
    reply_recipients,
)
from src.mail.sequencing import MessagePlan, compute_reply_subject, plan_message
from src.models.mail import (
    Group,
    Message,
    MessageLocation,
    MessagePreview,
    MessageReceipt,
    ThreadWithMessages,
)
from src.utils.logger import get_logger

logger = get_logger("agent_mail.mail.service")

Recipients = Union[str, list[str], None]


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def _require(**fields: object) -> None:
    """Raise ValidationError listing every missing or blank field."""
    missing = []
    for name, value in fields.items():
        if value is None:
            missing.append(name)
        elif isinstance(value, str) and not value.strip():
            missing.append(name)
        elif isinstance(value, list) and not value:
            missing.append(name)
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def parse_limit(raw: object, fallback: int = DEFAULT_INBOX_LIMIT) -> int:
    """Positive integer from raw, otherwise fallback."""
    try:
        parsed = int(str(raw))
    except (TypeError, ValueError):
        return fallback
    if parsed > 0 and str(parsed) == str(raw).strip():
        return parsed
    return fallback


class MailService:
    """Group, thread and message operations over a Database handle."""

    def __init__(self, db: Database):
        self.db = db

    # ===== GROUPS =====

    def ensure_group(self, group_id: str) -> Group:
        """Get or create the group (empty roster when created)."""
        _require(groupId=group_id)
        with self.db.session() as session:
            return self._ensure_group(session, group_id)

    def _ensure_group(self, session, group_id: str) -> Group:
        group = group_repo.get_group(session, group_id)
        if group is not None:
            return group
        group = Group(id=group_id, created_at=datetime.now(timezone.utc), agents=[])
        group_repo.create_group(session, group)
        logger.info("mail.group.bootstrapped", group_id=group_id)
        return group

    def create_group(self, group_id: str, agents: Optional[list[str]] = None) -> Group:
        _require(groupId=group_id)
        roster = _unique_agents(agents or [])
        with self.db.session() as session:
            if group_repo.get_group(session, group_id) is not None:
                raise ValidationError(f"Group {group_id} already exists")
            group = Group(id=group_id, created_at=datetime.now(timezone.utc), agents=roster)
            group_repo.create_group(session, group)
        logger.info("mail.group.created", group_id=group_id, agents=roster)
        return group

    def add_agents(self, group_id: str, agents: list[str]) -> Group:
        """Append agents not already on the roster, keeping order."""
        new_agents = _unique_agents(agents)
        if not new_agents:
            raise ValidationError("Missing required fields: agents")
        with self.db.session() as session:
            group = group_repo.get_group(session, group_id)
            if group is None:
                raise NotFoundError(f"Group {group_id} not found")
            roster = _unique_agents([*group.agents, *new_agents])
            group_repo.update_group_agents(session, group_id, roster)
            group.agents = roster
        logger.info("mail.group.agents_added", group_id=group_id, agents=new_agents)
        return group

    def get_group(self, group_id: str) -> Group:
        with self.db.session() as session:
            group = group_repo.get_group(session, group_id)
        if group is None:
            raise NotFoundError(f"Group {group_id} not found")
        return group

    def list_groups(self) -> list[Group]:
        with self.db.session() as session:
            return group_repo.list_groups(session)

    def resolve_group_id(self, group_id: Optional[str] = None) -> str:
        """Validate a given group id, or pick the only group when none is given."""
        if not _is_blank(group_id):
            return self.get_group(group_id).id
        groups = self.list_groups()
        if not groups:
            raise NotFoundError("No groups found. Create a group first.")
        if len(groups) > 1:
            raise ValidationError("Multiple groups exist. Provide groupId as a query parameter.")
        return groups[0].id

    def list_agents(self, group_id: Optional[str] = None) -> Group:
        return self.get_group(self.resolve_group_id(group_id))

    # ===== SEQUENCING =====

    def create_message(
        self,
        group_id: str,
        from_agent: str,
        to: Recipients,
        body: str,
        thread_id: Optional[str] = None,
        subject: Optional[str] = None,
    ) -> MessageReceipt:
        """Store a message, spawning a thread when thread_id is absent.

        The id is always computed from the persisted thread; ids from callers are never used.
        """
        _require(groupId=group_id, **{"from": from_agent}, to=to, body=body)
        recipients = normalize_recipients(to)
        return self._store(group_id, from_agent, recipients, body, thread_id=thread_id, subject=subject)

    def _store(
        self,
        group_id: str,
        from_agent: str,
        recipients: list[str],
        body: str,
        thread_id: Optional[str] = None,
        subject: Optional[str] = None,
    ) -> MessageReceipt:
        if _is_blank(thread_id):
            with self.db.session() as session:
                self._ensure_group(session, group_id)
                plan = plan_message(group_id, from_agent, recipients, body, subject=subject)
                self._persist(session, plan)
        else:
            with self.db.thread_lock(thread_id):
                with self.db.session() as session:
                    self._ensure_group(session, group_id)
                    # Fresh read under the lock; last_index drives the next id
                    thread = thread_repo.get_thread(session, thread_id)
                    if thread is None:
                        raise NotFoundError(f"Thread {thread_id} not found")
                    if thread.group_id != group_id:
                        raise ValidationError(f"Thread {thread_id} does not belong to group {group_id}")
                    plan = plan_message(group_id, from_agent, recipients, body, thread=thread, subject=subject)
                    self._persist(session, plan)

        receipt = MessageReceipt(
            message_id=plan.message.message_id,
            thread_id=plan.message.thread_id,
            new_thread_created=plan.new_thread_created,
        )
        logger.info(
            "mail.message.created",
            group_id=group_id,
            thread_id=receipt.thread_id,
            message_id=receipt.message_id,
            new_thread=receipt.new_thread_created,
        )
        return receipt

    @staticmethod
    def _persist(session, plan: MessagePlan) -> None:
        if plan.new_thread is not None:
            thread_repo.create_thread(session, plan.new_thread)
        message_repo.create_message(session, plan.message)

    def resolve_reply_target(self, thread_id: str, reply_to_message_id: Optional[str] = None) -> Message:
        """The message being replied to: the given one, or the latest in the thread."""
        _require(threadId=thread_id)
        with self.db.session() as session:
            if thread_repo.get_thread(session, thread_id) is None:
                raise NotFoundError(f"Thread {thread_id} not found")
            if not _is_blank(reply_to_message_id):
                target = message_repo.get_message(session, thread_id, reply_to_message_id)
                if target is None:
                    raise NotFoundError(f"Message {reply_to_message_id} not found in thread {thread_id}")
                return target
            messages = message_repo.list_messages_by_thread(session, thread_id)
        if not messages:
            raise NotFoundError(f"Thread {thread_id} has no messages")
        return messages[-1]

    # ===== EMAIL OPERATIONS =====

    def write_email(
        self,
        group_id: str,
        from_agent: str,
        to: Recipients,
        body: str,
        subject: Optional[str] = None,
    ) -> MessageReceipt:
        """Start a new thread. Sender and every recipient must be on the group roster."""
        _require(groupId=group_id, **{"from": from_agent}, body=body)
        recipients = normalize_recipients(to)
        from_agent = from_agent.strip()
        with self.db.session() as session:
            group = group_repo.get_group(session, group_id)
        if group is None:
            # Unknown group: empty roster until _store bootstraps it
            group = Group(id=group_id, created_at=datetime.now(timezone.utc), agents=[])
        check_membership(group, [from_agent, *recipients])
        return self._store(group_id, from_agent, recipients, body, subject=subject)

    def reply_email(
        self,
        thread_id: str,
        from_agent: str,
        body: str,
        reply_to_message_id: Optional[str] = None,
        group_id: Optional[str] = None,
    ) -> MessageReceipt:
        """Reply to the sender of the target message."""
        return self._reply(thread_id, from_agent, body, reply_to_message_id, group_id, reply_all=False)

    def reply_all_email(
        self,
        thread_id: str,
        from_agent: str,
        body: str,
        reply_to_message_id: Optional[str] = None,
        group_id: Optional[str] = None,
    ) -> MessageReceipt:
        """Reply to the sender and every recipient of the target message."""
        return self._reply(thread_id, from_agent, body, reply_to_message_id, group_id, reply_all=True)

    def _reply(
        self,
        thread_id: str,
        from_agent: str,
        body: str,
        reply_to_message_id: Optional[str],
        group_id: Optional[str],
        reply_all: bool,
    ) -> MessageReceipt:
        _require(threadId=thread_id, **{"from": from_agent}, body=body)
        from_agent = from_agent.strip()
        thread = self.get_thread(thread_id).thread
        if not _is_blank(group_id) and group_id != thread.group_id:
            raise ValidationError(f"Thread {thread_id} does not belong to group {group_id}")
        group = self.get_group(thread.group_id)
        check_membership(group, [from_agent])

        target = self.resolve_reply_target(thread_id, reply_to_message_id)
        if reply_all:
            recipients = reply_all_recipients(target, from_agent)
        else:
            recipients = reply_recipients(target, from_agent)
        subject = compute_reply_subject(thread.subject)
        logger.debug(
            "mail.reply.resolved",
            thread_id=thread_id,
            target_message_id=target.message_id,
            reply_all=reply_all,
            recipients=recipients,
        )
        return self._store(thread.group_id, from_agent, recipients, body, thread_id=thread_id, subject=subject)

    # ===== READS =====

    def get_inbox(
        self,
        group_id: Optional[str] = None,
        agent: Optional[str] = None,
        limit: int = DEFAULT_INBOX_LIMIT,
    ) -> list[Message]:
        """Newest messages of the group; with agent, only those the agent received."""
        resolved = self.resolve_group_id(group_id)
        limit = parse_limit(limit)
        with self.db.session() as session:
            if _is_blank(agent):
                return message_repo.list_messages_by_group(session, resolved, limit)
            return message_repo.list_messages_for_agent(session, agent, resolved, limit)

    def get_inbox_preview(
        self,
        group_id: Optional[str] = None,
        agent: Optional[str] = None,
        limit: int = DEFAULT_INBOX_LIMIT,
        preview_length: int = BODY_PREVIEW_LENGTH,
    ) -> list[MessagePreview]:
        messages = self.get_inbox(group_id, agent, limit)
        return [MessagePreview.from_message(m, preview_length) for m in messages]

    def find_message(
        self,
        message_id: str,
        thread_id: Optional[str] = None,
        group_id: Optional[str] = None,
    ) -> Message:
        """Fetch by composite key, or search all threads and refuse ambiguous matches."""
        _require(messageId=message_id)
        if not _is_blank(group_id):
            self.get_group(group_id)
        with self.db.session() as session:
            if not _is_blank(thread_id):
                message = message_repo.get_message(session, thread_id, message_id)
                if message is None:
                    raise NotFoundError(f"Message {message_id} not found in thread {thread_id}")
                return message
            matches = message_repo.find_messages_by_id(session, message_id, group_id or None)
        if not matches:
            raise NotFoundError(f"Message {message_id} not found")
        if len(matches) > 1:
            locations = [MessageLocation(thread_id=m.thread_id, group_id=m.group_id) for m in matches]
            logger.info("mail.lookup.ambiguous", message_id=message_id, matches=len(matches))
            raise AmbiguousMessageError(message_id, locations)
        return matches[0]

    get_message = find_message

    def get_thread(self, thread_id: str) -> ThreadWithMessages:
        _require(threadId=thread_id)
        with self.db.session() as session:
            thread = thread_repo.get_thread(session, thread_id)
            if thread is None:
                raise NotFoundError(f"Thread {thread_id} not found")
            messages = message_repo.list_messages_by_thread(session, thread_id)
        return ThreadWithMessages(thread=thread, messages=messages)

    def get_messages_by_agent(
        self,
        agent: str,
        group_id: Optional[str] = None,
        limit: int = DEFAULT_INBOX_LIMIT,
    ) -> list[Message]:
        """Messages the agent sent, newest first."""
        _require(agent=agent)
        if not _is_blank(group_id):
            self.get_group(group_id)
        with self.db.session() as session:
            return message_repo.list_messages_by_agent(session, agent, group_id or None, parse_limit(limit))

    def get_messages_for_agent(
        self,
        agent: str,
        group_id: Optional[str] = None,
        limit: int = DEFAULT_INBOX_LIMIT,
    ) -> list[Message]:
        """Messages the agent received, newest first."""
        _require(agent=agent)
        if not _is_blank(group_id):
            self.get_group(group_id)
        with self.db.session() as session:
            return message_repo.list_messages_for_agent(session, agent, group_id or None, parse_limit(limit))

    # ===== ADMIN =====

    def reset(self) -> dict[str, int]:
        """Delete every message, thread and group. Irreversible."""
        with self.db.session() as session:
            counts = {
                "messages": message_repo.delete_all_messages(session),
                "threads": thread_repo.delete_all_threads(session),
                "groups": group_repo.delete_all_groups(session),
            }
        self.db.forget_thread_locks()
        logger.warning("mail.reset", **counts)
        return counts


def _unique_agents(agents: list[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for agent in agents:
        name = (agent or "").strip()
        if name and name not in seen:
            seen.add(name)
            result.append(name)
    return result
