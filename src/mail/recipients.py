"""Recipient derivation for write, reply and reply-all, plus roster membership checks."""

from typing import Iterable, Union

from src.mail.errors import ValidationError
from src.models.mail import Group, Message

NO_VALID_RECIPIENTS = "No valid recipients"


def _dedupe(addresses: Iterable[str]) -> list[str]:
    """Deduplicate preserving first-seen order."""
    seen: set[str] = set()
    unique: list[str] = []
    for addr in addresses:
        if addr not in seen:
            seen.add(addr)
            unique.append(addr)
    return unique


def normalize_recipients(to: Union[str, list[str], None]) -> list[str]:
    """Trim each entry and drop blanks. A single string is a one-element list."""
    if to is None:
        raw: list[str] = []
    elif isinstance(to, str):
        raw = [to]
    else:
        raw = list(to)
    cleaned = [str(addr).strip() for addr in raw if addr is not None]
    cleaned = [addr for addr in cleaned if addr]
    if not cleaned:
        raise ValidationError(NO_VALID_RECIPIENTS)
    return cleaned


def reply_recipients(target: Message, replier: str) -> list[str]:
    """Original sender only, unless the replier is that sender."""
    recipients = [addr for addr in [target.from_agent] if addr != replier]
    if not recipients:
        raise ValidationError(NO_VALID_RECIPIENTS)
    return recipients


def reply_all_recipients(target: Message, replier: str) -> list[str]:
    """Original sender and every original recipient, minus the replier, deduplicated."""
    candidates = [target.from_agent, *target.to]
    recipients = _dedupe(addr for addr in candidates if addr and addr != replier)
    if not recipients:
        raise ValidationError(NO_VALID_RECIPIENTS)
    return recipients


def check_membership(group: Group, addresses: Iterable[str]) -> None:
    """Raise ValidationError naming every address not on the group roster."""
    invalid = _dedupe(addr for addr in addresses if not group.has_agent(addr))
    if invalid:
        raise ValidationError(
            f"Invalid agent(s) for group {group.id}: {', '.join(invalid)}",
            data={"invalidAgents": invalid, "groupId": group.id},
        )
