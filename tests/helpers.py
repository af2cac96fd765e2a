"""Shared test helpers for chat_insights tests.

Regular functions (not fixtures) that can be imported by any test module.
Message text avoids group-notice phrases ("added", "left", ...) so nothing
is filtered as a system message by accident.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from chat_insights.snapshot import (
    ConversationSnapshot,
    MessageKind,
    MessageRecord,
    ParticipantRecord,
)

BASE = datetime(2024, 1, 1, 9, 0, 0)  # a Monday

NAMES = {"a": "Alice", "b": "Bob", "c": "Cara", "d": "Dan"}


def at(days: float = 0, hours: float = 0, minutes: float = 0, seconds: float = 0) -> datetime:
    """Return a timestamp offset from ``BASE``."""
    return BASE + timedelta(days=days, hours=hours, minutes=minutes, seconds=seconds)


def msg(
    sender: str,
    when: datetime,
    content: str = "hello there",
    kind: MessageKind = MessageKind.TEXT,
) -> MessageRecord:
    return MessageRecord(sender, when, content, kind)


def make_snapshot(
    messages: list[MessageRecord],
    participants: list[str] | None = None,
    conversation_id: str = "chat-1",
) -> ConversationSnapshot:
    """Build a snapshot whose participants default to the senders, in order of appearance.

    Args:
        messages: Message records, in import order.
        participants: Participant ids; display names come from ``NAMES``.
        conversation_id: Snapshot id.
    """
    if participants is None:
        participants = list(dict.fromkeys(m.sender_id for m in messages))
    return ConversationSnapshot(
        id=conversation_id,
        messages=tuple(messages),
        participants=tuple(ParticipantRecord(p, NAMES.get(p, p)) for p in participants),
    )


def alternating(
    senders: list[str],
    count: int,
    start: datetime = BASE,
    step: timedelta = timedelta(minutes=1),
    content: str = "sounds good",
) -> list[MessageRecord]:
    """*count* messages cycling through *senders*, *step* apart."""
    return [
        msg(senders[i % len(senders)], start + step * i, content)
        for i in range(count)
    ]


def daily_messages(
    days: int,
    senders: tuple[str, ...] = ("a", "b"),
    per_day: int = 2,
    start: datetime = BASE,
) -> list[MessageRecord]:
    """One short exchange per day for *days* consecutive days."""
    messages = []
    for day in range(days):
        for i in range(per_day):
            messages.append(msg(
                senders[i % len(senders)],
                start + timedelta(days=day, minutes=2 * i),
                f"day {day} note {i}",
            ))
    return messages


def snapshot_payload(conversation_id: str = "chat-1") -> dict:
    """A JSON-ready snapshot with two participants and a short exchange."""
    return {
        "id": conversation_id,
        "title": "Weekend plans",
        "participants": [
            {"id": "a", "displayName": "Alice"},
            {"id": "b", "displayName": "Bob"},
        ],
        "messages": [
            {"senderId": "a", "timestamp": "2024-01-01T09:00:00", "content": "Morning! Coffee?"},
            {"senderId": "b", "timestamp": "2024-01-01T09:02:00", "content": "Yes please 😊"},
            {"senderId": "a", "timestamp": "2024-01-01T09:03:00", "content": "See you at 10"},
            {"senderId": "b", "timestamp": "2024-01-01T09:05:00", "content": "photo.jpg", "kind": "image"},
        ],
    }
