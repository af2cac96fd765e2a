"""Immutable conversation snapshot consumed by every analyzer.

A snapshot is produced upstream by whatever imported the chat log.  This
module owns the record types, the shared system-message predicate, and the
JSON contract used by the CLI and the web service.
"""

from __future__ import annotations

import enum
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable

from chat_insights.errors import SnapshotFormatError

SYSTEM_SENDER_ID = "System"

# Lower-cased fragments that mark group-management notices.
SYSTEM_PHRASES = (
    "created group",
    "added",
    "left",
    "changed the subject",
    "security code changed",
    "joined using",
    "removed ",
    "changed this group",
    "messages and calls are end-to-end encrypted",
)


class MessageKind(str, enum.Enum):
    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"
    OTHER = "other"


@dataclass(frozen=True)
class MessageRecord:
    sender_id: str
    timestamp: datetime
    content: str
    kind: MessageKind = MessageKind.TEXT

    @property
    def is_media(self) -> bool:
        return self.kind is not MessageKind.TEXT


@dataclass(frozen=True)
class ParticipantRecord:
    id: str
    display_name: str


@dataclass(frozen=True)
class ConversationSnapshot:
    """A single conversation's messages and participants.

    Messages keep their import order; analyzers that need chronology sort
    a copy themselves.
    """

    id: str
    messages: tuple[MessageRecord, ...] = ()
    participants: tuple[ParticipantRecord, ...] = ()
    title: str | None = None
    first_message_at: datetime | None = field(init=False, default=None)
    last_message_at: datetime | None = field(init=False, default=None)

    def __post_init__(self) -> None:
        object.__setattr__(self, "messages", tuple(self.messages))
        object.__setattr__(self, "participants", tuple(self.participants))
        if self.messages:
            stamps = [m.timestamp for m in self.messages]
            object.__setattr__(self, "first_message_at", min(stamps))
            object.__setattr__(self, "last_message_at", max(stamps))


def is_system_message(message: MessageRecord) -> bool:
    """Return True for system-generated traffic that analyzers must ignore.

    A message is a system message when it was sent by the synthetic
    ``System`` participant or its lower-cased content contains one of the
    group-management phrases in ``SYSTEM_PHRASES``.
    """
    if message.sender_id == SYSTEM_SENDER_ID:
        return True
    content = message.content.lower()
    return any(phrase in content for phrase in SYSTEM_PHRASES)


def is_system_participant(participant: ParticipantRecord) -> bool:
    return (
        participant.id == SYSTEM_SENDER_ID
        or participant.display_name.lower() == "system"
    )


def real_messages(snapshot: ConversationSnapshot) -> list[MessageRecord]:
    """Return non-system messages in import order."""
    return [m for m in snapshot.messages if not is_system_message(m)]


def sorted_real_messages(snapshot: ConversationSnapshot) -> list[MessageRecord]:
    """Return non-system messages sorted by timestamp (stable)."""
    return sorted(real_messages(snapshot), key=lambda m: m.timestamp)


def real_participants(
    snapshot: ConversationSnapshot,
    messages: Iterable[MessageRecord] | None = None,
) -> list[ParticipantRecord]:
    """Return the participants analyzers report on.

    Known non-system participants come first, in snapshot order.  Any
    sender of a real message who is missing from that list is appended
    with a display name taken from the snapshot (or the sender id), so
    per-participant counts always add up to the message total.

    Args:
        snapshot: The conversation snapshot.
        messages: Pre-filtered real messages, if the caller already has
            them.  Defaults to ``real_messages(snapshot)``.
    """
    if messages is None:
        messages = real_messages(snapshot)
    known = [p for p in snapshot.participants if not is_system_participant(p)]
    by_id = {p.id: p for p in snapshot.participants}
    seen = {p.id for p in known}
    for message in messages:
        if message.sender_id not in seen:
            seen.add(message.sender_id)
            known.append(by_id.get(
                message.sender_id,
                ParticipantRecord(message.sender_id, message.sender_id),
            ))
    return known


def display_names(participants: Iterable[ParticipantRecord]) -> dict[str, str]:
    """Map participant ids to the names used as document keys.

    Display names shared by more than one participant are suffixed with
    the id, e.g. ``"Sam (u2)"``, so per-participant sections never collide.
    """
    participants = list(participants)
    counts = Counter(p.display_name for p in participants)
    return {
        p.id: p.display_name if counts[p.display_name] == 1 else f"{p.display_name} ({p.id})"
        for p in participants
    }


# ---------------------------------------------------------------------------
# JSON contract
# ---------------------------------------------------------------------------

def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        ts = value
    elif isinstance(value, str):
        try:
            ts = datetime.fromisoformat(value)
        except ValueError as exc:
            raise SnapshotFormatError(f"Invalid timestamp: {value!r}") from exc
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        ts = datetime.fromtimestamp(value)
    else:
        raise SnapshotFormatError(f"Invalid timestamp: {value!r}")
    # Wall-clock time is what hour/day bucketing needs.
    return ts.replace(tzinfo=None) if ts.tzinfo is not None else ts


def _parse_message(raw: Any) -> MessageRecord:
    if not isinstance(raw, dict):
        raise SnapshotFormatError("Each message must be an object")
    sender = raw.get("senderId")
    if not isinstance(sender, str) or not sender:
        raise SnapshotFormatError("Message is missing 'senderId'")
    content = raw.get("content", "")
    if not isinstance(content, str):
        raise SnapshotFormatError("Message 'content' must be a string")
    try:
        kind = MessageKind(raw.get("kind", "text"))
    except ValueError:
        kind = MessageKind.OTHER
    return MessageRecord(sender, _parse_timestamp(raw.get("timestamp")), content, kind)


def _parse_participant(raw: Any) -> ParticipantRecord:
    if not isinstance(raw, dict) or not isinstance(raw.get("id"), str):
        raise SnapshotFormatError("Each participant must be an object with an 'id'")
    name = raw.get("displayName") or raw["id"]
    return ParticipantRecord(raw["id"], str(name))


def snapshot_from_dict(data: dict[str, Any]) -> ConversationSnapshot:
    """Build a snapshot from its JSON representation.

    Args:
        data: Dict with ``id``, optional ``title``, ``participants``
            (``id``/``displayName``) and ``messages``
            (``senderId``/``timestamp``/``content``/``kind``).  Timestamps
            are ISO-8601 strings or unix epochs.  Unknown message kinds
            map to ``other``.

    Returns:
        The parsed ``ConversationSnapshot``.

    Raises:
        SnapshotFormatError: If the payload does not follow the contract
            or participant ids are duplicated.
    """
    if not isinstance(data, dict):
        raise SnapshotFormatError("Snapshot must be a JSON object")
    conversation_id = data.get("id")
    if not isinstance(conversation_id, str) or not conversation_id:
        raise SnapshotFormatError("Snapshot is missing 'id'")
    raw_messages = data.get("messages", [])
    raw_participants = data.get("participants", [])
    if not isinstance(raw_messages, list) or not isinstance(raw_participants, list):
        raise SnapshotFormatError("'messages' and 'participants' must be lists")

    participants = [_parse_participant(p) for p in raw_participants]
    ids = [p.id for p in participants]
    if len(ids) != len(set(ids)):
        raise SnapshotFormatError("Participant ids must be unique")

    return ConversationSnapshot(
        id=conversation_id,
        title=data.get("title"),
        participants=tuple(participants),
        messages=tuple(_parse_message(m) for m in raw_messages),
    )


def snapshot_to_dict(snapshot: ConversationSnapshot) -> dict[str, Any]:
    """Inverse of ``snapshot_from_dict``."""
    return {
        "id": snapshot.id,
        "title": snapshot.title,
        "participants": [
            {"id": p.id, "displayName": p.display_name} for p in snapshot.participants
        ],
        "messages": [
            {
                "senderId": m.sender_id,
                "timestamp": m.timestamp.isoformat(),
                "content": m.content,
                "kind": m.kind.value,
            }
            for m in snapshot.messages
        ],
    }
