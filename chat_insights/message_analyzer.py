"""Message volume summary: the ``summary`` and ``messagesByUser`` namespaces."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any

from chat_insights.analytics import format_dmy, percentage
from chat_insights.snapshot import (
    ConversationSnapshot,
    MessageRecord,
    display_names,
    real_messages,
    real_participants,
)

logger = logging.getLogger(__name__)


def empty_summary() -> dict[str, Any]:
    """Return the zeroed summary used for conversations without real messages."""
    return {
        "totalMessages": 0,
        "totalUsers": 0,
        "dateRange": "N/A",
        "avgMessagesPerDay": 0.0,
        "totalMedia": 0,
        "durationDays": 0,
    }


def build_summary(
    messages: list[MessageRecord],
    total_users: int,
) -> dict[str, Any]:
    """Compute the ``summary`` namespace from already-filtered messages.

    Args:
        messages: Real (non-system) messages in any order.
        total_users: Number of real participants.

    Returns:
        Dict with totalMessages, totalUsers, dateRange ("D/M/YYYY -
        D/M/YYYY"), avgMessagesPerDay, totalMedia and durationDays
        (calendar days from first to last message, inclusive).
    """
    if not messages:
        summary = empty_summary()
        summary["totalUsers"] = total_users
        return summary

    first = min(m.timestamp for m in messages)
    last = max(m.timestamp for m in messages)
    duration = (last.date() - first.date()).days + 1
    return {
        "totalMessages": len(messages),
        "totalUsers": total_users,
        "dateRange": f"{format_dmy(first)} - {format_dmy(last)}",
        "avgMessagesPerDay": round(len(messages) / duration, 1),
        "totalMedia": sum(1 for m in messages if m.is_media),
        "durationDays": duration,
    }


class MessageAnalyzer:
    """Totals, per-participant shares, date range and media count."""

    def analyze(self, snapshot: ConversationSnapshot) -> dict[str, Any]:
        messages = real_messages(snapshot)
        participants = real_participants(snapshot, messages)
        names = display_names(participants)
        logger.debug(
            "Analyzing %d messages from %d participants", len(messages), len(participants)
        )

        counts = Counter(m.sender_id for m in messages)
        total = len(messages)
        by_user = [
            {
                "userId": p.id,
                "name": names[p.id],
                "messageCount": counts.get(p.id, 0),
                "percentage": percentage(counts.get(p.id, 0), total),
            }
            for p in participants
        ]
        by_user.sort(key=lambda u: u["messageCount"], reverse=True)

        return {
            "summary": build_summary(messages, len(participants)),
            "messagesByUser": by_user,
        }
