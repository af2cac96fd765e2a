"""Per-participant profiles: the ``userAnalysis`` namespace."""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import timedelta
from typing import Any

from chat_insights.analytics import (
    extract_emojis,
    mean,
    percentage,
    sender_switches,
    whitespace_word_count,
)
from chat_insights.snapshot import (
    ConversationSnapshot,
    display_names,
    real_participants,
    sorted_real_messages,
)

logger = logging.getLogger(__name__)


class UserAnalyzer:
    """Message, word, character, media and emoji counts plus response times.

    A response is a change of sender between consecutive messages that
    happens less than ``RESPONSE_CEILING`` after the previous message; the
    gap is attributed to the participant who replied.
    """

    RESPONSE_CEILING = timedelta(hours=24)

    def __init__(self, response_ceiling: timedelta | None = None) -> None:
        self.response_ceiling = response_ceiling or self.RESPONSE_CEILING

    def analyze(self, snapshot: ConversationSnapshot) -> dict[str, Any]:
        messages = sorted_real_messages(snapshot)
        participants = real_participants(snapshot, messages)
        names = display_names(participants)
        total = len(messages)

        stats: dict[str, dict[str, Any]] = {
            p.id: {
                "messages": 0, "text": 0, "words": 0, "letters": 0,
                "media": 0, "emojis": 0, "first": None, "last": None,
            }
            for p in participants
        }
        for message in messages:
            s = stats[message.sender_id]
            s["messages"] += 1
            if s["first"] is None:
                s["first"] = message.timestamp
            s["last"] = message.timestamp
            if message.is_media:
                s["media"] += 1
                continue
            s["text"] += 1
            s["words"] += whitespace_word_count(message.content)
            s["letters"] += len(message.content)
            s["emojis"] += len(extract_emojis(message.content))

        ceiling = self.response_ceiling.total_seconds()
        response_times: dict[str, list[float]] = defaultdict(list)
        for _, current, gap in sender_switches(messages):
            if 0 <= gap < ceiling:
                response_times[current.sender_id].append(gap)

        user_data = []
        for p in participants:
            s = stats[p.id]
            times = response_times.get(p.id, [])
            user_data.append({
                "userId": p.id,
                "name": names[p.id],
                "messageCount": s["messages"],
                "percentage": percentage(s["messages"], total),
                "wordCount": s["words"],
                "letterCount": s["letters"],
                "mediaCount": s["media"],
                "emojiCount": s["emojis"],
                "avgMessageLength": round(s["letters"] / s["text"], 1) if s["text"] else 0.0,
                "avgResponseTimeSeconds": round(mean(times), 1),
                "responseCount": len(times),
                "firstMessageAt": s["first"].isoformat() if s["first"] else None,
                "lastMessageAt": s["last"].isoformat() if s["last"] else None,
            })

        by_count = sorted(user_data, key=lambda u: u["messageCount"], reverse=True)
        responders = sorted(
            (u for u in user_data if u["responseCount"] > 0),
            key=lambda u: u["avgResponseTimeSeconds"],
        )

        def _talker(u: dict[str, Any]) -> dict[str, Any]:
            return {"name": u["name"], "messageCount": u["messageCount"]}

        def _responder(u: dict[str, Any]) -> dict[str, Any]:
            return {"name": u["name"], "avgResponseTimeSeconds": u["avgResponseTimeSeconds"]}

        logger.debug("User analysis for %d participants", len(participants))
        return {
            "userAnalysis": {
                "userData": user_data,
                "mostTalkative": _talker(by_count[0]) if by_count else None,
                "leastTalkative": _talker(by_count[-1]) if len(by_count) > 1 else None,
                "fastestResponder": _responder(responders[0]) if responders else None,
                "slowestResponder": _responder(responders[-1]) if len(responders) > 1 else None,
            }
        }
