"""Conversation flow: the ``conversationDynamics`` namespace.

Messages are segmented into conversations by silence.  Each conversation
has an initiator (first sender) and an ender (last sender), a length, and
for conversations of three or more messages a flow classification.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import timedelta
from statistics import median
from typing import Any

from chat_insights.analytics import (
    clamp_score,
    mean,
    percentage,
    ranked,
    segment_conversations,
)
from chat_insights.snapshot import (
    ConversationSnapshot,
    MessageRecord,
    display_names,
    real_participants,
    sorted_real_messages,
)

logger = logging.getLogger(__name__)


def flow_pattern(conversation: list[MessageRecord]) -> str:
    """Label the sender rhythm of a conversation.

    Consecutive messages from one sender form a run.  Runs of one or two
    messages are encoded ``S`` (single turn) and longer runs ``M`` (burst).
    The resulting string is labelled ``rapid-alternating`` when it
    contains five single turns in a row, ``burst-heavy`` when it contains
    three bursts in a row, ``monologue`` when it is just one or two bursts,
    and ``mixed`` otherwise.
    """
    symbols = []
    run = 0
    last_sender = None
    for message in conversation:
        if message.sender_id == last_sender:
            run += 1
            continue
        if run:
            symbols.append("M" if run > 2 else "S")
        last_sender = message.sender_id
        run = 1
    if run:
        symbols.append("M" if run > 2 else "S")

    encoded = "".join(symbols)
    if "SSSSS" in encoded:
        return "rapid-alternating"
    if "MMM" in encoded:
        return "burst-heavy"
    if encoded in ("M", "MM"):
        return "monologue"
    return "mixed"


class ConversationDynamicsAnalyzer:
    """Initiators, enders, conversation lengths, flow types and a health score."""

    CONVERSATION_GAP = timedelta(minutes=30)
    RAPID_FIRE_SECONDS = 10
    MIN_FLOW_LENGTH = 3
    BALANCED_RATIO = 3.0

    def __init__(self, conversation_gap: timedelta | None = None) -> None:
        self.conversation_gap = conversation_gap or self.CONVERSATION_GAP

    def analyze(self, snapshot: ConversationSnapshot) -> dict[str, Any]:
        messages = sorted_real_messages(snapshot)
        names = display_names(real_participants(snapshot, messages))
        conversations = segment_conversations(messages, self.conversation_gap)
        logger.debug("Segmented %d messages into %d conversations", len(messages), len(conversations))

        initiators = Counter(names[c[0].sender_id] for c in conversations)
        enders = Counter(names[c[-1].sender_id] for c in conversations)
        lengths = [len(c) for c in conversations]
        flows = self._dialog_flows(conversations)
        initiator_list = _share_list(initiators, len(conversations))

        return {
            "conversationDynamics": {
                "totalConversations": len(conversations),
                "averageConversationLength": round(mean(lengths), 1),
                "longestConversation": max(lengths, default=0),
                "shortestConversation": min(lengths, default=0),
                "medianConversationLength": median(lengths) if lengths else 0,
                "conversationInitiators": initiator_list,
                "conversationEnders": _share_list(enders, len(conversations)),
                "dialogFlowTypes": flows,
                "rapidFireStats": self._rapid_fire(messages),
                "conversationHealthScore": (
                    self._health_score(initiator_list, flows) if conversations else 0.0
                ),
            }
        }

    def classify(self, conversation: list[MessageRecord]) -> str:
        """Classify one conversation as ``rapidFire``, ``balanced`` or ``monologue``."""
        counts = Counter(m.sender_id for m in conversation)
        if len(counts) < 2:
            return "monologue"
        gaps = [
            (b.timestamp - a.timestamp).total_seconds()
            for a, b in zip(conversation, conversation[1:])
        ]
        if mean(gaps) < self.RAPID_FIRE_SECONDS:
            return "rapidFire"
        if max(counts.values()) / min(counts.values()) < self.BALANCED_RATIO:
            return "balanced"
        return "monologue"

    def _dialog_flows(self, conversations: list[list[MessageRecord]]) -> dict[str, Any]:
        types = {"rapidFire": 0, "balanced": 0, "monologue": 0}
        patterns: Counter = Counter()
        for conversation in conversations:
            if len(conversation) < self.MIN_FLOW_LENGTH:
                continue
            patterns[flow_pattern(conversation)] += 1
            types[self.classify(conversation)] += 1
        return {**types, "flowPatterns": dict(patterns)}

    def _rapid_fire(self, messages: list[MessageRecord]) -> dict[str, Any]:
        exchanges = sum(
            1
            for a, b in zip(messages, messages[1:])
            if b.sender_id != a.sender_id
            and (b.timestamp - a.timestamp).total_seconds() <= self.RAPID_FIRE_SECONDS
        )
        return {
            "rapidExchanges": exchanges,
            "totalRapidMessages": exchanges,
            "rapidFirePercentage": percentage(exchanges, len(messages)),
        }

    @staticmethod
    def _health_score(initiators: list[dict[str, Any]], flows: dict[str, Any]) -> float:
        score = 50.0
        if len(initiators) >= 2:
            top = initiators[0]["percentage"]
            if top < 70:
                score += 20
            if top < 60:
                score += 10
        if len(flows["flowPatterns"]) > 2:
            score += 20
        return clamp_score(score)


def _share_list(counts: Counter, total: int) -> list[dict[str, Any]]:
    return [
        {"name": name, "count": count, "percentage": percentage(count, total)}
        for name, count in ranked(counts)
    ]
