"""Who answers whom, and how: the ``relationshipDynamics`` namespace."""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from datetime import timedelta
from typing import Any

from chat_insights.analytics import (
    clamp_score,
    format_duration,
    mean,
    percentage,
    segment_conversations,
    sender_switches,
    word_pattern,
)
from chat_insights.snapshot import (
    ConversationSnapshot,
    MessageRecord,
    display_names,
    real_participants,
    sorted_real_messages,
)

logger = logging.getLogger(__name__)

HELP_WORDS = word_pattern(["how", "help", "can you", "please", "need", "problem"])
SUPPORT_WORDS = word_pattern(["sorry", "there for you", "support", "understand", "feel"])
ENCOURAGEMENT_WORDS = word_pattern(
    ["great", "awesome", "good job", "well done", "proud", "amazing"]
)
TOPIC_SHIFT_WORDS = word_pattern(
    ["anyway", "btw", "by the way", "speaking of", "oh", "also", "but"]
)
POSITIVE_WORDS = word_pattern(
    ["love", "happy", "great", "awesome", "good", "nice", "thanks", "lol", "haha"]
)
NEGATIVE_WORDS = word_pattern(
    ["sad", "bad", "terrible", "awful", "hate", "angry", "mad", "upset"]
)
SUPPORTIVE_WORDS = word_pattern(["sorry", "hope", "there for you", "understand", "care"])

# (upper bound in seconds, profile, responsiveness), checked in order.
SPEED_TIERS = (
    (5 * 60, "Lightning Fast", "Very High"),
    (30 * 60, "Quick Responder", "High"),
    (2 * 3600, "Steady Responder", "Good"),
    (12 * 3600, "Thoughtful Responder", "Moderate"),
    (None, "Takes Their Time", "Low"),
)
SILENT_TYPE = "Silent Type"


def speed_tier(avg_seconds: float) -> tuple[str, str]:
    """Return ``(profile, responsiveness)`` for an average response time."""
    for bound, profile, responsiveness in SPEED_TIERS[:-1]:
        if avg_seconds < bound:
            return profile, responsiveness
    _, profile, responsiveness = SPEED_TIERS[-1]
    return profile, responsiveness


class RelationshipAnalyzer:
    """Reciprocity, conversation balance, response speed, support, topic control, emotion.

    Conversation balance re-segments the log with its own gap so this
    analyzer does not depend on the dynamics analyzer.
    """

    RECIPROCITY_WINDOW = timedelta(hours=2)
    BALANCE_GAP = timedelta(minutes=30)
    BALANCED_RATIO = 2.0
    RESPONSE_CEILING = timedelta(hours=24)
    TOPIC_START_GAP = timedelta(hours=2)

    def __init__(self, balance_gap: timedelta | None = None) -> None:
        self.balance_gap = balance_gap or self.BALANCE_GAP

    def analyze(self, snapshot: ConversationSnapshot) -> dict[str, Any]:
        messages = sorted_real_messages(snapshot)
        participants = real_participants(snapshot, messages)
        names = display_names(participants)
        ids = [p.id for p in participants]

        reciprocity = self._reciprocity(messages, ids, names)
        balance = self._balance(messages, names)
        responses = self._response_patterns(messages, ids, names)
        logger.debug("Relationship dynamics for %d participants", len(ids))

        return {
            "relationshipDynamics": {
                "reciprocityPatterns": reciprocity,
                "conversationBalance": balance,
                "responsePatterns": responses,
                "supportPatterns": self._support(messages, ids, names),
                "topicControl": self._topic_control(messages, ids, names),
                "emotionalDynamics": self._emotions(messages, ids, names),
                "relationshipHealthScore": self.health_score(reciprocity, balance, responses),
            }
        }

    # ── Reciprocity ──

    def _reciprocity(
        self,
        messages: list[MessageRecord],
        ids: list[str],
        names: dict[str, str],
    ) -> dict[str, Any]:
        window = self.RECIPROCITY_WINDOW.total_seconds()
        edges: dict[str, Counter] = {uid: Counter() for uid in ids}
        for previous, current, gap in sender_switches(messages):
            if gap <= window:
                edges[current.sender_id][names[previous.sender_id]] += 1

        sent = Counter(m.sender_id for m in messages)
        result = {}
        for uid in ids:
            if not sent[uid]:
                continue
            responses = edges[uid]
            total = sum(responses.values())
            from_others = len(messages) - sent[uid]
            most, most_count = "None", 0
            for name, count in responses.items():
                if count > most_count:
                    most, most_count = name, count
            result[names[uid]] = {
                "responseRate": percentage(total, from_others),
                "totalResponses": total,
                "mostRespondedTo": most,
                "maxResponses": most_count,
                "responsesBreakdown": dict(responses),
            }
        return result

    # ── Balance ──

    def _balance(self, messages: list[MessageRecord], names: dict[str, str]) -> dict[str, Any]:
        balanced = one_sided = 0
        ratios = []
        dominant: Counter = Counter()
        for conversation in segment_conversations(messages, self.balance_gap):
            if len(conversation) < 2:
                continue
            counts = Counter(m.sender_id for m in conversation)
            if len(counts) < 2:
                continue
            ratio = max(counts.values()) / min(counts.values())
            ratios.append(ratio)
            if ratio <= self.BALANCED_RATIO:
                balanced += 1
            else:
                one_sided += 1
                top = max(counts.values())
                leader = next(uid for uid, c in counts.items() if c == top)
                dominant[names[leader]] += 1

        share = percentage(balanced, balanced + one_sided)
        if share < 30:
            label = "Often One-sided"
        elif share < 60:
            label = "Moderately Balanced"
        else:
            label = "Balanced Communication"
        return {
            "balanceType": label,
            "balancePercentage": share,
            "balancedConversations": balanced,
            "oneSidedConversations": one_sided,
            "averageBalanceRatio": round(mean(ratios), 2),
            "dominantSpeakers": dict(dominant),
        }

    # ── Response speed ──

    def _response_patterns(
        self,
        messages: list[MessageRecord],
        ids: list[str],
        names: dict[str, str],
    ) -> dict[str, Any]:
        ceiling = self.RESPONSE_CEILING.total_seconds()
        times: dict[str, list[float]] = defaultdict(list)
        ignored: Counter = Counter()
        for previous, current, gap in sender_switches(messages):
            if gap <= ceiling:
                times[current.sender_id].append(gap)
            else:
                ignored[previous.sender_id] += 1

        profiles = {}
        tiers: dict[str, dict[str, Any]] = {}
        for uid in ids:
            name = names[uid]
            user_times = times.get(uid)
            if not user_times:
                profiles[name] = {
                    "profile": SILENT_TYPE,
                    "avgResponseTime": "N/A",
                    "avgResponseSeconds": None,
                    "responseCount": 0,
                    "responsiveness": "Low",
                    "ignoredMessages": ignored[uid],
                }
                continue
            avg = round(mean(user_times), 1)
            profile, responsiveness = speed_tier(avg)
            profiles[name] = {
                "profile": profile,
                "avgResponseTime": format_duration(avg),
                "avgResponseSeconds": avg,
                "responseCount": len(user_times),
                "responsiveness": responsiveness,
                "fastestResponse": format_duration(min(user_times)),
                "slowestResponse": format_duration(max(user_times)),
                "ignoredMessages": ignored[uid],
            }
            tier = tiers.setdefault(
                profile, {"participants": [], "minAvgSeconds": avg, "maxAvgSeconds": avg}
            )
            tier["participants"].append(name)
            tier["minAvgSeconds"] = min(tier["minAvgSeconds"], avg)
            tier["maxAvgSeconds"] = max(tier["maxAvgSeconds"], avg)

        ordered_tiers = {label: tiers[label] for _, label, _ in SPEED_TIERS if label in tiers}
        return {"profiles": profiles, "speedTiers": ordered_tiers}

    # ── Support, topic control, emotion ──

    @staticmethod
    def _support(
        messages: list[MessageRecord],
        ids: list[str],
        names: dict[str, str],
    ) -> dict[str, Any]:
        tallies = {uid: Counter() for uid in ids}
        for message in messages:
            content = message.content
            tally = tallies[message.sender_id]
            if "?" in content:
                tally["questions"] += 1
            if HELP_WORDS.search(content):
                tally["help"] += 1
            if SUPPORT_WORDS.search(content):
                tally["support"] += 1
            if ENCOURAGEMENT_WORDS.search(content):
                tally["encouragement"] += 1

        result = {}
        for uid in ids:
            t = tallies[uid]
            questions, helped = t["questions"], t["help"]
            supported, encouraged = t["support"], t["encouragement"]
            supportive = helped + supported + encouraged

            label = "Neutral"
            if questions > supportive * 2:
                label = "Question Asker"
            elif helped > questions and helped > supported:
                label = "Problem Solver"
            elif supported > helped and supported > encouraged:
                label = "Emotional Supporter"
            elif encouraged > helped and encouraged > supported:
                label = "Cheerleader"
            elif supportive > questions:
                label = "Helper"

            result[names[uid]] = {
                "supportType": label,
                "questionsAsked": questions,
                "helpProvided": helped,
                "emotionalSupport": supported,
                "encouragement": encouraged,
                "supportScore": supportive,
            }
        return result

    def _topic_control(
        self,
        messages: list[MessageRecord],
        ids: list[str],
        names: dict[str, str],
    ) -> dict[str, Any]:
        shifts: Counter = Counter()
        starts: Counter = Counter()
        previous = None
        for message in messages:
            if TOPIC_SHIFT_WORDS.search(message.content):
                shifts[message.sender_id] += 1
            if previous is None or message.timestamp - previous.timestamp > self.TOPIC_START_GAP:
                starts[message.sender_id] += 1
            previous = message

        result = {}
        for uid in ids:
            score = shifts[uid] + starts[uid] * 2
            label = "Follower"
            if score > 10:
                label = "Topic Leader"
            elif score > 5:
                label = "Active Participant"
            elif starts[uid] > shifts[uid]:
                label = "Conversation Starter"
            result[names[uid]] = {
                "controlType": label,
                "topicShifts": shifts[uid],
                "conversationStarts": starts[uid],
                "controlScore": score,
            }
        return result

    @staticmethod
    def _emotions(
        messages: list[MessageRecord],
        ids: list[str],
        names: dict[str, str],
    ) -> dict[str, Any]:
        tallies: dict[str, Counter] = defaultdict(Counter)
        for message in messages:
            content = message.content
            tally = tallies[message.sender_id]
            tally["total"] += 1
            emotional = False
            for key, pattern in (
                ("positive", POSITIVE_WORDS),
                ("negative", NEGATIVE_WORDS),
                ("supportive", SUPPORTIVE_WORDS),
            ):
                if pattern.search(content):
                    tally[key] += 1
                    emotional = True
            if not emotional:
                tally["neutral"] += 1

        profiles = {}
        overall: Counter = Counter()
        for uid in ids:
            t = tallies.get(uid)
            if not t:
                continue
            overall.update(t)
            profiles[names[uid]] = _emotion_profile(t)
        return {"profiles": profiles, "overall": _emotion_profile(overall)}

    @staticmethod
    def health_score(
        reciprocity: dict[str, Any],
        balance: dict[str, Any],
        responses: dict[str, Any],
    ) -> float:
        """Score the relationship from 0 to 100.

        Starts at 50.  Average response rate above 50 adds 20 and above 70
        another 10; balance percentage above 60 adds 15 and above 80
        another 10; more than one participant with recorded responses
        adds 15.
        """
        score = 50.0
        if reciprocity:
            avg_rate = mean(r["responseRate"] for r in reciprocity.values())
            if avg_rate > 50:
                score += 20
            if avg_rate > 70:
                score += 10
        share = balance.get("balancePercentage", 0.0)
        if share > 60:
            score += 15
        if share > 80:
            score += 10
        responders = [p for p in responses["profiles"].values() if p["responseCount"] > 0]
        if len(responders) > 1:
            score += 15
        return clamp_score(score)


def _emotion_profile(tally: Counter) -> dict[str, Any]:
    total = tally["total"]
    positive = percentage(tally["positive"], total)
    negative = percentage(tally["negative"], total)
    supportive = percentage(tally["supportive"], total)
    neutral = percentage(tally["neutral"], total)

    label = "Neutral"
    if positive > 30:
        label = "Positive Vibes"
    elif supportive > 20:
        label = "Supportive Soul"
    elif negative > 20:
        label = "Expressive"
    elif positive > negative:
        label = "Generally Positive"

    return {
        "emotionalType": label,
        "positivePercentage": positive,
        "negativePercentage": negative,
        "supportivePercentage": supportive,
        "neutralPercentage": neutral,
        "totalEmotionalMessages": total - tally["neutral"],
    }
