"""Per-participant habits: the ``behaviorPatterns`` namespace."""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from datetime import date
from typing import Any

from chat_insights.analytics import (
    MONTH_NAMES,
    caps_count,
    clamp_score,
    day_span,
    mean,
    percentage,
    safe_div,
    variance,
)
from chat_insights.errors import insufficient_data
from chat_insights.snapshot import (
    ConversationSnapshot,
    MessageRecord,
    display_names,
    real_messages,
    real_participants,
)

logger = logging.getLogger(__name__)

NORMAL = "Normal"


def time_personality(hours: list[int]) -> dict[str, Any]:
    """Classify when a participant tends to write.

    Buckets overlap at their edges (6, 10 and 22 count twice) and are
    checked in a fixed order: night (22-6) above 30 %, morning (6-10) above
    40 %, afternoon (12-17) above 50 %, evening (18-22) above 40 %.  The
    first bucket over its threshold wins; otherwise the personality is
    ``Normal``.
    """
    total = len(hours)
    night = sum(1 for h in hours if h >= 22 or h <= 6)
    morning = sum(1 for h in hours if 6 <= h <= 10)
    afternoon = sum(1 for h in hours if 12 <= h <= 17)
    evening = sum(1 for h in hours if 18 <= h <= 22)

    personality = NORMAL
    if night / total > 0.3:
        personality = "Night Owl"
    elif morning / total > 0.4:
        personality = "Early Bird"
    elif afternoon / total > 0.5:
        personality = "Afternoon Person"
    elif evening / total > 0.4:
        personality = "Evening Person"

    histogram = Counter(hours)
    peak_hour, peak_count = 0, 0
    for hour in range(24):
        if histogram[hour] > peak_count:
            peak_hour, peak_count = hour, histogram[hour]

    return {
        "personality": personality,
        "averageHour": round(mean(hours), 1),
        "peakHour": f"{peak_hour:02d}:00",
        "nightPercentage": percentage(night, total),
        "morningPercentage": percentage(morning, total),
        "afternoonPercentage": percentage(afternoon, total),
        "eveningPercentage": percentage(evening, total),
        "totalMessages": total,
    }


def energy_score(messages: list[MessageRecord]) -> dict[str, Any]:
    """Score how energetic a participant's writing is, from 0 to 100.

    ``50 + 10 * exclamations/msg + 20 * caps/char + 5 * questions/msg +
    min(20, avg length / 10)``, clamped to [0, 100].
    """
    n = len(messages)
    avg_length = mean(len(m.content) for m in messages)
    avg_exclamations = mean(m.content.count("!") for m in messages)
    avg_questions = mean(m.content.count("?") for m in messages)
    avg_caps = mean(caps_count(m.content) for m in messages)
    caps_ratio = avg_caps / avg_length if avg_length else 0.0

    score = 50.0
    score += avg_exclamations * 10
    score += caps_ratio * 20
    score += avg_questions * 5
    score += min(20.0, avg_length / 10)
    score = clamp_score(score)

    label = "Moderate Energy"
    if score > 80:
        label = "High Energy"
    elif score > 60:
        label = "Good Energy"
    elif score < 40:
        label = "Calm Energy"

    return {
        "energyScore": score,
        "energyType": label,
        "avgMessageLength": round(avg_length, 1),
        "exclamationsPerMessage": round(avg_exclamations, 2),
        "questionsPerMessage": round(avg_questions, 2),
        "capsPercentage": round(caps_ratio * 100, 1),
        "totalMessages": n,
    }


class BehaviorPatternAnalyzer:
    """Time personality, consistency, weekend habits, energy, seasons and punctuation."""

    MIN_ACTIVE_DAYS = 3
    SEASONAL_MIN_DAYS = 90

    def analyze(self, snapshot: ConversationSnapshot) -> dict[str, Any]:
        messages = real_messages(snapshot)
        participants = real_participants(snapshot, messages)
        names = display_names(participants)

        by_user: dict[str, list[MessageRecord]] = defaultdict(list)
        for message in messages:
            by_user[message.sender_id].append(message)
        active = [p.id for p in participants if by_user.get(p.id)]

        time_personalities = {
            names[uid]: time_personality([m.timestamp.hour for m in by_user[uid]])
            for uid in active
        }
        energy_levels = {}
        for uid in active:
            texts = [m for m in by_user[uid] if not m.is_media]
            if texts:
                energy_levels[names[uid]] = energy_score(texts)

        logger.debug("Behavior patterns for %d active participants", len(active))
        return {
            "behaviorPatterns": {
                "timePersonalities": time_personalities,
                "consistencyScores": self._consistency(by_user, active, names),
                "weekendVsWeekday": self._weekend(by_user, active, names),
                "energyLevels": energy_levels,
                "seasonalPatterns": self._seasonal(messages, by_user, active, names),
                "punctuationStyles": self._punctuation(by_user, active, names),
                "compatibilityScore": self.compatibility_score(time_personalities, energy_levels),
            }
        }

    def _consistency(
        self,
        by_user: dict[str, list[MessageRecord]],
        active: list[str],
        names: dict[str, str],
    ) -> dict[str, Any]:
        scores = {}
        for uid in active:
            days: list[date] = sorted({m.timestamp.date() for m in by_user[uid]})
            if len(days) < self.MIN_ACTIVE_DAYS:
                continue
            gaps = [(b - a).days for a, b in zip(days, days[1:])]
            score = round(max(0.0, 100 - variance(gaps) * 2), 1)
            if score > 80:
                label = "Very Consistent"
            elif score > 60:
                label = "Moderately Consistent"
            elif score > 40:
                label = "Somewhat Sporadic"
            else:
                label = "Very Sporadic"
            scores[names[uid]] = {
                "score": score,
                "type": label,
                "averageGap": round(mean(gaps), 1),
                "maxGap": max(gaps),
                "minGap": min(gaps),
                "activeDays": len(days),
            }
        return scores

    @staticmethod
    def _weekend(
        by_user: dict[str, list[MessageRecord]],
        active: list[str],
        names: dict[str, str],
    ) -> dict[str, Any]:
        patterns = {}
        for uid in active:
            weekend = sum(1 for m in by_user[uid] if m.timestamp.weekday() >= 5)
            weekday = len(by_user[uid]) - weekend
            share = percentage(weekend, weekend + weekday)
            label = "Balanced"
            if share > 35:
                label = "Weekend Warrior"
            elif share < 20:
                label = "Weekday Focused"
            patterns[names[uid]] = {
                "pattern": label,
                "weekendPercentage": share,
                "weekendRatio": safe_div(weekend, weekday),
                "weekdayCount": weekday,
                "weekendCount": weekend,
            }
        return patterns

    def _seasonal(
        self,
        messages: list[MessageRecord],
        by_user: dict[str, list[MessageRecord]],
        active: list[str],
        names: dict[str, str],
    ) -> dict[str, Any]:
        span = 0
        if messages:
            span = day_span(
                min(m.timestamp for m in messages), max(m.timestamp for m in messages)
            )
        if span < self.SEASONAL_MIN_DAYS:
            return insufficient_data(
                f"Not enough data for seasonal analysis (need {self.SEASONAL_MIN_DAYS}+ days)",
                timeSpanDays=span,
            )

        seasonal = {}
        for uid in active:
            months = Counter(m.timestamp.month for m in by_user[uid])
            ordered = sorted(sorted(months), key=lambda month: months[month], reverse=True)
            peak, low = ordered[0], ordered[-1]
            seasonal[names[uid]] = {
                "peakMonth": MONTH_NAMES[peak - 1],
                "peakCount": months[peak],
                "lowMonth": MONTH_NAMES[low - 1],
                "lowCount": months[low],
                "monthlyStats": {MONTH_NAMES[m - 1]: months[m] for m in sorted(months)},
            }
        return seasonal

    @staticmethod
    def _punctuation(
        by_user: dict[str, list[MessageRecord]],
        active: list[str],
        names: dict[str, str],
    ) -> dict[str, Any]:
        styles = {}
        for uid in active:
            texts = [m.content for m in by_user[uid] if not m.is_media]
            if not texts:
                continue
            n = len(texts)
            exclamations = sum(t.count("!") for t in texts) / n
            questions = sum(t.count("?") for t in texts) / n
            ellipses = sum(t.count("...") for t in texts) / n
            periods = sum(t.count(".") for t in texts) / n

            label = "Neutral"
            if exclamations > 0.5:
                label = "Enthusiastic"
            elif questions > 0.3:
                label = "Curious"
            elif ellipses > 0.2:
                label = "Thoughtful"
            elif exclamations < 0.1 and questions < 0.1:
                label = "Straightforward"

            styles[names[uid]] = {
                "personality": label,
                "exclamationsPerMessage": round(exclamations, 2),
                "questionsPerMessage": round(questions, 2),
                "ellipsisPerMessage": round(ellipses, 2),
                "periodsPerMessage": round(periods, 2),
            }
        return styles

    @staticmethod
    def compatibility_score(
        time_personalities: dict[str, Any],
        energy_levels: dict[str, Any],
    ) -> float:
        """Score how well participants' rhythms match, from 0 to 100.

        Starts at 50 and stays there with fewer than two profiled
        participants.  Adds 20 when everyone shares the same non-``Normal``
        time personality, 20 when the spread of energy scores is under 20
        and another 10 when it is under 10.
        """
        if len(time_personalities) < 2 or len(energy_levels) < 2:
            return 50.0

        score = 50.0
        kinds = {p["personality"] for p in time_personalities.values()}
        if len(kinds) == 1 and NORMAL not in kinds:
            score += 20

        energies = [e["energyScore"] for e in energy_levels.values()]
        spread = max(energies) - min(energies)
        if spread < 20:
            score += 20
        if spread < 10:
            score += 10
        return clamp_score(score)
