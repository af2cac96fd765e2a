"""How the chat changes over time: the ``temporalInsights`` namespace.

Needs at least ``MIN_SPAN_DAYS`` whole days between the first and last
real message; shorter logs produce an insufficient-data marker instead of
the sections below.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from datetime import date, datetime, timedelta
from itertools import combinations
from typing import Any

from chat_insights.analytics import (
    clamp_score,
    day_span,
    extract_emojis,
    mean,
    pearson,
    rolling_avg,
    word_pattern,
)
from chat_insights.errors import insufficient_data
from chat_insights.snapshot import (
    ConversationSnapshot,
    MessageRecord,
    display_names,
    real_participants,
    sorted_real_messages,
)

logger = logging.getLogger(__name__)

TOPIC_KEYWORDS = {
    "work": ["work", "job", "office", "meeting", "boss", "project", "deadline"],
    "family": ["family", "mom", "dad", "sister", "brother", "parents", "kids"],
    "food": ["food", "eat", "lunch", "dinner", "restaurant", "cooking", "hungry"],
    "travel": ["travel", "trip", "vacation", "flight", "hotel", "visit"],
    "health": ["doctor", "sick", "hospital", "medicine", "health", "exercise"],
    "entertainment": ["movie", "music", "game", "watch", "show", "party"],
    "technology": ["phone", "computer", "app", "internet", "tech", "device"],
    "emotions": ["happy", "sad", "angry", "excited", "worried", "love", "hate"],
}
TOPIC_PATTERNS = {topic: word_pattern(words) for topic, words in TOPIC_KEYWORDS.items()}
SUPPORT_WORDS = word_pattern(["thanks", "sorry", "help", "love", "care", "support"])
MILESTONE_COUNTS = (100, 500, 1000, 2500, 5000, 10000)

POSITIVE, NEGATIVE, STABLE = "positive", "negative", "stable"


class TemporalInsightAnalyzer:
    """Response-time trends, activity waves, engagement by quarter, topics and milestones."""

    MIN_SPAN_DAYS = 30
    LONG_SPAN_DAYS = 365
    WEEK_SEGMENT_DAYS = 7
    MONTH_SEGMENT_DAYS = 30
    MIN_TREND_SEGMENTS = 3
    RESPONSE_CEILING = timedelta(hours=24)
    QUARTER_RESPONSE_CEILING = timedelta(hours=2)
    WAVE_WINDOW = 7
    MIN_TOPIC_MONTHS = 3

    def analyze(self, snapshot: ConversationSnapshot) -> dict[str, Any]:
        messages = sorted_real_messages(snapshot)
        span = day_span(messages[0].timestamp, messages[-1].timestamp) if messages else 0
        if span < self.MIN_SPAN_DAYS:
            logger.debug("Temporal analysis skipped: %d day span", span)
            return {
                "temporalInsights": insufficient_data(
                    f"Insufficient data for temporal analysis (only {span} days). "
                    f"Need at least {self.MIN_SPAN_DAYS} days.",
                    timeSpanDays=span,
                )
            }

        names = display_names(real_participants(snapshot, messages))
        response_evolution = self._response_evolution(messages, names, span)
        waves = self._intensity_waves(messages, names)
        relationship = self._relationship_evolution(messages, span)

        return {
            "temporalInsights": {
                "timeSpanDays": span,
                "responseTimeEvolution": response_evolution,
                "intensityWaves": waves,
                "relationshipEvolution": relationship,
                "topicEvolution": self._topic_evolution(messages),
                "patternChanges": self._pattern_changes(messages, names),
                "activityCorrelation": self._activity_correlation(messages, names),
                "evolutionTimeline": self._timeline(messages, span),
                "overallTrends": self.overall_trends(response_evolution, waves, relationship),
            }
        }

    # ── Response time evolution ──

    def _response_evolution(
        self,
        messages: list[MessageRecord],
        names: dict[str, str],
        span: int,
    ) -> dict[str, Any]:
        segment_days = self.MONTH_SEGMENT_DAYS if span > self.LONG_SPAN_DAYS else self.WEEK_SEGMENT_DAYS
        start = messages[0].timestamp
        ceiling = self.RESPONSE_CEILING.total_seconds()

        by_user: dict[str, dict[int, list[float]]] = defaultdict(lambda: defaultdict(list))
        for previous, current in zip(messages, messages[1:]):
            if current.sender_id == previous.sender_id:
                continue
            gap = (current.timestamp - previous.timestamp).total_seconds()
            if gap > ceiling:
                continue
            segment = (current.timestamp - start).days // segment_days
            by_user[current.sender_id][segment].append(gap)

        results = {}
        for uid, name in names.items():
            segments = by_user.get(uid)
            if not segments or len(segments) < self.MIN_TREND_SEGMENTS:
                continue
            ordered = sorted(segments)
            averages = [mean(segments[s]) for s in ordered]
            half = len(averages) // 2
            early, recent = mean(averages[:half]), mean(averages[half:])
            change = (recent - early) / early * 100 if early else 0.0

            trend = "Stable Response Time"
            if change < -20:
                trend = "Getting Much Faster"
            elif change < -10:
                trend = "Getting Faster"
            elif change > 20:
                trend = "Getting Much Slower"
            elif change > 10:
                trend = "Getting Slower"
            elif abs(change) < 5:
                trend = "Very Consistent"

            results[name] = {
                "trendType": trend,
                "percentChange": round(change, 1),
                "initialAvgSeconds": int(early),
                "recentAvgSeconds": int(recent),
                "dataPoints": len(averages),
                "timelineData": [
                    {"segment": s, "avgResponseTime": int(avg)}
                    for s, avg in zip(ordered, averages)
                ],
            }
        return results

    # ── Intensity waves ──

    def _intensity_waves(self, messages: list[MessageRecord], names: dict[str, str]) -> dict[str, Any]:
        """Find busy and quiet stretches in the 7-day rolling message count.

        Every calendar day between the first and last message is included,
        so quiet days count as zero.
        """
        daily: Counter = Counter(m.timestamp.date() for m in messages)
        user_daily: dict[str, Counter] = defaultdict(Counter)
        for message in messages:
            user_daily[message.sender_id][message.timestamp.date()] += 1

        first_day, last_day = messages[0].timestamp.date(), messages[-1].timestamp.date()
        days = [first_day + timedelta(days=i) for i in range((last_day - first_day).days + 1)]
        counts = [daily[d] for d in days]
        if len(counts) < self.WAVE_WINDOW:
            return insufficient_data("Not enough data for intensity wave analysis")

        rolling = rolling_avg(counts, self.WAVE_WINDOW, full_window=True)
        overall = mean(rolling)
        peaks, valleys = [], []
        for i in range(1, len(rolling) - 1):
            current, before, after = rolling[i], rolling[i - 1], rolling[i + 1]
            point_day = days[i + self.WAVE_WINDOW - 1]
            if current > before and current > after and current > overall * 1.5:
                peaks.append({"date": point_day, "intensity": round(current, 1), "type": "peak"})
            elif current < before and current < after and current < overall * 0.5:
                valleys.append({"date": point_day, "intensity": round(current, 1), "type": "valley"})

        patterns = {}
        for uid, name in names.items():
            user_counts = user_daily.get(uid, Counter())
            peak_avg = mean(user_counts[p["date"]] for p in peaks)
            valley_avg = mean(user_counts[v["date"]] for v in valleys)

            label = "Steady Contributor"
            if peak_avg > valley_avg * 3:
                label = "Wave Rider"
            elif peak_avg > valley_avg * 2:
                label = "Peak Performer"
            elif peak_avg < valley_avg * 0.5:
                label = "Quiet During Storms"
            elif abs(peak_avg - valley_avg) < 1:
                label = "Consistent Communicator"

            patterns[name] = {
                "intensityType": label,
                "avgPeakActivity": round(peak_avg, 1),
                "avgValleyActivity": round(valley_avg, 1),
                "peakToValleyRatio": round(peak_avg / valley_avg, 1) if valley_avg else None,
            }

        top_peaks = sorted(peaks, key=lambda p: p["intensity"], reverse=True)[:5]
        top_valleys = sorted(valleys, key=lambda v: v["intensity"])[:5]
        return {
            "totalPeaks": len(peaks),
            "totalValleys": len(valleys),
            "peaks": [{**p, "date": p["date"].isoformat()} for p in top_peaks],
            "valleys": [{**v, "date": v["date"].isoformat()} for v in top_valleys],
            "userIntensityPatterns": patterns,
            "avgDailyMessages": round(mean(counts), 1),
        }

    # ── Relationship evolution ──

    def _relationship_evolution(self, messages: list[MessageRecord], span: int) -> dict[str, Any]:
        """Compare engagement across four equal-duration quarters.

        Quarters are half-open ``[start, end)`` except the last, which also
        includes the final message.  Empty quarters are skipped.
        """
        first, last = messages[0].timestamp, messages[-1].timestamp
        quarter = timedelta(days=span // 4)
        quarters = []
        for index in range(4):
            start = first + quarter * index
            end = last if index == 3 else first + quarter * (index + 1)
            in_quarter = [
                m for m in messages
                if start <= m.timestamp < end or (index == 3 and m.timestamp == end)
            ]
            if in_quarter:
                quarters.append(self._quarter_metrics(index + 1, start, end, in_quarter))

        if len(quarters) < 2:
            return {
                "relationshipTrend": "Insufficient data for trend analysis",
                "quarterlyData": quarters,
            }

        initial, current = quarters[0]["engagementScore"], quarters[-1]["engagementScore"]
        change = round(current - initial, 1)
        trend = "Stable Relationship"
        if change > 15:
            trend = "Growing Closer"
        elif change > 8:
            trend = "Getting More Engaged"
        elif change < -15:
            trend = "Growing Apart"
        elif change < -8:
            trend = "Less Engaged"
        elif abs(change) < 5:
            trend = "Very Stable Bond"

        return {
            "relationshipTrend": trend,
            "engagementChange": change,
            "quarterlyData": quarters,
            "initialEngagement": initial,
            "currentEngagement": current,
        }

    def _quarter_metrics(
        self,
        number: int,
        start: datetime,
        end: datetime,
        messages: list[MessageRecord],
    ) -> dict[str, Any]:
        total = len(messages)
        questions = sum(1 for m in messages if "?" in m.content)
        support = sum(1 for m in messages if SUPPORT_WORDS.search(m.content))
        ceiling = self.QUARTER_RESPONSE_CEILING.total_seconds()
        replies = [
            gap
            for gap in (
                (b.timestamp - a.timestamp).total_seconds()
                for a, b in zip(messages, messages[1:])
                if a.sender_id != b.sender_id
            )
            if gap < ceiling
        ]
        senders = len({m.sender_id for m in messages})

        engagement = 50.0 + questions / total * 30 + support / total * 20
        if replies:
            avg_reply = mean(replies)
            if avg_reply < 300:
                engagement += 10
            if avg_reply < 60:
                engagement += 10

        return {
            "quarter": number,
            "period": f"{start.date().isoformat()} - {end.date().isoformat()}",
            "totalMessages": total,
            "avgMessagesPerUser": round(total / senders, 1),
            "engagementScore": clamp_score(engagement),
            "totalQuestions": questions,
            "totalSupport": support,
            "avgResponseTimeSeconds": int(mean(replies)),
        }

    # ── Topics and pattern changes ──

    def _topic_evolution(self, messages: list[MessageRecord]) -> dict[str, Any]:
        monthly: dict[str, Counter] = {}
        for message in messages:
            month = message.timestamp.strftime("%Y-%m")
            topics = monthly.setdefault(month, Counter())
            for topic, pattern in TOPIC_PATTERNS.items():
                if pattern.search(message.content):
                    topics[topic] += 1
                    break

        months = sorted(monthly)
        if len(months) < self.MIN_TOPIC_MONTHS:
            return insufficient_data("Not enough data for topic evolution analysis")

        half = len(months) // 2
        trends = {}
        for topic in TOPIC_KEYWORDS:
            early = sum(monthly[m][topic] for m in months[:half])
            recent = sum(monthly[m][topic] for m in months[half:])
            if not early and not recent:
                continue
            if recent > early * 2:
                trends[topic] = "Rising"
            elif early > recent * 2:
                trends[topic] = "Declining"
            else:
                trends[topic] = "Stable"

        return {
            "topicTrends": trends,
            "monthlyBreakdown": {m: dict(monthly[m]) for m in months},
            "totalMonthsAnalyzed": len(months),
        }

    def _pattern_changes(self, messages: list[MessageRecord], names: dict[str, str]) -> dict[str, Any]:
        """Compare each participant's first and last quarter of messages by count."""
        size = len(messages) // 4
        if not size:
            return {}
        early = _period_patterns(messages[:size])
        recent = _period_patterns(messages[-size:])

        changes = {}
        for uid, name in names.items():
            if uid not in early or uid not in recent:
                continue
            before, after = early[uid], recent[uid]
            notes = []
            length_change = after["avgLength"] - before["avgLength"]
            if length_change > 20:
                notes.append("Getting more verbose")
            elif length_change < -20:
                notes.append("Getting more concise")
            emoji_change = after["emojiRate"] - before["emojiRate"]
            if emoji_change > 0.5:
                notes.append("Using more emojis")
            elif emoji_change < -0.5:
                notes.append("Using fewer emojis")
            question_change = after["questionRate"] - before["questionRate"]
            if question_change > 0.2:
                notes.append("Asking more questions")
            elif question_change < -0.2:
                notes.append("Asking fewer questions")

            changes[name] = {
                "changes": notes,
                "earlyPeriod": before,
                "recentPeriod": after,
                "totalChanges": len(notes),
            }
        return changes

    # ── Correlation and timeline ──

    @staticmethod
    def _activity_correlation(messages: list[MessageRecord], names: dict[str, str]) -> dict[str, Any]:
        hourly: dict[str, list[int]] = {}
        for message in messages:
            hourly.setdefault(message.sender_id, [0] * 24)[message.timestamp.hour] += 1
        active = [uid for uid in names if uid in hourly]
        if len(active) < 2:
            return insufficient_data("Need at least 2 active participants for correlation analysis")

        correlations = {
            f"{names[a]} & {names[b]}": round(pearson(hourly[a], hourly[b]), 2)
            for a, b in combinations(active, 2)
        }
        best_pair, best = sorted(correlations.items(), key=lambda kv: kv[1], reverse=True)[0]

        label = "Independent Schedules"
        if best > 0.7:
            label = "Synchronized Schedules"
        elif best > 0.5:
            label = "Often Online Together"
        elif best > 0.3:
            label = "Sometimes Aligned"

        return {
            "correlationType": label,
            "correlations": correlations,
            "highestCorrelation": best,
            "bestSyncedPair": best_pair,
        }

    @staticmethod
    def _timeline(messages: list[MessageRecord], span: int) -> dict[str, Any]:
        first_day = messages[0].timestamp.date()
        milestones = []
        for count in MILESTONE_COUNTS:
            if count > len(messages):
                break
            reached: date = messages[count - 1].timestamp.date()
            milestones.append({
                "milestone": f"{count} Messages",
                "date": reached.isoformat(),
                "daysSinceStart": (reached - first_day).days,
                "description": f"Reached {count} total messages",
            })

        daily = Counter(m.timestamp.date() for m in messages)
        busiest_count = max(daily.values())
        busiest = min(d for d, c in daily.items() if c == busiest_count)
        milestones.append({
            "milestone": "Busiest Day",
            "date": busiest.isoformat(),
            "daysSinceStart": (busiest - first_day).days,
            "description": f"{busiest_count} messages in one day",
        })
        milestones.sort(key=lambda m: m["daysSinceStart"])

        return {
            "totalTimeSpanDays": span,
            "milestones": milestones,
            "startDate": first_day.isoformat(),
            "endDate": messages[-1].timestamp.date().isoformat(),
        }

    # ── Overall ──

    @staticmethod
    def overall_trends(
        response_evolution: dict[str, Any],
        waves: dict[str, Any],
        relationship: dict[str, Any],
    ) -> dict[str, Any]:
        """Summarize the other sections into directional trends and a score.

        Each trend is positive, negative, stable or neutral.  The score
        starts at 50 and moves +15 per positive, -15 per negative and +5 per
        stable trend, clamped to [0, 100].
        """
        trends: list[tuple[str, str | None]] = []

        if response_evolution:
            faster = sum(1 for r in response_evolution.values() if r["percentChange"] < -10)
            slower = sum(1 for r in response_evolution.values() if r["percentChange"] > 10)
            if faster > slower:
                trends.append(("Response times getting faster overall", POSITIVE))
            elif slower > faster:
                trends.append(("Response times getting slower overall", NEGATIVE))
            else:
                trends.append(("Response times remain stable", STABLE))

        trend = relationship.get("relationshipTrend")
        if trend:
            direction = None
            if trend == "Growing Closer":
                direction = POSITIVE
            elif trend == "Growing Apart":
                direction = NEGATIVE
            elif "Stable" in trend:
                direction = STABLE
            trends.append((f"Relationship: {trend}", direction))

        if "totalPeaks" in waves:
            peaks, valleys = waves["totalPeaks"], waves["totalValleys"]
            if peaks > valleys:
                trends.append(("More high-energy periods than quiet ones", None))
            elif valleys > peaks:
                trends.append(("More quiet periods than high-energy ones", None))
            else:
                trends.append(("Balanced mix of busy and quiet periods", None))

        directions = [d for _, d in trends]
        if POSITIVE in directions:
            overall = "Positive Evolution"
        elif NEGATIVE in directions:
            overall = "Concerning Changes"
        elif STABLE in directions:
            overall = "Very Stable Relationship"
        else:
            overall = "Stable Evolution"

        score = 50.0
        score += 15 * directions.count(POSITIVE)
        score -= 15 * directions.count(NEGATIVE)
        score += 5 * directions.count(STABLE)

        return {
            "overallEvolution": overall,
            "keyTrends": [text for text, _ in trends],
            "evolutionScore": clamp_score(score),
        }


def _period_patterns(messages: list[MessageRecord]) -> dict[str, dict[str, float]]:
    grouped: dict[str, list[MessageRecord]] = defaultdict(list)
    for message in messages:
        grouped[message.sender_id].append(message)
    return {
        uid: {
            "avgLength": round(mean(len(m.content) for m in msgs), 1),
            "emojiRate": round(mean(len(extract_emojis(m.content)) for m in msgs), 2),
            "questionRate": round(mean(1 if "?" in m.content else 0 for m in msgs), 2),
            "messageCount": len(msgs),
        }
        for uid, msgs in grouped.items()
    }
