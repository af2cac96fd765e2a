"""Temporal distributions: the ``timeAnalysis`` namespace.

The analyzer is a fold: ``start`` creates a tally, ``feed`` folds a batch of
messages into it and ``finish`` renders the namespace.  Feeding the same
messages in one batch or in many yields the same document.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Iterable

from chat_insights.analytics import DAY_NAMES, first_max
from chat_insights.snapshot import ConversationSnapshot, MessageRecord, real_messages

logger = logging.getLogger(__name__)

HOUR_KEYS = tuple(f"{h:02d}" for h in range(24))


@dataclass
class TimeTally:
    hours: Counter = field(default_factory=Counter)
    weekdays: Counter = field(default_factory=Counter)
    month_days: Counter = field(default_factory=Counter)
    months: Counter = field(default_factory=Counter)
    days: Counter = field(default_factory=Counter)
    total: int = 0
    first: datetime | None = None
    last: datetime | None = None


class TimeAnalyzer:
    """Hour/weekday/day-of-month histograms, busiest days and recent activity."""

    TOP_DAYS = 10
    RECENT_DAYS = 14

    def start(self) -> TimeTally:
        return TimeTally()

    def feed(self, tally: TimeTally, messages: Iterable[MessageRecord]) -> None:
        """Fold already-filtered real messages into *tally*."""
        for message in messages:
            ts = message.timestamp
            tally.hours[f"{ts.hour:02d}"] += 1
            tally.weekdays[DAY_NAMES[ts.weekday()]] += 1
            tally.month_days[str(ts.day)] += 1
            tally.months[f"{ts.year}-{ts.month:02d}"] += 1
            tally.days[ts.date().isoformat()] += 1
            tally.total += 1
            if tally.first is None or ts < tally.first:
                tally.first = ts
            if tally.last is None or ts > tally.last:
                tally.last = ts

    def finish(self, tally: TimeTally) -> dict[str, Any]:
        day, day_count = first_max(DAY_NAMES, tally.weekdays)
        hour, hour_count = first_max(HOUR_KEYS, tally.hours)

        top_days = sorted(tally.days.items(), key=lambda kv: (-kv[1], kv[0]))
        recent: list[dict[str, Any]] = []
        if tally.last is not None:
            end = tally.last.date()
            for offset in range(self.RECENT_DAYS - 1, -1, -1):
                key = (end - timedelta(days=offset)).isoformat()
                recent.append({"date": key, "count": tally.days.get(key, 0)})

        return {
            "timeAnalysis": {
                "totalMessages": tally.total,
                "hourOfDay": {h: tally.hours.get(h, 0) for h in HOUR_KEYS},
                "dayOfWeek": {d: tally.weekdays.get(d, 0) for d in DAY_NAMES},
                "dayOfMonth": {str(d): tally.month_days.get(str(d), 0) for d in range(1, 32)},
                "mostActiveDay": {"day": day, "count": day_count},
                "mostActiveHour": {"hour": hour, "count": hour_count},
                "topDays": [
                    {"date": key, "count": count} for key, count in top_days[: self.TOP_DAYS]
                ],
                "monthlyActivity": [
                    {"month": key, "count": tally.months[key]} for key in sorted(tally.months)
                ],
                "recentActivity": recent,
                "dateRange": {
                    "start": tally.first.isoformat() if tally.first else None,
                    "end": tally.last.isoformat() if tally.last else None,
                },
            }
        }

    def analyze(self, snapshot: ConversationSnapshot) -> dict[str, Any]:
        tally = self.start()
        self.feed(tally, real_messages(snapshot))
        logger.debug("Time analysis over %d messages", tally.total)
        return self.finish(tally)
