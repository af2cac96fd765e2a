"""Tests for the temporalInsights namespace."""

from __future__ import annotations

import pytest

from chat_insights.errors import is_insufficient
from chat_insights.temporal_analyzer import TemporalInsightAnalyzer

from helpers import at, daily_messages, make_snapshot, msg


def _insights(snapshot):
    return TemporalInsightAnalyzer().analyze(snapshot)["temporalInsights"]


@pytest.fixture()
def two_months():
    """Alice and Bob exchanging two messages every morning for 60 days."""
    return make_snapshot(daily_messages(60))


# ── Span gate ──


class TestSpanGate:
    def test_short_log(self, two_person_snapshot):
        result = _insights(two_person_snapshot)
        assert is_insufficient(result)
        assert result["timeSpanDays"] == 0
        assert "only 0 days" in result["message"]

    def test_empty(self, empty_snapshot):
        assert is_insufficient(_insights(empty_snapshot))

    def test_twenty_nine_days(self):
        snapshot = make_snapshot([msg("a", at()), msg("b", at(days=29, hours=23))])
        assert _insights(snapshot)["timeSpanDays"] == 29

    def test_full_sections(self, two_months):
        result = _insights(two_months)
        assert result["timeSpanDays"] == 59
        assert set(result) == {
            "timeSpanDays",
            "responseTimeEvolution",
            "intensityWaves",
            "relationshipEvolution",
            "topicEvolution",
            "patternChanges",
            "activityCorrelation",
            "evolutionTimeline",
            "overallTrends",
        }


# ── Sections ──


class TestSections:
    def test_response_time_evolution(self, two_months):
        evolution = _insights(two_months)["responseTimeEvolution"]
        assert evolution["Bob"]["trendType"] == "Very Consistent"
        assert evolution["Bob"]["initialAvgSeconds"] == 120
        assert evolution["Bob"]["dataPoints"] == 9

    def test_flat_activity_has_no_waves(self, two_months):
        waves = _insights(two_months)["intensityWaves"]
        assert waves["totalPeaks"] == 0
        assert waves["totalValleys"] == 0
        assert waves["avgDailyMessages"] == 2.0
        alice = waves["userIntensityPatterns"]["Alice"]
        assert alice["intensityType"] == "Consistent Communicator"
        assert alice["peakToValleyRatio"] is None

    def test_quiet_days_count_as_zero(self):
        snapshot = make_snapshot([msg("a", at()), msg("b", at(days=40))])
        waves = _insights(snapshot)["intensityWaves"]
        assert waves["avgDailyMessages"] == pytest.approx(0.0, abs=0.1)

    def test_relationship_evolution(self, two_months):
        relationship = _insights(two_months)["relationshipEvolution"]
        assert len(relationship["quarterlyData"]) == 4
        assert relationship["relationshipTrend"] == "Very Stable Bond"
        assert relationship["quarterlyData"][0]["engagementScore"] == 60.0
        assert sum(q["totalMessages"] for q in relationship["quarterlyData"]) == 120

    def test_topics_need_three_months(self, two_months):
        assert is_insufficient(_insights(two_months)["topicEvolution"])

    def test_topic_trends(self):
        snapshot = make_snapshot([
            msg("a", at(), "big project meeting"),
            msg("b", at(days=35), "dinner later"),
            msg("a", at(days=70), "dinner at the new restaurant"),
            msg("b", at(days=71), "lunch tomorrow, hungry already"),
        ])
        topics = _insights(snapshot)["topicEvolution"]
        assert topics["totalMonthsAnalyzed"] == 3
        assert topics["topicTrends"] == {"work": "Declining", "food": "Rising"}

    def test_pattern_changes(self):
        messages = [msg("a", at(days=d), "ok") for d in range(20)]
        messages += [msg("a", at(days=20 + d), "is this a much longer message now? 😊😊") for d in range(20)]
        changes = _insights(make_snapshot(messages))["patternChanges"]["Alice"]
        assert changes["changes"] == [
            "Getting more verbose",
            "Using more emojis",
            "Asking more questions",
        ]
        assert changes["totalChanges"] == 3

    def test_correlation(self, two_months):
        correlation = _insights(two_months)["activityCorrelation"]
        assert correlation["correlations"] == {"Alice & Bob": 1.0}
        assert correlation["correlationType"] == "Synchronized Schedules"
        assert correlation["bestSyncedPair"] == "Alice & Bob"

    def test_correlation_needs_two_participants(self):
        snapshot = make_snapshot([msg("a", at(days=d)) for d in range(40)])
        assert is_insufficient(_insights(snapshot)["activityCorrelation"])

    def test_timeline(self, two_months):
        timeline = _insights(two_months)["evolutionTimeline"]
        assert timeline["startDate"] == "2024-01-01"
        assert timeline["endDate"] == "2024-02-29"
        busiest, hundred = timeline["milestones"]
        assert busiest["milestone"] == "Busiest Day"
        assert busiest["daysSinceStart"] == 0
        assert hundred == {
            "milestone": "100 Messages",
            "date": "2024-02-19",
            "daysSinceStart": 49,
            "description": "Reached 100 total messages",
        }


# ── Overall ──


class TestOverallTrends:
    def test_stable_log(self, two_months):
        overall = _insights(two_months)["overallTrends"]
        assert overall["overallEvolution"] == "Very Stable Relationship"
        assert overall["evolutionScore"] == 60.0

    def test_positive(self):
        overall = TemporalInsightAnalyzer.overall_trends(
            {"Alice": {"percentChange": -30.0}}, {}, {"relationshipTrend": "Growing Closer"},
        )
        assert overall["overallEvolution"] == "Positive Evolution"
        assert overall["evolutionScore"] == 80.0

    def test_negative(self):
        overall = TemporalInsightAnalyzer.overall_trends(
            {"Alice": {"percentChange": 30.0}}, {}, {"relationshipTrend": "Growing Apart"},
        )
        assert overall["overallEvolution"] == "Concerning Changes"
        assert overall["evolutionScore"] == 20.0

    def test_nothing_to_report(self):
        overall = TemporalInsightAnalyzer.overall_trends({}, {}, {})
        assert overall == {
            "overallEvolution": "Stable Evolution",
            "keyTrends": [],
            "evolutionScore": 50.0,
        }
