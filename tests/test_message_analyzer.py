"""Tests for the summary and messagesByUser namespaces."""

from __future__ import annotations

from chat_insights.message_analyzer import MessageAnalyzer, build_summary, empty_summary
from chat_insights.snapshot import MessageKind

from helpers import at, make_snapshot, msg


class TestSummary:
    def test_two_person_totals(self, two_person_snapshot):
        summary = MessageAnalyzer().analyze(two_person_snapshot)["summary"]
        assert summary == {
            "totalMessages": 9,
            "totalUsers": 2,
            "dateRange": "1/1/2024 - 1/1/2024",
            "avgMessagesPerDay": 9.0,
            "totalMedia": 1,
            "durationDays": 1,
        }

    def test_duration_counts_calendar_days(self):
        snapshot = make_snapshot([msg("a", at(hours=14)), msg("b", at(days=2, hours=1))])
        summary = MessageAnalyzer().analyze(snapshot)["summary"]
        assert summary["durationDays"] == 3
        assert summary["avgMessagesPerDay"] == 0.7
        assert summary["dateRange"] == "1/1/2024 - 3/1/2024"

    def test_empty_snapshot(self, empty_snapshot):
        summary = MessageAnalyzer().analyze(empty_snapshot)["summary"]
        assert summary["dateRange"] == "N/A"
        assert summary["totalMessages"] == 0
        assert summary["totalUsers"] == 2

    def test_system_messages_ignored(self):
        snapshot = make_snapshot([
            msg("a", at(), "hi"),
            msg("System", at(minutes=1), "Alice changed the subject"),
            msg("b", at(minutes=2), "Bob joined using this group's invite link"),
        ], participants=["a", "b"])
        assert MessageAnalyzer().analyze(snapshot)["summary"]["totalMessages"] == 1

    def test_build_summary_without_messages(self):
        assert build_summary([], 0) == empty_summary()


class TestMessagesByUser:
    def test_sorted_by_count(self, two_person_snapshot):
        by_user = MessageAnalyzer().analyze(two_person_snapshot)["messagesByUser"]
        assert [(u["name"], u["messageCount"], u["percentage"]) for u in by_user] == [
            ("Bob", 5, 55.6),
            ("Alice", 4, 44.4),
        ]

    def test_counts_add_up(self):
        messages = [msg("a", at(minutes=i)) for i in range(3)]
        messages += [msg("z", at(minutes=10), "from a stranger")]
        messages += [msg("b", at(minutes=20), "clip.mp4", kind=MessageKind.VIDEO)]
        document = MessageAnalyzer().analyze(make_snapshot(messages, participants=["a", "b", "c"]))
        total = document["summary"]["totalMessages"]
        assert sum(u["messageCount"] for u in document["messagesByUser"]) == total == 5
        names = [u["name"] for u in document["messagesByUser"]]
        assert "z" in names
        assert "Cara" in names
