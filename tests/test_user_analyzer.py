"""Tests for the userAnalysis namespace."""

from __future__ import annotations

from datetime import timedelta

import pytest

from chat_insights.user_analyzer import UserAnalyzer

from helpers import at, make_snapshot, msg


def _by_name(result):
    return {u["name"]: u for u in result["userAnalysis"]["userData"]}


class TestUserData:
    def test_counts(self, two_person_snapshot):
        users = _by_name(UserAnalyzer().analyze(two_person_snapshot))
        alice, bob = users["Alice"], users["Bob"]
        assert alice["messageCount"] == 4
        assert alice["percentage"] == 44.4
        assert alice["wordCount"] == 16
        assert alice["letterCount"] == 140
        assert alice["emojiCount"] == 8
        assert alice["avgMessageLength"] == 35.0
        assert bob["messageCount"] == 5
        assert bob["mediaCount"] == 1
        assert bob["letterCount"] == 140

    def test_response_times(self, two_person_snapshot):
        users = _by_name(UserAnalyzer().analyze(two_person_snapshot))
        assert users["Alice"]["responseCount"] == 3
        assert users["Bob"]["responseCount"] == 4
        assert users["Bob"]["avgResponseTimeSeconds"] == pytest.approx(60.0)

    def test_gaps_over_ceiling_ignored(self):
        snapshot = make_snapshot([
            msg("a", at()),
            msg("b", at(minutes=4)),
            msg("a", at(days=2)),
        ])
        users = _by_name(UserAnalyzer().analyze(snapshot))
        assert users["Bob"]["avgResponseTimeSeconds"] == 240.0
        assert users["Alice"]["responseCount"] == 0

    def test_custom_ceiling(self):
        snapshot = make_snapshot([msg("a", at()), msg("b", at(hours=2))])
        analyzer = UserAnalyzer(response_ceiling=timedelta(hours=1))
        assert _by_name(analyzer.analyze(snapshot))["Bob"]["responseCount"] == 0

    def test_first_and_last_message(self, two_person_snapshot):
        users = _by_name(UserAnalyzer().analyze(two_person_snapshot))
        assert users["Bob"]["firstMessageAt"] == "2024-01-01T09:01:00"
        assert users["Bob"]["lastMessageAt"] == "2024-01-01T09:12:00"

    def test_silent_participant(self):
        snapshot = make_snapshot([msg("a", at())], participants=["a", "b"])
        bob = _by_name(UserAnalyzer().analyze(snapshot))["Bob"]
        assert bob["messageCount"] == 0
        assert bob["avgMessageLength"] == 0.0
        assert bob["firstMessageAt"] is None


class TestHighlights:
    def test_talkers_and_responders(self, two_person_snapshot):
        result = UserAnalyzer().analyze(two_person_snapshot)["userAnalysis"]
        assert result["mostTalkative"] == {"name": "Bob", "messageCount": 5}
        assert result["leastTalkative"] == {"name": "Alice", "messageCount": 4}
        assert result["fastestResponder"]["name"] == "Alice"
        assert result["slowestResponder"]["name"] == "Bob"

    def test_single_participant(self):
        snapshot = make_snapshot([msg("a", at()), msg("a", at(minutes=1))])
        result = UserAnalyzer().analyze(snapshot)["userAnalysis"]
        assert result["mostTalkative"] == {"name": "Alice", "messageCount": 2}
        assert result["leastTalkative"] is None
        assert result["fastestResponder"] is None
        assert result["slowestResponder"] is None

    def test_empty(self, empty_snapshot):
        result = UserAnalyzer().analyze(empty_snapshot)["userAnalysis"]
        assert len(result["userData"]) == 2
        assert result["fastestResponder"] is None
