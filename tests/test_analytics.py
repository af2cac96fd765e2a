"""Tests for chat_insights.analytics shared computations."""

from __future__ import annotations

from datetime import timedelta

import pytest

from chat_insights.analytics import (
    chunked,
    clamp_score,
    extract_emojis,
    extract_urls,
    first_max,
    format_duration,
    pearson,
    percentage,
    ranked,
    rolling_avg,
    safe_div,
    segment_conversations,
    sender_switches,
    url_domain,
    variance,
    word_pattern,
    word_tokens,
)

from helpers import at, msg


# ── Arithmetic ──


class TestArithmetic:
    def test_safe_div(self):
        assert safe_div(10, 4) == 2.5
        assert safe_div(1, 0) == 0.0
        assert safe_div(1, 0, default=-1.0) == -1.0

    def test_percentage_rounds(self):
        assert percentage(1, 3) == 33.3
        assert percentage(5, 0) == 0.0

    def test_variance_is_population(self):
        assert variance([1, 3]) == 1.0
        assert variance([]) == 0.0

    @pytest.mark.parametrize("raw, expected", [(-12.0, 0.0), (55.54, 55.5), (140.0, 100.0)])
    def test_clamp_score(self, raw, expected):
        assert clamp_score(raw) == pytest.approx(expected)

    def test_rolling_avg_expanding_start(self):
        assert rolling_avg([10, 20, 30], 2) == [10.0, 15.0, 25.0]

    def test_rolling_avg_full_window(self):
        assert rolling_avg([1, 2, 3, 4], 3, full_window=True) == [2.0, 3.0]

    def test_rolling_avg_full_window_too_short(self):
        assert rolling_avg([1, 2], 3, full_window=True) == []

    def test_pearson_perfect(self):
        assert pearson([1, 2, 3], [2, 4, 6]) == pytest.approx(1.0)
        assert pearson([1, 2, 3], [3, 2, 1]) == pytest.approx(-1.0)

    def test_pearson_zero_variance(self):
        assert pearson([1, 1, 1], [1, 2, 3]) == 0.0


# ── Sequences ──


class TestSequences:
    def test_chunked(self):
        assert [list(c) for c in chunked([1, 2, 3, 4, 5], 2)] == [[1, 2], [3, 4], [5]]

    def test_chunked_rejects_zero(self):
        with pytest.raises(ValueError):
            list(chunked([1], 0))

    def test_ranked_keeps_insertion_order_for_ties(self):
        assert ranked({"b": 2, "a": 3, "c": 2}) == [("a", 3), ("b", 2), ("c", 2)]
        assert ranked({"b": 2, "a": 3, "c": 2}, limit=2) == [("a", 3), ("b", 2)]

    def test_first_max(self):
        assert first_max(["x", "y", "z"], {"y": 2, "z": 2}) == ("y", 2)
        assert first_max(["x"], {}) == ("None", 0)


# ── Conversations ──


class TestSegmentConversations:
    def test_three_then_two(self):
        messages = [
            msg("a", at(hours=1)),
            msg("b", at(hours=1, minutes=5)),
            msg("a", at(hours=1, minutes=20)),
            msg("b", at(hours=2, minutes=20)),
            msg("a", at(hours=2, minutes=25)),
        ]
        conversations = segment_conversations(messages, timedelta(minutes=30))
        assert [len(c) for c in conversations] == [3, 2]

    def test_gap_equal_to_threshold_stays_together(self):
        messages = [msg("a", at()), msg("b", at(minutes=30))]
        assert len(segment_conversations(messages, timedelta(minutes=30))) == 1

    def test_every_adjacent_pair_within_gap(self):
        messages = [msg("a", at(minutes=m)) for m in (0, 10, 45, 50, 200, 229)]
        gap = timedelta(minutes=30)
        conversations = segment_conversations(messages, gap)
        for conversation in conversations:
            for first, second in zip(conversation, conversation[1:]):
                assert second.timestamp - first.timestamp <= gap
        for before, after in zip(conversations, conversations[1:]):
            assert after[0].timestamp - before[-1].timestamp > gap

    def test_empty(self):
        assert segment_conversations([], timedelta(minutes=30)) == []

    def test_sender_switches(self):
        messages = [msg("a", at()), msg("a", at(minutes=1)), msg("b", at(minutes=4))]
        switches = list(sender_switches(messages))
        assert len(switches) == 1
        previous, current, gap = switches[0]
        assert (previous.sender_id, current.sender_id, gap) == ("a", "b", 180.0)


# ── Formatting ──


class TestFormatDuration:
    @pytest.mark.parametrize("seconds, expected", [
        (5, "5s"),
        (240, "4m 0s"),
        (7500, "2h 5m"),
        (97200, "1d 3h"),
    ])
    def test_format(self, seconds, expected):
        assert format_duration(seconds) == expected


# ── Text ──


class TestText:
    TEXT = "Check https://example.com 😊😊 great!"

    def test_emojis(self):
        assert extract_emojis(self.TEXT) == ["😊", "😊"]

    def test_urls(self):
        assert extract_urls(self.TEXT) == ["https://example.com"]

    def test_urls_drop_trailing_punctuation(self):
        text = "see https://example.com/a, (www.test.org) or https://x.io/b?q=1!"
        assert extract_urls(text) == ["https://example.com/a", "www.test.org", "https://x.io/b?q=1"]

    def test_domain(self):
        assert url_domain("https://example.com") == "example.com"
        assert url_domain("www.Example.org/path") == "www.example.org"

    def test_word_tokens_drop_urls_and_punctuation(self):
        assert word_tokens(self.TEXT) == ["check", "great"]
        assert word_tokens("Hello, WORLD!") == ["hello", "world"]

    def test_word_pattern_matches_whole_words(self):
        pattern = word_pattern(["how", "by the way"])
        assert pattern.search("How are you")
        assert pattern.search("oh BY THE WAY")
        assert not pattern.search("show me")
