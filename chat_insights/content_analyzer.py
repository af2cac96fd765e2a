"""Word, emoji and link statistics: the ``contentAnalysis`` namespace.

Like the time analyzer this is a start/feed/finish fold so large
conversations can be processed in batches.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from typing import Any, Iterable

from chat_insights.analytics import (
    extract_emojis,
    extract_urls,
    ranked,
    url_domain,
    whitespace_word_count,
    word_tokens,
)
from chat_insights.snapshot import (
    ConversationSnapshot,
    MessageRecord,
    display_names,
    real_messages,
    real_participants,
)

logger = logging.getLogger(__name__)


def _user_counters() -> dict[str, Counter]:
    return {"words": Counter(), "emojis": Counter(), "domains": Counter()}


@dataclass
class ContentTally:
    words: Counter = field(default_factory=Counter)
    emojis: Counter = field(default_factory=Counter)
    domains: Counter = field(default_factory=Counter)
    by_user: dict[str, dict[str, Counter]] = field(default_factory=lambda: defaultdict(_user_counters))
    total_words: int = 0
    total_characters: int = 0
    total_emojis: int = 0
    total_urls: int = 0
    total_media: int = 0
    text_messages: int = 0
    short: int = 0
    medium: int = 0
    long: int = 0


class ContentAnalyzer:
    """Top words, emojis and link domains, globally and per participant.

    Every word token is counted; no stop-word list is applied.
    """

    TOP_WORDS = 50
    TOP_EMOJIS = 30
    TOP_DOMAINS = 20
    TOP_PER_USER = 10
    SHORT_MESSAGE_CHARS = 20
    MEDIUM_MESSAGE_CHARS = 100

    def start(self) -> ContentTally:
        return ContentTally()

    def feed(self, tally: ContentTally, messages: Iterable[MessageRecord]) -> None:
        """Fold already-filtered real messages into *tally*."""
        for message in messages:
            if message.is_media:
                tally.total_media += 1
                continue
            content = message.content
            user = tally.by_user[message.sender_id]
            tally.text_messages += 1
            tally.total_words += whitespace_word_count(content)
            tally.total_characters += len(content)

            length = len(content)
            if length <= self.SHORT_MESSAGE_CHARS:
                tally.short += 1
            elif length <= self.MEDIUM_MESSAGE_CHARS:
                tally.medium += 1
            else:
                tally.long += 1

            for word in word_tokens(content):
                tally.words[word] += 1
                user["words"][word] += 1

            for emoji in extract_emojis(content):
                tally.emojis[emoji] += 1
                user["emojis"][emoji] += 1
                tally.total_emojis += 1

            for url in extract_urls(content):
                tally.total_urls += 1
                domain = url_domain(url)
                if domain is None:
                    continue
                tally.domains[domain] += 1
                user["domains"][domain] += 1

    def finish(self, tally: ContentTally, names: dict[str, str]) -> dict[str, Any]:
        """Render the namespace.

        Args:
            tally: The accumulated counts.
            names: Participant id to display name, in report order.
        """
        by_user = {}
        for user_id, name in names.items():
            counters = tally.by_user.get(user_id) or _user_counters()
            by_user[name] = {
                "topWords": _word_list(counters["words"], self.TOP_PER_USER),
                "topEmojis": _emoji_list(counters["emojis"], self.TOP_PER_USER),
                "topDomains": _domain_list(counters["domains"], self.TOP_PER_USER),
            }

        text = tally.text_messages
        return {
            "contentAnalysis": {
                "totalWords": tally.total_words,
                "totalCharacters": tally.total_characters,
                "totalEmojis": tally.total_emojis,
                "totalUrls": tally.total_urls,
                "totalMedia": tally.total_media,
                "avgWordsPerMessage": round(tally.total_words / text, 1) if text else 0.0,
                "avgCharsPerMessage": round(tally.total_characters / text, 1) if text else 0.0,
                "messageLengthDistribution": {
                    "short": tally.short,
                    "medium": tally.medium,
                    "long": tally.long,
                },
                "topWords": _word_list(tally.words, self.TOP_WORDS),
                "topEmojis": _emoji_list(tally.emojis, self.TOP_EMOJIS),
                "topDomains": _domain_list(tally.domains, self.TOP_DOMAINS),
                "byUser": by_user,
            }
        }

    def analyze(self, snapshot: ConversationSnapshot) -> dict[str, Any]:
        messages = real_messages(snapshot)
        names = display_names(real_participants(snapshot, messages))
        tally = self.start()
        self.feed(tally, messages)
        logger.debug(
            "Content analysis: %d words, %d emojis, %d urls",
            tally.total_words, tally.total_emojis, tally.total_urls,
        )
        return self.finish(tally, names)


def _word_list(counts: Counter, limit: int) -> list[dict[str, Any]]:
    return [{"word": k, "count": v} for k, v in ranked(counts, limit)]


def _emoji_list(counts: Counter, limit: int) -> list[dict[str, Any]]:
    return [{"emoji": k, "count": v} for k, v in ranked(counts, limit)]


def _domain_list(counts: Counter, limit: int) -> list[dict[str, Any]]:
    return [{"domain": k, "count": v} for k, v in ranked(counts, limit)]
