"""How participants write: the ``contentIntelligence`` namespace.

Works on real text messages only.  Every section is keyed by participant
display name; participants without text messages are omitted.
"""

from __future__ import annotations

import logging
import re
from collections import Counter, defaultdict
from datetime import timedelta
from typing import Any

from chat_insights.analytics import (
    URL_RE,
    caps_count,
    clamp_score,
    extract_emojis,
    mean,
    percentage,
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

QUESTION_STARTERS = frozenset([
    "what", "how", "when", "where", "why", "who", "which", "can", "could",
    "would", "should", "do", "does", "did", "is", "are", "was", "were",
])
COMMAND_WORDS = frozenset([
    "go", "come", "stop", "wait", "look", "check", "try", "get", "take",
    "give", "send", "call", "text",
])
ABBREVIATIONS = word_pattern(
    ["lol", "omg", "btw", "fyi", "imo", "tbh", "ngl", "rn", "bc", "u", "ur", "n"]
)

# Frequent English words that never count as complex vocabulary.
COMMON_WORDS = frozenset("""
the be to of and a in that have i it for not on with he as you do at this
but his by from they we say her she or an will my one all would there their
what so up out if about who get which go me when make can like time no just
him know take people into year your good some could them see other than then
now look only come its also back after use two how our work first well way
even new want because any these give day most us
""".split())

FORMAL_WORDS = word_pattern(
    ["however", "therefore", "furthermore", "moreover", "nevertheless", "consequently"]
)
CASUAL_WORDS = word_pattern(["yeah", "yep", "nah", "gonna", "wanna", "kinda", "sorta"])
FILLER_WORDS = word_pattern(
    ["like", "um", "uh", "you know", "i mean", "basically", "actually"]
)
INTENSIFIERS = word_pattern(
    ["very", "really", "extremely", "totally", "absolutely", "definitely"]
)
LOCATION_WORDS = word_pattern(["at", "in", "near", "address", "street", "road", "avenue"])

NUMBER_RE = re.compile(r"\b\d{3,}\b")
DATE_RE = re.compile(r"\b\d{1,2}[/-]\d{1,2}[/-]\d{2,4}\b")
_VOCAB_SPLIT_RE = re.compile(r"[^\w\s]")


def classify_sentence(content: str) -> str:
    """Return ``question``, ``exclamation``, ``command`` or ``statement``.

    A question mark wins over an exclamation mark.  Without either, the
    first word decides: a question starter makes an implicit question and a
    command word a command.
    """
    if "?" in content:
        return "question"
    if "!" in content:
        return "exclamation"
    words = content.lower().split()
    first = words[0] if words else ""
    if first in QUESTION_STARTERS:
        return "question"
    if first in COMMAND_WORDS:
        return "command"
    return "statement"


def vocabulary_words(content: str) -> list[str]:
    """Lower-cased words longer than one character, punctuation removed."""
    return [w for w in _VOCAB_SPLIT_RE.sub(" ", content.lower()).split() if len(w) > 1]


class ContentIntelligenceAnalyzer:
    """Sentence types, writing style, vocabulary, language, sharing, threads and a blended score."""

    LONG_MESSAGE_CHARS = 100
    SHORT_MESSAGE_CHARS = 20
    COMPLEX_WORD_LENGTH = 6
    THREAD_CONTINUE_GAP = timedelta(minutes=15)
    THREAD_RESPOND_GAP = timedelta(minutes=30)
    THREAD_INTERRUPT_GAP = timedelta(hours=1)

    def analyze(self, snapshot: ConversationSnapshot) -> dict[str, Any]:
        messages = [m for m in sorted_real_messages(snapshot) if not m.is_media]
        names = display_names(real_participants(snapshot, messages))

        by_user: dict[str, list[MessageRecord]] = defaultdict(list)
        for message in messages:
            by_user[message.sender_id].append(message)
        active = [uid for uid in names if by_user.get(uid)]

        questions = {names[uid]: self._sentence_types(by_user[uid]) for uid in active}
        vocabulary = {}
        for uid in active:
            profile = self._vocabulary(by_user[uid])
            if profile is not None:
                vocabulary[names[uid]] = profile
        sharing = {names[uid]: self._information(by_user[uid]) for uid in active}

        logger.debug("Content intelligence for %d writers", len(active))
        return {
            "contentIntelligence": {
                "questionStatementPatterns": questions,
                "communicationStyles": {
                    names[uid]: self._style(by_user[uid]) for uid in active
                },
                "vocabularyAnalysis": vocabulary,
                "languagePatterns": {
                    names[uid]: self._language(by_user[uid]) for uid in active
                },
                "informationSharing": sharing,
                "threadPatterns": self._threads(messages, names),
                "intelligenceScores": self.intelligence_scores(vocabulary, questions, sharing),
            }
        }

    # ── Per-participant profiles ──

    @staticmethod
    def _sentence_types(messages: list[MessageRecord]) -> dict[str, Any]:
        counts = Counter(classify_sentence(m.content) for m in messages)
        total = len(messages)
        question = percentage(counts["question"], total)
        statement = percentage(counts["statement"], total)
        exclamation = percentage(counts["exclamation"], total)
        command = percentage(counts["command"], total)

        label = "Balanced Communicator"
        if question > 40:
            label = "Curious Explorer"
        elif statement > 60:
            label = "Information Sharer"
        elif exclamation > 30:
            label = "Enthusiastic Expresser"
        elif command > 20:
            label = "Action Oriented"
        elif question > 25 and statement > 35:
            label = "Thoughtful Conversationalist"

        return {
            "type": label,
            "questionPercentage": question,
            "statementPercentage": statement,
            "exclamationPercentage": exclamation,
            "commandPercentage": command,
            "totalMessages": total,
        }

    def _style(self, messages: list[MessageRecord]) -> dict[str, Any]:
        total = len(messages)
        chars = sum(len(m.content) for m in messages)
        caps = sum(caps_count(m.content) for m in messages)
        emojis = sum(len(extract_emojis(m.content)) for m in messages)
        exclamations = sum(m.content.count("!") for m in messages)
        ellipses = sum(m.content.count("...") for m in messages)
        abbreviations = sum(1 for m in messages if ABBREVIATIONS.search(m.content))
        long_count = sum(1 for m in messages if len(m.content) > self.LONG_MESSAGE_CHARS)
        short_count = sum(1 for m in messages if len(m.content) < self.SHORT_MESSAGE_CHARS)

        avg_length = chars / total
        caps_pct = percentage(caps, chars)
        emoji_rate = emojis / total
        exclamation_rate = exclamations / total

        label = "Standard Writer"
        if caps_pct > 15:
            label = "CAPS Enthusiast"
        elif emoji_rate > 1:
            label = "Emoji Lover"
        elif exclamation_rate > 0.5:
            label = "Excitement Master"
        elif avg_length > 150:
            label = "Detailed Storyteller"
        elif avg_length < 25:
            label = "Concise Communicator"
        elif abbreviations / total > 0.3:
            label = "Abbreviation Expert"
        elif ellipses / total > 0.2:
            label = "Thoughtful Pauser"

        return {
            "styleType": label,
            "avgMessageLength": round(avg_length, 1),
            "capsPercentage": caps_pct,
            "emojisPerMessage": round(emoji_rate, 2),
            "exclamationsPerMessage": round(exclamation_rate, 2),
            "longMessagePercentage": percentage(long_count, total),
            "shortMessagePercentage": percentage(short_count, total),
        }

    def _vocabulary(self, messages: list[MessageRecord]) -> dict[str, Any] | None:
        words = [w for m in messages for w in vocabulary_words(m.content)]
        if not words:
            return None
        unique = set(words)
        richness = len(unique) / len(words)
        avg_word_length = mean(len(w) for w in words)
        complex_words = sum(
            1 for w in unique if len(w) > self.COMPLEX_WORD_LENGTH and w not in COMMON_WORDS
        )
        complex_ratio = complex_words / len(unique)
        score = min(100.0, richness * 100 + avg_word_length * 10 + complex_ratio * 50)

        if score > 80:
            label = "Sophisticated Speaker"
        elif score > 65:
            label = "Articulate Communicator"
        elif score > 50:
            label = "Clear Expresser"
        elif score > 35:
            label = "Standard Vocabulary"
        else:
            label = "Simple & Direct"

        return {
            "vocabularyType": label,
            "complexityScore": round(score, 1),
            "uniqueWords": len(unique),
            "totalWords": len(words),
            "vocabularyRichness": round(richness * 100, 1),
            "avgWordLength": round(avg_word_length, 1),
            "complexWords": complex_words,
            "complexWordPercentage": round(complex_ratio * 100, 1),
        }

    @staticmethod
    def _language(messages: list[MessageRecord]) -> dict[str, Any]:
        total = len(messages)
        formal = percentage(sum(1 for m in messages if FORMAL_WORDS.search(m.content)), total)
        casual = percentage(sum(1 for m in messages if CASUAL_WORDS.search(m.content)), total)
        filler = percentage(sum(1 for m in messages if FILLER_WORDS.search(m.content)), total)
        intense = percentage(sum(1 for m in messages if INTENSIFIERS.search(m.content)), total)

        label = "Neutral Style"
        if formal > 20:
            label = "Formal Speaker"
        elif casual > 30:
            label = "Casual Chatter"
        elif filler > 25:
            label = "Conversational Speaker"
        elif intense > 20:
            label = "Emphatic Communicator"
        elif formal + casual < 10:
            label = "Straightforward Speaker"

        return {
            "languageStyle": label,
            "formalPercentage": formal,
            "casualPercentage": casual,
            "fillerPercentage": filler,
            "intensifierPercentage": intense,
        }

    @staticmethod
    def _information(messages: list[MessageRecord]) -> dict[str, Any]:
        links = sum(1 for m in messages if URL_RE.search(m.content))
        numbers = sum(1 for m in messages if NUMBER_RE.search(m.content))
        dates = sum(1 for m in messages if DATE_RE.search(m.content))
        locations = sum(1 for m in messages if LOCATION_WORDS.search(m.content))
        shared = links + numbers + dates + locations
        rate = percentage(shared, len(messages))

        label = "Standard Communicator"
        if rate > 25:
            label = "Information Hub"
        elif links > numbers and links > 3:
            label = "Link Sharer"
        elif numbers > 5:
            label = "Detail Provider"
        elif rate > 10:
            label = "Helpful Informer"
        elif rate < 5:
            label = "Conversational Focused"

        return {
            "sharingType": label,
            "infoSharingRate": rate,
            "linksShared": links,
            "numbersShared": numbers,
            "datesShared": dates,
            "locationsShared": locations,
            "totalInfoShared": shared,
        }

    # ── Threads ──

    def _threads(self, messages: list[MessageRecord], names: dict[str, str]) -> dict[str, Any]:
        """Classify each message relative to the one before it.

        Continuing one's own thread needs the same sender within 15 minutes,
        responding needs a different sender within 30 minutes, and anything
        after more than an hour of silence is an interruption.  The first
        message of the log is not classified.
        """
        behaviour: dict[str, Counter] = {}
        for previous, current in zip(messages, messages[1:]):
            tally = behaviour.setdefault(current.sender_id, Counter())
            tally["total"] += 1
            gap = current.timestamp - previous.timestamp
            same_sender = current.sender_id == previous.sender_id
            if same_sender and gap < self.THREAD_CONTINUE_GAP:
                tally["continues"] += 1
            elif not same_sender and gap < self.THREAD_RESPOND_GAP:
                tally["responds"] += 1
            elif gap > self.THREAD_INTERRUPT_GAP:
                tally["interrupts"] += 1

        profiles = {}
        for uid, name in names.items():
            tally = behaviour.get(uid)
            if not tally:
                continue
            continues = percentage(tally["continues"], tally["total"])
            responds = percentage(tally["responds"], tally["total"])
            interrupts = percentage(tally["interrupts"], tally["total"])

            label = "Balanced Participant"
            if continues > 40:
                label = "Thread Builder"
            elif responds > 50:
                label = "Active Responder"
            elif interrupts > 20:
                label = "Topic Changer"
            elif responds > continues:
                label = "Supportive Contributor"

            profiles[name] = {
                "threadType": label,
                "continuesPercentage": continues,
                "respondsPercentage": responds,
                "interruptsPercentage": interrupts,
            }
        return profiles

    # ── Blended score ──

    @staticmethod
    def intelligence_scores(
        vocabulary: dict[str, Any],
        questions: dict[str, Any],
        sharing: dict[str, Any],
    ) -> dict[str, Any]:
        """Blend vocabulary, curiosity and information sharing into one score.

        Args:
            vocabulary: ``vocabularyAnalysis`` profiles by name.
            questions: ``questionStatementPatterns`` profiles by name.
            sharing: ``informationSharing`` profiles by name.

        Returns:
            Profiles by name with ``overallScore`` in [0, 100] and a label.
        """
        users = list(dict.fromkeys([*vocabulary, *questions, *sharing]))
        scores = {}
        for name in users:
            complexity = vocabulary.get(name, {}).get("complexityScore", 50.0)
            question_rate = questions.get(name, {}).get("questionPercentage", 0.0)
            info_rate = sharing.get(name, {}).get("infoSharingRate", 0.0)

            score = 50.0 + (complexity - 50) * 0.4
            if question_rate > 20:
                score += 15
            if question_rate > 35:
                score += 10
            if info_rate > 15:
                score += 10
            if info_rate > 25:
                score += 10
            score = clamp_score(score)

            label = "Balanced Intelligence"
            if score > 85:
                label = "Highly Intelligent"
            elif score > 75:
                label = "Very Smart"
            elif score > 65:
                label = "Above Average"
            elif score > 55:
                label = "Good Thinker"
            elif score < 45:
                label = "Simple Communicator"

            scores[name] = {
                "intelligenceType": label,
                "overallScore": score,
                "vocabContribution": complexity,
                "curiosityContribution": question_rate,
                "infoSharingContribution": info_rate,
            }
        return scores
