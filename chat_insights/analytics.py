"""Shared computations used by the analyzers.

Conversation segmentation, response-gap iteration, averages and rolling
windows, Pearson correlation, ranking, tokenizers for words/emoji/URLs, and
chunked iteration.  Everything here is a pure function of its arguments.
"""

from __future__ import annotations

import logging
import math
import re
from datetime import date, datetime, timedelta
from typing import Iterable, Iterator, Sequence, TypeVar
from urllib.parse import urlsplit

from chat_insights.snapshot import MessageRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")

DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
               "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

EMOJI_RE = re.compile(
    "[\U0001F600-\U0001F64F\U0001F300-\U0001F5FF\U0001F680-\U0001F6FF"
    "\u2600-\u26FF\u2700-\u27BF]"
)
URL_RE = re.compile(
    r"(https?://(?:www\.|(?!www))[a-zA-Z0-9][a-zA-Z0-9-]+[a-zA-Z0-9]\.[^\s]{2,}"
    r"|www\.[a-zA-Z0-9][a-zA-Z0-9-]+[a-zA-Z0-9]\.[^\s]{2,}"
    r"|https?://(?:www\.|(?!www))[a-zA-Z0-9]+\.[^\s]{2,}"
    r"|www\.[a-zA-Z0-9]+\.[^\s]{2,})",
    re.IGNORECASE,
)
_NON_WORD_RE = re.compile(r"[^\w]+")
_URL_TRAILING = ".,;:!?)]}'\""


# ---------------------------------------------------------------------------
# Arithmetic
# ---------------------------------------------------------------------------

def safe_div(num: float, den: float, default: float = 0.0) -> float:
    """Safe division returning *default* when denominator is zero.

    Args:
        num: Numerator.
        den: Denominator.
        default: Value to return when *den* is zero or falsy.

    Returns:
        ``round(num / den, 2)`` when *den* is truthy, otherwise *default*.
    """
    return round(num / den, 2) if den else default


def percentage(part: float, whole: float, ndigits: int = 1) -> float:
    """Return ``part / whole * 100`` rounded, or 0.0 for an empty whole."""
    return round(part / whole * 100, ndigits) if whole else 0.0


def mean(values: Iterable[float]) -> float:
    values = list(values)
    return sum(values) / len(values) if values else 0.0


def variance(values: Sequence[float]) -> float:
    """Population variance; 0.0 for an empty sequence."""
    if not values:
        return 0.0
    avg = mean(values)
    return sum((v - avg) ** 2 for v in values) / len(values)


def clamp_score(score: float) -> float:
    """Clamp a heuristic score to [0, 100] and round it to 1 decimal place."""
    return round(min(100.0, max(0.0, score)), 1)


def rolling_avg(values: list[float], window: int, full_window: bool = False) -> list[float]:
    """Compute a trailing rolling average.

    Args:
        values: Numeric series to smooth.
        window: Number of trailing values to average.
        full_window: When False, the start of the series uses fewer values
            (expanding window until *window* values are available) and the
            result has the same length as *values*.  When True, only
            complete windows are emitted, so element ``i`` of the result
            covers ``values[i : i + window]``.

    Returns:
        List of floats with the rolling means.
    """
    if full_window:
        return [sum(values[i : i + window]) / window for i in range(len(values) - window + 1)]
    result = []
    for i in range(len(values)):
        start = max(0, i - window + 1)
        w = values[start : i + 1]
        result.append(sum(w) / len(w))
    return result


def pearson(xs: Sequence[float], ys: Sequence[float]) -> float:
    """Pearson correlation coefficient of two equal-length series.

    Returns 0.0 when either series has zero variance.
    """
    n = len(xs)
    if n == 0 or n != len(ys):
        return 0.0
    sum_x = sum(xs)
    sum_y = sum(ys)
    sum_x2 = sum(x * x for x in xs)
    sum_y2 = sum(y * y for y in ys)
    sum_xy = sum(x * y for x, y in zip(xs, ys))
    num = sum_xy - sum_x * sum_y / n
    den_sq = (sum_x2 - sum_x * sum_x / n) * (sum_y2 - sum_y * sum_y / n)
    if den_sq <= 0:
        return 0.0
    return num / math.sqrt(den_sq)


# ---------------------------------------------------------------------------
# Sequences
# ---------------------------------------------------------------------------

def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Yield consecutive fixed-size slices of *items* (the last may be shorter)."""
    if size <= 0:
        raise ValueError("chunk size must be positive")
    for start in range(0, len(items), size):
        yield items[start : start + size]


def ranked(counts: dict[str, int], limit: int | None = None) -> list[tuple[str, int]]:
    """Sort ``(key, count)`` pairs by count, descending.

    Ties keep the dict's insertion order.
    """
    items = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
    return items if limit is None else items[:limit]


def first_max(keys: Iterable[str], counts: dict[str, int], default: str = "None") -> tuple[str, int]:
    """Left-to-right scan returning the first key with the strictly highest count."""
    best_key, best_count = default, 0
    for key in keys:
        count = counts.get(key, 0)
        if count > best_count:
            best_key, best_count = key, count
    return best_key, best_count


# ---------------------------------------------------------------------------
# Conversations and responses
# ---------------------------------------------------------------------------

def segment_conversations(
    messages: Sequence[MessageRecord],
    gap: timedelta,
) -> list[list[MessageRecord]]:
    """Split chronologically sorted messages into conversations.

    A new conversation starts whenever the gap to the previous message is
    strictly greater than *gap*, so every adjacent pair inside a
    conversation is at most *gap* apart.

    Args:
        messages: Messages sorted by timestamp.
        gap: Maximum silence allowed inside one conversation.

    Returns:
        List of conversations, each a non-empty list of messages.
    """
    conversations: list[list[MessageRecord]] = []
    current: list[MessageRecord] = []
    for message in messages:
        if current and message.timestamp - current[-1].timestamp > gap:
            conversations.append(current)
            current = []
        current.append(message)
    if current:
        conversations.append(current)
    return conversations


def sender_switches(
    messages: Sequence[MessageRecord],
) -> Iterator[tuple[MessageRecord, MessageRecord, float]]:
    """Yield ``(previous, current, gap_seconds)`` for every change of sender.

    *messages* must be sorted by timestamp.  Callers apply their own
    ceiling on *gap_seconds* to decide what counts as a response.
    """
    for previous, current in zip(messages, messages[1:]):
        if current.sender_id != previous.sender_id:
            yield previous, current, (current.timestamp - previous.timestamp).total_seconds()


def day_span(first: datetime, last: datetime) -> int:
    """Whole days elapsed between two timestamps."""
    return (last - first).days


def format_dmy(value: datetime | date) -> str:
    return f"{value.day}/{value.month}/{value.year}"


def format_duration(seconds: float) -> str:
    """Render a duration as e.g. ``"4m 0s"``, ``"2h 5m"`` or ``"1d 3h"``."""
    seconds = int(round(seconds))
    days, rem = divmod(seconds, 86400)
    hours, rem = divmod(rem, 3600)
    minutes, secs = divmod(rem, 60)
    if days:
        return f"{days}d {hours}h"
    if hours:
        return f"{hours}h {minutes}m"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------

def extract_emojis(text: str) -> list[str]:
    return EMOJI_RE.findall(text)


def extract_urls(text: str) -> list[str]:
    """Links in *text*, without punctuation that merely follows them."""
    urls = []
    for url in URL_RE.findall(text):
        url = url.rstrip(_URL_TRAILING)
        if url:
            urls.append(url)
    return urls


def url_domain(url: str) -> str | None:
    """Return the lower-cased host of *url*, or None if it cannot be parsed."""
    if not url.lower().startswith(("http://", "https://")):
        url = "https://" + url
    try:
        host = urlsplit(url).hostname
    except ValueError:
        logger.debug("Skipping malformed URL %r", url)
        return None
    if not host:
        return None
    return host.rstrip(".") or None


def word_tokens(text: str) -> list[str]:
    """Case-folded word tokens with URLs removed and punctuation stripped.

    Splits on whitespace and drops every non-word character, so
    ``"Hello, world!"`` yields ``["hello", "world"]``.  Letters from any
    script are kept.
    """
    text = URL_RE.sub(" ", text)
    tokens = []
    for raw in text.split():
        token = _NON_WORD_RE.sub("", raw).casefold()
        if token:
            tokens.append(token)
    return tokens


def whitespace_word_count(text: str) -> int:
    return len(text.split())


def caps_count(text: str) -> int:
    return sum(1 for c in text if c.isupper())


def word_pattern(words: Iterable[str]) -> re.Pattern[str]:
    """Compile a case-insensitive pattern matching any of *words* as whole words."""
    alternatives = "|".join(re.escape(w) for w in sorted(words, key=len, reverse=True))
    return re.compile(rf"\b(?:{alternatives})\b", re.IGNORECASE)
