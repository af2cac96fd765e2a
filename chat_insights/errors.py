"""Exception types and the insufficient-data marker."""

from __future__ import annotations

from typing import Any

COME_BACK_LATER = "Come back when you have more chat history!"


class ChatInsightsError(Exception):
    """Base class for all chat_insights errors."""


class MissingConversationError(ChatInsightsError, LookupError):
    """The requested conversation could not be found upstream."""

    def __init__(self, conversation_id: str) -> None:
        super().__init__(f"Conversation not found: {conversation_id}")
        self.conversation_id = conversation_id


class AnalysisFailureError(ChatInsightsError, RuntimeError):
    """A result document is structurally unusable."""


class SnapshotFormatError(ChatInsightsError, ValueError):
    """A snapshot payload does not follow the JSON contract."""


def insufficient_data(message: str, **details: Any) -> dict[str, Any]:
    """Build the marker an analyzer returns instead of a section it cannot compute.

    Args:
        message: Human-readable explanation of what is missing.
        **details: Extra JSON-safe fields (e.g. ``timeSpanDays=12``).

    Returns:
        Dict with ``insufficientData: True``, the message, a "come back
        later" recommendation, and any extra details.
    """
    marker: dict[str, Any] = {
        "insufficientData": True,
        "message": message,
        "recommendation": COME_BACK_LATER,
    }
    marker.update(details)
    return marker


def is_insufficient(section: Any) -> bool:
    return isinstance(section, dict) and section.get("insufficientData") is True
