"""Analytics for chat logs: who talks, when, how, and how that changes over time."""

from chat_insights.errors import (
    AnalysisFailureError,
    ChatInsightsError,
    MissingConversationError,
    SnapshotFormatError,
)
from chat_insights.orchestrator import AnalysisConfig, AnalysisOrchestrator
from chat_insights.snapshot import (
    ConversationSnapshot,
    MessageKind,
    MessageRecord,
    ParticipantRecord,
    snapshot_from_dict,
    snapshot_to_dict,
)
from chat_insights.store import InMemoryConversationSource, InMemoryResultStore

__all__ = [
    "AnalysisConfig",
    "AnalysisFailureError",
    "AnalysisOrchestrator",
    "ChatInsightsError",
    "ConversationSnapshot",
    "InMemoryConversationSource",
    "InMemoryResultStore",
    "MessageKind",
    "MessageRecord",
    "MissingConversationError",
    "ParticipantRecord",
    "SnapshotFormatError",
    "snapshot_from_dict",
    "snapshot_to_dict",
]
