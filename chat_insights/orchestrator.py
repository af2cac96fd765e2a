"""Run the analyzers for one conversation and cache the merged result."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass, fields
from typing import Any

from chat_insights.analytics import chunked
from chat_insights.behavior_analyzer import BehaviorPatternAnalyzer
from chat_insights.content_analyzer import ContentAnalyzer
from chat_insights.document import error_document, merge_documents, validate_document
from chat_insights.dynamics_analyzer import ConversationDynamicsAnalyzer
from chat_insights.errors import MissingConversationError
from chat_insights.intelligence_analyzer import ContentIntelligenceAnalyzer
from chat_insights.message_analyzer import MessageAnalyzer, build_summary, empty_summary
from chat_insights.relationship_analyzer import RelationshipAnalyzer
from chat_insights.snapshot import (
    ConversationSnapshot,
    display_names,
    real_messages,
    real_participants,
)
from chat_insights.store import ConversationSource, ResultStore
from chat_insights.temporal_analyzer import TemporalInsightAnalyzer
from chat_insights.time_analyzer import TimeAnalyzer
from chat_insights.user_analyzer import UserAnalyzer

logger = logging.getLogger(__name__)

FAILED_STATUS = "Analysis failed"
UNLOADABLE_STATUS = "Analysis failed - could not load chat"


@dataclass(frozen=True)
class AnalysisConfig:
    """Which analyzers run and when the reduced large-conversation path kicks in.

    ``include_advanced_analysis`` switches all composite analyzers off at
    once; the per-analyzer flags refine it.  The message analyzer always
    runs because every document needs a ``summary``.
    """

    include_advanced_analysis: bool = True
    include_time_analysis: bool = True
    include_user_analysis: bool = True
    include_content_analysis: bool = True
    include_conversation_dynamics: bool = True
    include_behavior_analysis: bool = True
    include_relationship_analysis: bool = True
    include_content_intelligence: bool = True
    include_temporal_insights: bool = True
    max_messages_to_analyze: int = 10000
    time_chunk_size: int = 5000
    content_chunk_size: int = 2000

    @classmethod
    def basic(cls) -> AnalysisConfig:
        return cls(
            include_advanced_analysis=False,
            include_conversation_dynamics=False,
            include_behavior_analysis=False,
            include_relationship_analysis=False,
            max_messages_to_analyze=5000,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AnalysisConfig:
        """Build a config from a dict, ignoring unknown keys and keeping defaults for missing ones."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class AnalysisOrchestrator:
    """Produce the result document for a conversation id.

    Args:
        source: Where snapshots are loaded from.
        store: Where finished documents are cached.
        config: Analyzer selection and large-conversation limits.
    """

    def __init__(
        self,
        source: ConversationSource,
        store: ResultStore,
        config: AnalysisConfig | None = None,
    ) -> None:
        self.source = source
        self.store = store
        self.config = config or AnalysisConfig()

    async def analyze(self, conversation_id: str, force_refresh: bool = False) -> dict[str, Any]:
        """Return the cached document or run a fresh analysis.

        Raises:
            MissingConversationError: If the source has no such conversation.
        """
        if not force_refresh:
            cached = await self._cached(conversation_id)
            if cached:
                logger.debug("Using cached analysis for %s", conversation_id)
                return cached

        snapshot = None
        try:
            snapshot = await self.source.get(conversation_id)
            if snapshot is None:
                raise MissingConversationError(conversation_id)
            logger.info(
                "Analyzing %s with %d messages", conversation_id, len(snapshot.messages)
            )
            if len(snapshot.messages) > self.config.max_messages_to_analyze:
                document = await self._analyze_large(snapshot)
            else:
                document = self._analyze_standard(snapshot)
            validate_document(document)
        except MissingConversationError:
            raise
        except Exception as exc:
            logger.warning("Analysis of %s failed: %s", conversation_id, exc, exc_info=True)
            return await self._degraded(conversation_id, snapshot, exc)

        try:
            await self.store.save(conversation_id, document)
        except Exception:
            logger.warning("Could not save analysis for %s", conversation_id, exc_info=True)
        return document

    async def invalidate(self, conversation_id: str) -> None:
        await self.store.delete(conversation_id)

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    def _analyze_standard(self, snapshot: ConversationSnapshot) -> dict[str, Any]:
        config = self.config
        advanced = config.include_advanced_analysis
        analyzers: list[Any] = [MessageAnalyzer()]
        if config.include_time_analysis:
            analyzers.append(TimeAnalyzer())
        if config.include_user_analysis:
            analyzers.append(UserAnalyzer())
        if config.include_content_analysis:
            analyzers.append(ContentAnalyzer())
        if advanced and config.include_conversation_dynamics:
            analyzers.append(ConversationDynamicsAnalyzer())
        if advanced and config.include_behavior_analysis:
            analyzers.append(BehaviorPatternAnalyzer())
        if advanced and config.include_relationship_analysis:
            analyzers.append(RelationshipAnalyzer())
        if advanced and config.include_content_intelligence:
            analyzers.append(ContentIntelligenceAnalyzer())
        if advanced and config.include_temporal_insights:
            analyzers.append(TemporalInsightAnalyzer())

        return merge_documents(*(analyzer.analyze(snapshot) for analyzer in analyzers))

    async def _analyze_large(self, snapshot: ConversationSnapshot) -> dict[str, Any]:
        """Reduced analysis for very long conversations.

        Only the message, time, user and content analyzers run.  Time and
        content fold their input in fixed-size chunks and yield to the
        event loop between chunks; the output equals the unchunked fold.
        """
        messages = real_messages(snapshot)
        names = display_names(real_participants(snapshot, messages))

        time_analyzer = TimeAnalyzer()
        time_tally = time_analyzer.start()
        batches = 0
        for chunk in chunked(messages, self.config.time_chunk_size):
            time_analyzer.feed(time_tally, chunk)
            batches += 1
            await asyncio.sleep(0)

        content_analyzer = ContentAnalyzer()
        content_tally = content_analyzer.start()
        for chunk in chunked(messages, self.config.content_chunk_size):
            content_analyzer.feed(content_tally, chunk)
            await asyncio.sleep(0)

        logger.info("Large conversation %s analyzed in %d batches", snapshot.id, batches)
        return merge_documents(
            MessageAnalyzer().analyze(snapshot),
            time_analyzer.finish(time_tally),
            UserAnalyzer().analyze(snapshot),
            content_analyzer.finish(content_tally, names),
            {
                "optimization": {
                    "optimized": True,
                    "batchCount": batches,
                    "totalMessages": len(messages),
                }
            },
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _cached(self, conversation_id: str) -> dict[str, Any] | None:
        try:
            return await self.store.get(conversation_id)
        except Exception:
            logger.warning("Could not read cached analysis for %s", conversation_id, exc_info=True)
            return None

    async def _degraded(
        self,
        conversation_id: str,
        snapshot: ConversationSnapshot | None,
        exc: Exception,
    ) -> dict[str, Any]:
        """Build the error document, falling back to a zeroed summary if the chat cannot be loaded."""
        if snapshot is None:
            try:
                snapshot = await self.source.get(conversation_id)
            except Exception:
                logger.warning("Could not reload %s for error report", conversation_id, exc_info=True)

        if snapshot is None:
            summary = empty_summary()
            summary["status"] = UNLOADABLE_STATUS
        else:
            messages = real_messages(snapshot)
            summary = build_summary(messages, len(real_participants(snapshot, messages)))
            summary["status"] = FAILED_STATUS
        return error_document(summary, exc)
