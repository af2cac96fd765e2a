"""Where snapshots come from and where results are kept.

The orchestrator only talks to the two protocols below.  The in-memory
implementations back the web service and the tests.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Protocol

from chat_insights.document import deserialize, serialize
from chat_insights.snapshot import ConversationSnapshot

logger = logging.getLogger(__name__)


class ConversationSource(Protocol):
    async def get(self, conversation_id: str) -> ConversationSnapshot | None: ...


class ResultStore(Protocol):
    async def get(self, conversation_id: str) -> dict[str, Any] | None: ...

    async def save(self, conversation_id: str, document: dict[str, Any]) -> None: ...

    async def delete(self, conversation_id: str) -> None: ...


class InMemoryConversationSource:
    """Snapshots held in a dict, keyed by conversation id."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._snapshots: dict[str, ConversationSnapshot] = {}

    def add(self, snapshot: ConversationSnapshot) -> None:
        with self._lock:
            self._snapshots[snapshot.id] = snapshot

    async def get(self, conversation_id: str) -> ConversationSnapshot | None:
        with self._lock:
            return self._snapshots.get(conversation_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._snapshots)


class InMemoryResultStore:
    """Thread-safe result cache with an optional time-to-live.

    Documents are stored as JSON text, so every ``get`` returns a fresh
    copy and callers cannot mutate what is cached.

    Args:
        ttl_seconds: Entries older than this are treated as missing.
            ``None`` keeps entries until they are deleted.
    """

    def __init__(self, ttl_seconds: float | None = None) -> None:
        self.ttl_seconds = ttl_seconds
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[str, float]] = {}

    async def get(self, conversation_id: str) -> dict[str, Any] | None:
        now = time.monotonic()
        with self._lock:
            entry = self._entries.get(conversation_id)
            if entry is None:
                return None
            text, saved_at = entry
            if self.ttl_seconds is not None and (now - saved_at) >= self.ttl_seconds:
                del self._entries[conversation_id]
                logger.debug("Cached result for %s expired", conversation_id)
                return None
        return deserialize(text)

    async def save(self, conversation_id: str, document: dict[str, Any]) -> None:
        text = serialize(document)
        with self._lock:
            self._entries[conversation_id] = (text, time.monotonic())

    async def delete(self, conversation_id: str) -> None:
        with self._lock:
            self._entries.pop(conversation_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
