"""FastAPI service for chat log analytics.

Accepts conversation snapshots, runs the analyzers on demand and caches
each result document (1-hour TTL; pass ``refresh=true`` to rebuild).

Deployment (needs the ``serve`` extra): uvicorn app:app --host 127.0.0.1 --port 8203
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import Body, FastAPI, HTTPException

from chat_insights.errors import MissingConversationError, SnapshotFormatError
from chat_insights.orchestrator import AnalysisOrchestrator
from chat_insights.snapshot import real_messages, real_participants, snapshot_from_dict
from chat_insights.store import InMemoryConversationSource, InMemoryResultStore

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------
CACHE_TTL_SECONDS = 3600  # 1 hour

# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------
app = FastAPI(title="Chat Insights")

# ---------------------------------------------------------------------------
# Conversations and cached results
# ---------------------------------------------------------------------------
_source = InMemoryConversationSource()
_store = InMemoryResultStore(ttl_seconds=CACHE_TTL_SECONDS)
_orchestrator = AnalysisOrchestrator(_source, _store)


async def _get_analysis(conversation_id: str, force_refresh: bool = False) -> dict[str, Any]:
    """Return the result document, mapping an unknown id to a 404."""
    try:
        return await _orchestrator.analyze(conversation_id, force_refresh=force_refresh)
    except MissingConversationError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
@app.get("/health")
@app.get("/healthz")
def healthz():
    return {"status": "ok"}


@app.post("/api/conversations", status_code=201)
async def upload_conversation(payload: dict[str, Any] = Body(...)):
    """Register a snapshot; replaces any earlier upload with the same id."""
    try:
        snapshot = snapshot_from_dict(payload)
    except SnapshotFormatError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    _source.add(snapshot)
    await _orchestrator.invalidate(snapshot.id)
    messages = real_messages(snapshot)
    logger.info("Stored conversation %s (%d messages)", snapshot.id, len(snapshot.messages))
    return {
        "id": snapshot.id,
        "messages": len(messages),
        "participants": len(real_participants(snapshot, messages)),
    }


@app.get("/api/conversations/{conversation_id}/analysis")
async def get_analysis(conversation_id: str, refresh: bool = False):
    """Return the full result document."""
    return await _get_analysis(conversation_id, force_refresh=refresh)


@app.get("/api/conversations/{conversation_id}/analysis/{namespace}")
async def get_analysis_section(conversation_id: str, namespace: str):
    """Return a single namespace of the result document, e.g. ``timeAnalysis``."""
    document = await _get_analysis(conversation_id)
    if namespace not in document:
        raise HTTPException(status_code=404, detail=f"No section named {namespace!r}")
    return document[namespace]


@app.delete("/api/conversations/{conversation_id}/analysis")
async def drop_analysis(conversation_id: str):
    """Forget the cached result so the next request recomputes it."""
    await _orchestrator.invalidate(conversation_id)
    return {"status": "deleted", "id": conversation_id}
