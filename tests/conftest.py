"""Shared fixtures for chat_insights tests."""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from chat_insights.orchestrator import AnalysisOrchestrator
from chat_insights.snapshot import MessageKind
from chat_insights.store import InMemoryConversationSource, InMemoryResultStore

from helpers import alternating, make_snapshot, msg


# ── Snapshots ──


@pytest.fixture()
def two_person_snapshot():
    """Alice and Bob trading eight messages a minute apart, plus a photo."""
    messages = alternating(["a", "b"], 8, content="Check https://example.com 😊😊 great!")
    messages.append(msg("b", messages[-1].timestamp + timedelta(minutes=5), "photo.jpg",
                        kind=MessageKind.IMAGE))
    return make_snapshot(messages)


@pytest.fixture()
def empty_snapshot():
    return make_snapshot([], participants=["a", "b"])


# ── Collaborators ──


@pytest.fixture()
def source():
    return InMemoryConversationSource()


@pytest.fixture()
def store():
    return InMemoryResultStore()


@pytest.fixture()
def orchestrator(source, store):
    return AnalysisOrchestrator(source, store)


# ── App ──


@pytest.fixture()
def client():
    """TestClient for app.py with fresh in-memory collaborators per test.

    Patches the module-level source, store and orchestrator so tests never
    share cached results.
    """
    import app as app_module

    source = InMemoryConversationSource()
    store = InMemoryResultStore(ttl_seconds=app_module.CACHE_TTL_SECONDS)
    orchestrator = AnalysisOrchestrator(source, store)
    with (
        patch.object(app_module, "_source", source),
        patch.object(app_module, "_store", store),
        patch.object(app_module, "_orchestrator", orchestrator),
    ):
        with TestClient(app_module.app) as tc:
            yield tc
