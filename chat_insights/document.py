"""Assembling, validating and serializing result documents.

A result document is a plain dict whose top-level keys are analyzer
namespaces (``summary``, ``timeAnalysis`` and so on).  Each analyzer owns
its namespaces; merging refuses to let one analyzer overwrite another.
"""

from __future__ import annotations

import json
from typing import Any

from chat_insights.errors import AnalysisFailureError

REQUIRED_NAMESPACE = "summary"


def merge_documents(*documents: dict[str, Any]) -> dict[str, Any]:
    """Merge analyzer outputs into one document.

    Raises:
        ValueError: If two documents define the same namespace.
    """
    merged: dict[str, Any] = {}
    for document in documents:
        for namespace, section in document.items():
            if namespace in merged:
                raise ValueError(f"Duplicate result namespace: {namespace}")
            merged[namespace] = section
    return merged


def validate_document(document: dict[str, Any]) -> dict[str, Any]:
    """Return *document* unchanged if it is usable.

    Raises:
        AnalysisFailureError: If the ``summary`` namespace is missing or not a dict.
    """
    if not isinstance(document.get(REQUIRED_NAMESPACE), dict):
        raise AnalysisFailureError(f"Result document has no {REQUIRED_NAMESPACE!r} section")
    return document


def error_section(exc: BaseException) -> dict[str, Any]:
    return {
        "error": True,
        "errorMessage": str(exc),
        "errorType": type(exc).__name__,
    }


def error_document(summary: dict[str, Any], exc: BaseException) -> dict[str, Any]:
    """Build the degraded document returned when a full analysis fails."""
    return {"summary": summary, "error": error_section(exc)}


def is_error_document(document: dict[str, Any]) -> bool:
    return isinstance(document.get("error"), dict) and document["error"].get("error") is True


def serialize(document: dict[str, Any], indent: int | None = None) -> str:
    """Encode a document as JSON, keeping non-ASCII text (emoji, names) readable."""
    return json.dumps(document, ensure_ascii=False, indent=indent)


def deserialize(text: str) -> dict[str, Any]:
    document = json.loads(text)
    if not isinstance(document, dict):
        raise AnalysisFailureError("Serialized result is not a JSON object")
    return document
