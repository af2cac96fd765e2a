"""Command-line report for a single conversation snapshot.

Usage: python chat_summary.py SNAPSHOT.json [--output-dir DIR] [--force-large] [-v]
"""

from __future__ import annotations

import argparse
import asyncio
import csv
import json
import logging
import os
import sys
from typing import Any

from chat_insights.document import is_error_document
from chat_insights.errors import SnapshotFormatError
from chat_insights.orchestrator import AnalysisConfig, AnalysisOrchestrator
from chat_insights.snapshot import ConversationSnapshot, snapshot_from_dict
from chat_insights.store import InMemoryConversationSource, InMemoryResultStore

logger = logging.getLogger(__name__)


def load_snapshot(path: str) -> ConversationSnapshot:
    """Load a conversation snapshot from a JSON file.

    Raises:
        FileNotFoundError: If the file at *path* does not exist.
        json.JSONDecodeError: If the file contains invalid JSON.
        SnapshotFormatError: If the JSON does not describe a snapshot.
    """
    with open(path, "r", encoding="utf-8") as f:
        return snapshot_from_dict(json.load(f))


def run_analysis(snapshot: ConversationSnapshot, config: AnalysisConfig) -> dict[str, Any]:
    """Analyze one snapshot outside the web service."""
    source = InMemoryConversationSource()
    source.add(snapshot)
    orchestrator = AnalysisOrchestrator(source, InMemoryResultStore(), config)
    return asyncio.run(orchestrator.analyze(snapshot.id))


def save_analysis_files(
    conversation_id: str,
    document: dict[str, Any],
    output_dir: str = "chat_analysis",
) -> list[str]:
    """Write the result document and a per-participant CSV to *output_dir*.

    Args:
        conversation_id: Used as the file name prefix.
        document: The merged result document.
        output_dir: Created if it doesn't exist.

    Returns:
        Paths of the files written.
    """
    os.makedirs(output_dir, exist_ok=True)
    written = []

    json_path = os.path.join(output_dir, f"{conversation_id}_analysis.json")
    with open(json_path, "w", encoding="utf-8") as f:
        json.dump(document, f, indent=2, ensure_ascii=False)
    written.append(json_path)

    users = document.get("messagesByUser")
    if users:
        csv_path = os.path.join(output_dir, f"{conversation_id}_users.csv")
        with open(csv_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=["userId", "name", "messageCount", "percentage"])
            writer.writeheader()
            writer.writerows(users)
        written.append(csv_path)

    return written


def print_summary_report(document: dict[str, Any]) -> None:
    """Print the human-readable summary of a result document to stdout."""
    summary = document["summary"]
    print(f"\n{'=' * 60}")
    print("Chat Summary")
    print(f"{'=' * 60}")
    print(f"Total Messages: {summary['totalMessages']:,}")
    print(f"Participants: {summary['totalUsers']:,}")
    print(f"Date Range: {summary['dateRange']}")
    print(f"Duration: {summary['durationDays']:,} days")
    print(f"Messages per Day: {summary['avgMessagesPerDay']:.1f}")
    print(f"Media Messages: {summary['totalMedia']:,}")

    if is_error_document(document):
        status = summary.get("status", "Analysis failed")
        print(f"\n{status}: {document['error']['errorMessage']}")

    users = document.get("messagesByUser") or []
    if users:
        print("\nMessages by Participant:")
        for user in users:
            print(f"  {user['name']}: {user['messageCount']:,} ({user['percentage']:.1f}%)")

    time_analysis = document.get("timeAnalysis")
    if time_analysis and time_analysis["totalMessages"]:
        day = time_analysis["mostActiveDay"]
        hour = time_analysis["mostActiveHour"]
        print(f"\nMost Active Day: {day['day']} ({day['count']:,} messages)")
        print(f"Most Active Hour: {hour['hour']}:00 ({hour['count']:,} messages)")

    dynamics = document.get("conversationDynamics")
    if dynamics:
        print(f"\n{'=' * 60}")
        print("Conversation Dynamics")
        print(f"{'=' * 60}")
        print(f"Conversations: {dynamics['totalConversations']:,}")
        print(f"Average Length: {dynamics['averageConversationLength']:.1f} messages")
        print(f"Health Score: {dynamics['conversationHealthScore']:.1f}")

    relationship = document.get("relationshipDynamics")
    if relationship:
        print(f"Relationship Health: {relationship['relationshipHealthScore']:.1f}")

    optimization = document.get("optimization")
    if optimization:
        print(
            f"\nLarge conversation: reduced analysis over "
            f"{optimization['batchCount']} batches"
        )
    print(f"{'=' * 60}")


def main(
    path: str = "snapshot.json",
    output_dir: str | None = None,
    force_large: bool = False,
) -> dict[str, Any]:
    """Analyze *path*, print the report and optionally save the result.

    Exits with status 1 if the file is missing or is not a valid snapshot.
    """
    try:
        snapshot = load_snapshot(path)
    except FileNotFoundError:
        print(f"Error: {path} not found.")
        sys.exit(1)
    except json.JSONDecodeError as e:
        print(f"Error: {path} is not valid JSON: {e}")
        sys.exit(1)
    except SnapshotFormatError as e:
        print(f"Error: {path} is not a valid snapshot: {e}")
        sys.exit(1)

    config = AnalysisConfig()
    if force_large:
        config = AnalysisConfig(max_messages_to_analyze=sys.maxsize)

    document = run_analysis(snapshot, config)
    print_summary_report(document)

    if output_dir:
        for written in save_analysis_files(snapshot.id, document, output_dir):
            print(f"Saved {written}")
    return document


def cli() -> None:
    parser = argparse.ArgumentParser(description="Analyze a chat log snapshot")
    parser.add_argument("snapshot", nargs="?", default="snapshot.json",
                        help="Path to the snapshot JSON file (default: snapshot.json)")
    parser.add_argument("--output-dir", "-o",
                        help="Write the result document and participant CSV here")
    parser.add_argument("--force-large", action="store_true",
                        help="Run every analyzer even on very long conversations")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    main(args.snapshot, output_dir=args.output_dir, force_large=args.force_large)


if __name__ == "__main__":
    cli()
