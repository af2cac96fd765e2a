"""Tests for chat_summary.py::main() and its file output."""

from __future__ import annotations

import csv
import json
import os
from unittest.mock import patch

import pytest

from chat_insights.document import error_document
from chat_insights.errors import SnapshotFormatError
from chat_insights.message_analyzer import empty_summary
from chat_insights.orchestrator import FAILED_STATUS

from helpers import snapshot_payload


MODULE = "chat_summary"


@pytest.fixture()
def snapshot_file(tmp_path):
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(snapshot_payload(), ensure_ascii=False), encoding="utf-8")
    return path


class TestMainErrorHandling:
    """Verify main() exits with code 1 on file-related errors."""

    def test_missing_file_exits_1(self):
        with patch(
            f"{MODULE}.load_snapshot",
            side_effect=FileNotFoundError("not found"),
        ):
            with pytest.raises(SystemExit) as exc_info:
                from chat_summary import main

                main("nonexistent.json")
            assert exc_info.value.code == 1

    def test_invalid_json_exits_1(self):
        err = json.JSONDecodeError("bad value", "", 0)
        with patch(
            f"{MODULE}.load_snapshot",
            side_effect=err,
        ):
            with pytest.raises(SystemExit) as exc_info:
                from chat_summary import main

                main("corrupt.json")
            assert exc_info.value.code == 1

    def test_invalid_snapshot_exits_1(self):
        with patch(
            f"{MODULE}.load_snapshot",
            side_effect=SnapshotFormatError("Snapshot is missing 'id'"),
        ):
            with pytest.raises(SystemExit) as exc_info:
                from chat_summary import main

                main("other.json")
            assert exc_info.value.code == 1

    def test_real_missing_file_exits_1(self, tmp_path):
        from chat_summary import main

        with pytest.raises(SystemExit) as exc_info:
            main(str(tmp_path / "absent.json"))
        assert exc_info.value.code == 1


class TestMainSuccessfulRun:
    """Verify main() completes and reports when the snapshot is valid."""

    def test_successful_run(self, snapshot_file, capsys):
        from chat_summary import main

        document = main(str(snapshot_file))
        assert document["summary"]["totalMessages"] == 4
        out = capsys.readouterr().out
        assert "Chat Summary" in out
        assert "Total Messages: 4" in out
        assert "Conversation Dynamics" in out

    def test_force_large_runs_every_analyzer(self, snapshot_file):
        from chat_summary import main

        with patch(f"{MODULE}.print_summary_report"):
            document = main(str(snapshot_file), force_large=True)
        assert "optimization" not in document
        assert "temporalInsights" in document

    def test_output_dir(self, snapshot_file, tmp_path):
        from chat_summary import main

        out_dir = tmp_path / "out"
        with patch(f"{MODULE}.print_summary_report"):
            main(str(snapshot_file), output_dir=str(out_dir))
        assert (out_dir / "chat-1_analysis.json").exists()
        assert (out_dir / "chat-1_users.csv").exists()


class TestPrintSummaryReport:
    def test_reports_failure(self, capsys):
        from chat_summary import print_summary_report

        summary = {**empty_summary(), "status": FAILED_STATUS}
        print_summary_report(error_document(summary, RuntimeError("boom")))
        out = capsys.readouterr().out
        assert "Total Messages: 0" in out
        assert "Analysis failed: boom" in out

    def test_no_failure_line_for_complete_document(self, capsys):
        from chat_summary import print_summary_report

        print_summary_report({"summary": empty_summary()})
        assert "Analysis failed" not in capsys.readouterr().out


class TestSaveAnalysisFiles:
    DOCUMENT = {
        "summary": {"totalMessages": 3},
        "messagesByUser": [
            {"userId": "b", "name": "Bob", "messageCount": 2, "percentage": 66.7},
            {"userId": "a", "name": "Zoë", "messageCount": 1, "percentage": 33.3},
        ],
    }

    def test_writes_json_and_csv(self, tmp_path):
        from chat_summary import save_analysis_files

        written = save_analysis_files("trip", self.DOCUMENT, str(tmp_path))
        assert [os.path.basename(p) for p in written] == ["trip_analysis.json", "trip_users.csv"]

        saved = json.loads((tmp_path / "trip_analysis.json").read_text(encoding="utf-8"))
        assert saved == self.DOCUMENT

        with open(tmp_path / "trip_users.csv", newline="", encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
        assert [r["name"] for r in rows] == ["Bob", "Zoë"]
        assert rows[0]["messageCount"] == "2"

    def test_no_csv_without_users(self, tmp_path):
        from chat_summary import save_analysis_files

        written = save_analysis_files("empty", {"summary": {}}, str(tmp_path))
        assert len(written) == 1
        assert not (tmp_path / "empty_users.csv").exists()
