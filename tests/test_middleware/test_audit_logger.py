"""Tests for the audit trail."""

from __future__ import annotations

import io
import json

import pytest

from drive_gmail_manager.middleware.audit_logger import (
    REDACTED,
    AuditLogger,
    redact,
)
from drive_gmail_manager.schemas.results import BulkOperationResult


def read_entries(capsys: pytest.CaptureFixture[str]) -> list[dict]:
    lines = capsys.readouterr().err.strip().splitlines()
    return [json.loads(line)["audit"] for line in lines if line.startswith("{")]


class TestRedact:
    """Tests for redact."""

    def test_sensitive_keys_at_any_depth(self) -> None:
        params = {"file_id": "f1", "Email": "a@b.com", "nested": {"token": "t"}}

        assert redact(params) == {
            "file_id": "f1",
            "Email": REDACTED,
            "nested": {"token": REDACTED},
        }

    def test_addresses_in_free_text_are_masked(self) -> None:
        assert redact({"query": "from:bob@example.com invoice"}) == {
            "query": f"from:{REDACTED} invoice"
        }

    def test_long_selections_become_counts(self) -> None:
        assert redact({"message_ids": [f"m{i}" for i in range(50)]}) == {
            "message_ids": "[50 items]"
        }

    def test_short_selections_are_kept(self) -> None:
        assert redact({"file_ids": ["a", "b"]}) == {"file_ids": ["a", "b"]}

    def test_non_string_values_pass_through(self) -> None:
        assert redact({"days_old": 30, "role": None}) == {
            "days_old": 30,
            "role": None,
        }


class TestAuditLogger:
    """Tests for AuditLogger."""

    def test_tool_call_is_written_to_stderr(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        AuditLogger().log_tool_call(
            "drive_search", {"query": "budget"}, result_status="success"
        )

        captured = capsys.readouterr()
        assert captured.out == ""
        entry = json.loads(captured.err.strip())["audit"]
        assert entry["event"] == "tool_call"
        assert entry["name"] == "drive_search"
        assert entry["parameters"] == {"query": "budget"}
        assert entry["outcome"] == "success"
        assert "error_message" not in entry

    def test_tool_call_parameters_are_redacted(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        AuditLogger().log_tool_call(
            "drive_share_file", {"file_id": "f1", "email": "bob@example.com"}
        )

        entry = read_entries(capsys)[0]
        assert entry["parameters"] == {"file_id": "f1", "email": REDACTED}

    def test_custom_stream(self) -> None:
        stream = io.StringIO()

        AuditLogger(stream=stream).log_auth_event("logout")

        entry = json.loads(stream.getvalue())["audit"]
        assert entry["event"] == "auth"
        assert entry["name"] == "logout"

    def test_disabled_logger_writes_nothing(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        audit = AuditLogger(enabled=False)

        audit.log_tool_call("drive_search", {})

        assert audit.enabled is False
        assert capsys.readouterr().err == ""

    def test_auth_event(self, capsys: pytest.CaptureFixture[str]) -> None:
        AuditLogger().log_auth_event(
            "login", success=False, details={"reason": "state", "state": "abc"}
        )

        entry = read_entries(capsys)[0]
        assert entry["event"] == "auth"
        assert entry["name"] == "login"
        assert entry["outcome"] == "error"
        assert entry["parameters"] == {"reason": "state", "state": REDACTED}

    def test_bulk_run_with_failures_is_partial(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        result = BulkOperationResult(
            operation="delete_old_files", total=5, succeeded=4, failed=1
        )

        AuditLogger().log_bulk_run(result)

        entry = read_entries(capsys)[0]
        assert entry["event"] == "bulk_run"
        assert entry["name"] == "delete_old_files"
        assert entry["outcome"] == "partial"
        assert entry["counts"] == {
            "total": 5,
            "succeeded": 4,
            "failed": 1,
            "skipped": 0,
        }

    def test_clean_bulk_run_is_success(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        result = BulkOperationResult(
            operation="organize_files_by_type", total=3, succeeded=2, skipped=1
        )

        AuditLogger().log_bulk_run(result)

        assert read_entries(capsys)[0]["outcome"] == "success"
