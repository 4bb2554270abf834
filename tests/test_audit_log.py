"""Tests for the deployment audit log."""

from __future__ import annotations

from pathlib import Path

from chaindeploy.audit_log import (
    DEPLOY,
    format_audit_entry,
    get_audit_log_path,
    log_operation,
    read_audit_log,
)


def test_log_and_read_back(tmp_path: Path):
    log_operation(tmp_path, DEPLOY, {"key": "1.0.0-A", "environment": 1})
    log_operation(tmp_path, DEPLOY, {"key": "1.0.0-B", "environment": 1})

    entries = read_audit_log(tmp_path)

    assert [e.metadata["key"] for e in entries] == ["1.0.0-A", "1.0.0-B"]
    assert read_audit_log(tmp_path, last_n=1)[0].metadata["key"] == "1.0.0-B"


def test_missing_log_is_empty(tmp_path: Path):
    assert read_audit_log(tmp_path) == []


def test_malformed_lines_skipped(tmp_path: Path):
    log_operation(tmp_path, DEPLOY, {"key": "1.0.0-A"})
    with get_audit_log_path(tmp_path).open("a", encoding="utf-8") as f:
        f.write("not json\n")
        f.write('{"no_timestamp": true}\n')

    assert len(read_audit_log(tmp_path)) == 1


def test_format_entry(tmp_path: Path):
    entry = log_operation(tmp_path, DEPLOY, {"key": "1.0.0-A"})
    text = format_audit_entry(entry)
    assert text.splitlines()[0].endswith("deploy")
    assert "key: 1.0.0-A" in text
