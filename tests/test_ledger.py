"""Tests for the run-scoped deployment ledger."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from chaindeploy.ledger import DeploymentLedger, DeploymentRecord, load_ledger

A1 = "0x" + "a1" * 20
B1 = "0x" + "b1" * 20


class TestRecording:
    def test_computed_updates_all_only(self):
        ledger = DeploymentLedger()
        ledger.record_computed("1.0.0-A", A1)
        assert ledger.all == {"1.0.0-A": A1}
        assert ledger.diff == {}
        assert not ledger.has_new_deployments

    def test_deployed_updates_both(self):
        ledger = DeploymentLedger()
        ledger.record_computed("1.0.0-A", A1)
        ledger.record_deployed("1.0.0-A", A1)
        assert ledger.all == {"1.0.0-A": A1}
        assert ledger.diff == {"1.0.0-A": A1}
        assert ledger.has_new_deployments

    def test_last_write_wins(self):
        ledger = DeploymentLedger()
        ledger.record_computed("1.0.0-A", A1)
        ledger.record_computed("1.0.0-A", B1)
        assert ledger.all == {"1.0.0-A": B1}

    def test_views_are_copies(self):
        ledger = DeploymentLedger()
        ledger.record_computed("1.0.0-A", A1)
        ledger.all["other"] = B1
        assert "other" not in ledger.all

    def test_records(self):
        ledger = DeploymentLedger()
        ledger.record_computed("1.0.0-B", B1)
        ledger.record_deployed("1.0.0-A", A1)
        assert ledger.records() == [
            DeploymentRecord(key="1.0.0-A", address=A1, newly_deployed=True),
            DeploymentRecord(key="1.0.0-B", address=B1, newly_deployed=False),
        ]


class TestFinalize:
    def test_writes_all_and_diff(self, tmp_path: Path):
        ledger = DeploymentLedger()
        ledger.record_computed("1.0.0-B", B1)
        ledger.record_deployed("1.0.0-A", A1)

        paths = ledger.finalize(tmp_path / "out" / "diff.json", tmp_path / "out" / "latest.json")

        assert json.loads(paths.all_path.read_text()) == {"1.0.0-A": A1, "1.0.0-B": B1}
        assert paths.diff_path is not None
        assert json.loads(paths.diff_path.read_text()) == {"1.0.0-A": A1}

    def test_no_diff_file_without_deployments(self, tmp_path: Path):
        ledger = DeploymentLedger()
        ledger.record_computed("1.0.0-A", A1)

        paths = ledger.finalize(tmp_path / "diff.json", tmp_path / "latest.json")

        assert paths.diff_path is None
        assert not (tmp_path / "diff.json").exists()
        assert (tmp_path / "latest.json").exists()

    def test_all_overwrites_previous_snapshot(self, tmp_path: Path):
        latest = tmp_path / "latest.json"
        latest.write_text(json.dumps({"0.9.0-Old": B1}))

        ledger = DeploymentLedger()
        ledger.record_computed("1.0.0-A", A1)
        ledger.finalize(tmp_path / "diff.json", latest)

        assert load_ledger(latest) == {"1.0.0-A": A1}

    def test_output_is_deterministic(self, tmp_path: Path):
        ledger = DeploymentLedger()
        ledger.record_computed("1.0.0-B", B1)
        ledger.record_computed("1.0.0-A", A1)
        ledger.finalize(tmp_path / "diff.json", tmp_path / "latest.json")

        text = (tmp_path / "latest.json").read_text()
        assert text.index("1.0.0-A") < text.index("1.0.0-B")
        assert text.endswith("\n")


class TestLoadLedger:
    def test_missing_file(self, tmp_path: Path):
        assert load_ledger(tmp_path / "absent.json") == {}

    def test_rejects_nested_values(self, tmp_path: Path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"1.0.0-A": {"address": A1}}))
        with pytest.raises(ValueError):
            load_ledger(path)
