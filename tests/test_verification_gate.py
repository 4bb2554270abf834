"""
Tests for the verification gate.

Key invariants:
1. A published record is never overwritten
2. Drift is refused unless force_override is set
3. Override writes a timestamp-qualified sibling
"""

from __future__ import annotations

from pathlib import Path

import pytest

from chaindeploy.errors import VerificationMismatch
from chaindeploy.verification import GateOutcome, VerificationGate

X = '{"sources": {"A.sol": "contract A {}"}}\n'
Y = '{"sources": {"A.sol": "contract A { uint x; }"}}\n'


@pytest.fixture
def storage(tmp_path: Path) -> Path:
    return tmp_path / "standard-json-inputs"


def _publish(storage: Path, key: str, content: str) -> Path:
    storage.mkdir(parents=True, exist_ok=True)
    path = storage / f"{key}.json"
    path.write_text(content, encoding="utf-8")
    return path


class TestCheck:
    def test_absent_record_passes(self, storage: Path):
        gate = VerificationGate(storage)
        result = gate.check("1.0.0-A", X)
        assert result.outcome is GateOutcome.ABSENT
        assert result.needs_write
        assert not storage.exists()

    def test_identical_record_passes_without_write(self, storage: Path):
        path = _publish(storage, "1.0.0-A", X)
        mtime = path.stat().st_mtime_ns

        result = VerificationGate(storage).check("1.0.0-A", X)

        assert result.outcome is GateOutcome.MATCH
        assert not result.needs_write
        assert path.stat().st_mtime_ns == mtime

    def test_divergent_record_refused(self, storage: Path):
        _publish(storage, "1.0.0-A", X)
        with pytest.raises(VerificationMismatch) as exc:
            VerificationGate(storage).check("1.0.0-A", Y)
        assert exc.value.key == "1.0.0-A"

    def test_divergent_record_with_override(self, storage: Path):
        _publish(storage, "1.0.0-A", X)
        result = VerificationGate(storage, force_override=True).check("1.0.0-A", Y)
        assert result.outcome is GateOutcome.DIVERGENT
        assert result.divergent

    def test_comparison_is_byte_exact(self, storage: Path):
        _publish(storage, "1.0.0-A", X)
        with pytest.raises(VerificationMismatch):
            VerificationGate(storage).check("1.0.0-A", X.rstrip("\n"))


class TestPersist:
    def test_first_write_goes_to_canonical_path(self, storage: Path):
        gate = VerificationGate(storage)
        path = gate.persist("1.0.0-A", X)
        assert path == storage / "1.0.0-A.json"
        assert path.read_text(encoding="utf-8") == X

    def test_divergent_write_leaves_canonical_untouched(self, storage: Path):
        canonical = _publish(storage, "1.0.0-A", X)
        gate = VerificationGate(storage, force_override=True, clock=lambda: 1700000000)

        path = gate.persist("1.0.0-A", Y, divergent=True)

        assert path == storage / "1.0.0-A-1700000000.json"
        assert path.read_text(encoding="utf-8") == Y
        assert canonical.read_text(encoding="utf-8") == X

    def test_divergent_writes_in_same_second_do_not_collide(self, storage: Path):
        _publish(storage, "1.0.0-A", X)
        gate = VerificationGate(storage, force_override=True, clock=lambda: 1700000000)

        first = gate.persist("1.0.0-A", Y, divergent=True)
        second = gate.persist("1.0.0-A", Y + " ", divergent=True)

        assert first != second
        assert first.read_text(encoding="utf-8") == Y

    def test_persisted_record_matches_its_own_content(self, storage: Path):
        gate = VerificationGate(storage)
        content = '{\r\n  "sources": {}\n}\n'

        path = gate.persist("1.0.0-A", content)

        assert path.read_bytes() == content.encode("utf-8")
        assert gate.check("1.0.0-A", content).outcome is GateOutcome.MATCH
