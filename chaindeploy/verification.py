"""
Verification gate for published build inputs.

Every deployed version has a canonical verification document (the
standard-JSON compiler input third parties use to reproduce the build).
Once published, that document is immutable:

- no record yet          → pass, record is written after deployment
- record, byte-identical → pass, nothing written
- record, different      → VerificationMismatch, unless force_override
- force_override         → pass as divergent; the new content is written to
                           a timestamp-qualified sibling, never the canonical path

The gate runs before broadcast, so a drifted build is refused while the
refusal is still free.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable

from .errors import VerificationMismatch
from .util import atomic_write_text, unix_timestamp


class GateOutcome(str, Enum):
    ABSENT = "absent"  # No prior record
    MATCH = "match"  # Prior record identical
    DIVERGENT = "divergent"  # Prior record differs, override set


@dataclass(frozen=True)
class GateResult:
    """Result of VerificationGate.check()."""

    key: str
    outcome: GateOutcome
    canonical_path: Path

    @property
    def divergent(self) -> bool:
        return self.outcome is GateOutcome.DIVERGENT

    @property
    def needs_write(self) -> bool:
        return self.outcome is not GateOutcome.MATCH


class VerificationGate:
    """
    Compares fresh verification content against persisted records.

    Records live flat under storage_dir:

        standard-json-inputs/1.0.0-Token.json
        standard-json-inputs/1.0.0-Token-1760659200.json   (divergent copy)
    """

    def __init__(
        self,
        storage_dir: Path,
        *,
        force_override: bool = False,
        clock: Callable[[], int] = unix_timestamp,
    ):
        self.storage_dir = storage_dir
        self.force_override = force_override
        self._clock = clock

    def canonical_path(self, key: str) -> Path:
        return self.storage_dir / f"{key}.json"

    def check(self, key: str, fresh_content: str) -> GateResult:
        """
        Compare `fresh_content` with the canonical record for `key`.

        Pure: reads only.

        Raises:
            VerificationMismatch: record differs and force_override is unset
        """
        path = self.canonical_path(key)
        if not path.exists():
            return GateResult(key=key, outcome=GateOutcome.ABSENT, canonical_path=path)

        if path.read_bytes() == fresh_content.encode("utf-8"):
            return GateResult(key=key, outcome=GateOutcome.MATCH, canonical_path=path)

        if not self.force_override:
            raise VerificationMismatch(key, str(path))

        return GateResult(key=key, outcome=GateOutcome.DIVERGENT, canonical_path=path)

    def persist(self, key: str, content: str, *, divergent: bool = False) -> Path:
        """
        Write verification content for `key`.

        Args:
            key: Deployment key
            content: Verification document
            divergent: Write to a timestamp-qualified sibling instead of
                the canonical path

        Returns:
            Path written
        """
        if not divergent:
            path = self.canonical_path(key)
        else:
            path = self._divergent_path(key)
        atomic_write_text(path, content)
        return path

    def _divergent_path(self, key: str) -> Path:
        stamp = self._clock()
        path = self.storage_dir / f"{key}-{stamp}.json"
        n = 1
        while path.exists():
            path = self.storage_dir / f"{key}-{stamp}.{n}.json"
            n += 1
        return path
