"""
Run-scoped deployment ledger.

Two views are kept side by side so consumers never have to re-diff history:

- all:  every key computed this run, skipped or deployed (last write wins)
- diff: only keys newly deployed this run

`all` is always persisted (it replaces the environment's previous
snapshot); `diff` only when something was actually deployed.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from .util import atomic_write_text, dump_json


@dataclass(frozen=True)
class DeploymentRecord:
    """One key's outcome in the current run."""

    key: str
    address: str
    newly_deployed: bool


@dataclass(frozen=True)
class LedgerPaths:
    """Files written by DeploymentLedger.finalize()."""

    all_path: Path
    diff_path: Path | None  # None when nothing was deployed


class DeploymentLedger:
    def __init__(self) -> None:
        self._all: dict[str, str] = {}
        self._diff: dict[str, str] = {}
        self.has_new_deployments = False

    @property
    def all(self) -> dict[str, str]:
        return dict(self._all)

    @property
    def diff(self) -> dict[str, str]:
        return dict(self._diff)

    def record_computed(self, key: str, address: str) -> None:
        """Record a computed address, whether or not it gets deployed."""
        self._all[key] = address

    def record_deployed(self, key: str, address: str) -> None:
        """Record a deployment made by this run."""
        self._all[key] = address
        self._diff[key] = address
        self.has_new_deployments = True

    def records(self) -> list[DeploymentRecord]:
        return [
            DeploymentRecord(key=key, address=address, newly_deployed=key in self._diff)
            for key, address in sorted(self._all.items())
        ]

    def finalize(self, diff_path: Path, all_path: Path) -> LedgerPaths:
        """
        Persist the ledger.

        Args:
            diff_path: Destination for this run's changes
            all_path: Destination for the cumulative picture (overwritten)

        Returns:
            LedgerPaths with diff_path None if nothing was deployed
        """
        atomic_write_text(all_path, dump_json(self._all))
        if not self.has_new_deployments:
            return LedgerPaths(all_path=all_path, diff_path=None)
        atomic_write_text(diff_path, dump_json(self._diff))
        return LedgerPaths(all_path=all_path, diff_path=diff_path)


def load_ledger(path: Path) -> dict[str, str]:
    """
    Read a persisted ledger file.

    Returns an empty dict when the file does not exist.

    Raises:
        ValueError: if the file is not a flat JSON object of strings
    """
    if not path.exists():
        return {}
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in data.items()
    ):
        raise ValueError(f"{path} is not a key→address ledger")
    return data
