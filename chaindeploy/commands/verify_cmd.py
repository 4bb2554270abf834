"""Offline verification gate check."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console

from ..errors import VerificationMismatch
from ..orchestrator import VERIFICATION_SUBDIR
from ..verification import GateOutcome, VerificationGate


def run_verify_check(root: Path, subfolder: str, key: str, content_file: Path) -> int:
    """
    Compare a freshly generated verification document with the published one.

    Exit code 0 when the gate would pass without override, 1 otherwise.
    """
    console = Console()
    err = Console(stderr=True)

    gate = VerificationGate(root / subfolder / VERIFICATION_SUBDIR)
    fresh = content_file.read_bytes().decode("utf-8")
    try:
        result = gate.check(key, fresh)
    except VerificationMismatch as e:
        err.print(str(e), style="bold red", markup=False)
        return 1

    if result.outcome is GateOutcome.ABSENT:
        console.print(f"{key}: no published record, first deployment will publish it", style="yellow")
    else:
        console.print(f"{key}: matches {result.canonical_path}", style="green")
    return 0
