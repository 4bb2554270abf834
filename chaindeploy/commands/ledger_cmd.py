"""Ledger and audit log CLI commands."""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..audit_log import format_audit_entry, read_audit_log
from ..ledger import load_ledger


def latest_ledger_path(root: Path, subfolder: str, environment_id: int) -> Path:
    return root / subfolder / f"{environment_id}-latest.json"


def run_ledger_show(
    root: Path,
    subfolder: str,
    environment_id: int,
    *,
    output_json: bool = False,
) -> int:
    err = Console(stderr=True)
    path = latest_ledger_path(root, subfolder, environment_id)
    try:
        entries = load_ledger(path)
    except ValueError as e:
        err.print(str(e), style="bold red", markup=False)
        return 1

    if not entries:
        err.print(f"No ledger for environment {environment_id} at {path}", style="yellow")
        return 1

    if output_json:
        print(json.dumps(entries, indent=2, sort_keys=True))
        return 0

    table = Table(title=f"Environment {environment_id}")
    table.add_column("key", style="cyan", no_wrap=True)
    table.add_column("address")
    for key, address in sorted(entries.items()):
        table.add_row(key, address)

    Console().print(table)
    return 0


def run_audit(root: Path, *, last_n: int | None = None) -> int:
    console = Console()
    entries = read_audit_log(root, last_n=last_n)
    if not entries:
        console.print("No audit entries.", style="dim")
        return 0
    for entry in entries:
        console.print(format_audit_entry(entry), markup=False)
    return 0
