"""
Audit log for deployment runs.

Broadcasts and ownership transfers cannot be rolled back, so each one is
accounted for as it happens. So are skips and aborts, which explain why
a run did *not* act.

This module provides:
- Structured JSON Lines logging of deployment operations
- Reading entries back (malformed lines skipped)
- Human-readable formatting
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

# Operation names
DEPLOY = "deploy"
DEPLOY_SKIPPED = "deploy.skipped"
DEPLOY_ABORTED = "deploy.aborted"
DEPLOY_FAILED = "deploy.failed"
OWNERSHIP_TRANSFER = "ownership.transfer"


@dataclass
class AuditEntry:
    """A single audit log entry."""
    timestamp: str
    operation: str
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "timestamp": self.timestamp,
            "operation": self.operation,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AuditEntry":
        """Create from dictionary."""
        return cls(
            timestamp=data["timestamp"],
            operation=data["operation"],
            metadata=data.get("metadata", {}),
        )


def get_audit_log_path(root: Path) -> Path:
    """Get the path to the audit log file."""
    return root / ".chaindeploy" / "audit.log"


def log_operation(
    root: Path,
    operation: str,
    metadata: dict[str, Any] | None = None,
) -> AuditEntry:
    """
    Log an operation to the audit log.

    Args:
        root: Deployment output root
        operation: Name of the operation (e.g., "deploy", "ownership.transfer")
        metadata: Additional context (key, address, environment, ...)

    Returns:
        The created audit entry
    """
    entry = AuditEntry(
        timestamp=datetime.now(timezone.utc).isoformat(),
        operation=operation,
        metadata=metadata or {},
    )

    log_path = get_audit_log_path(root)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    # Append as JSON Lines format (one JSON object per line)
    with log_path.open("a", encoding="utf-8") as f:
        f.write(json.dumps(entry.to_dict(), sort_keys=True) + "\n")

    return entry


def read_audit_log(root: Path, last_n: int | None = None) -> list[AuditEntry]:
    """
    Read entries from the audit log.

    Args:
        root: Deployment output root
        last_n: If specified, return only the last N entries

    Returns:
        List of audit entries, oldest first
    """
    log_path = get_audit_log_path(root)
    if not log_path.exists():
        return []

    entries = []
    with log_path.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line:
                try:
                    data = json.loads(line)
                    entries.append(AuditEntry.from_dict(data))
                except (json.JSONDecodeError, KeyError):
                    continue  # Skip malformed lines

    if last_n is not None:
        return entries[-last_n:]
    return entries


def format_audit_entry(entry: AuditEntry) -> str:
    """Format an audit entry for human-readable display."""
    lines = [f"[{entry.timestamp}] {entry.operation}"]
    for key, value in entry.metadata.items():
        lines.append(f"  {key}: {value}")
    return "\n".join(lines)
