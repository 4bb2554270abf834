"""
Small utilities shared across the deployment subsystem.

This module intentionally avoids third-party dependencies.
"""

from __future__ import annotations

import json
import re
import time
from pathlib import Path
from typing import Any

ADDRESS_BYTES = 20

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_address(value: str) -> bool:
    """Check for a `0x`-prefixed 20-byte hex address."""
    return bool(_ADDRESS_RE.match(value))


def address_to_bytes(address: str | bytes) -> bytes:
    """
    Convert an address to its 20 raw bytes.

    Args:
        address: `0x`-prefixed hex string or 20 raw bytes

    Raises:
        ValueError: if the value is not a 20-byte address
    """
    if isinstance(address, bytes):
        if len(address) != ADDRESS_BYTES:
            raise ValueError(f"address must be {ADDRESS_BYTES} bytes, got {len(address)}")
        return address
    if not is_address(address):
        raise ValueError(f"not a 20-byte hex address: {address!r}")
    return bytes.fromhex(address[2:])


def format_address(raw: bytes) -> str:
    """Render 20 raw bytes as a lowercase `0x` address."""
    return "0x" + address_to_bytes(raw).hex()


def same_address(a: str, b: str) -> bool:
    """Compare two hex addresses ignoring checksum casing."""
    return a.lower() == b.lower()


def unix_timestamp() -> int:
    """Current wall clock as whole seconds."""
    return int(time.time())


def atomic_write_text(path: Path, text: str) -> None:
    """Write `text` to `path` via temp file + rename, creating parents.

    Newlines are written as given, so the file bytes equal `text.encode()`.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_name(path.name + ".tmp")
    temp_path.write_text(text, encoding="utf-8", newline="")
    temp_path.replace(path)


def dump_json(data: Any) -> str:
    """Deterministic JSON: sorted keys, two-space indent, trailing newline."""
    return json.dumps(data, indent=2, sort_keys=True) + "\n"
