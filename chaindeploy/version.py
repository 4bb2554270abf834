"""
Version extraction from build payloads.

A payload declares its own version through a `version()` capability that
returns `"X.Y.Z-Name[-Extra...]"`. Reading it requires instantiating the
payload, which is the sandbox collaborator's job; this module only parses
the returned string.
"""

from __future__ import annotations

from dataclasses import dataclass

from .chain.interfaces import PayloadSandbox
from .errors import InvalidVersionFormat

VERSION_DELIMITER = "-"


@dataclass(frozen=True)
class ArtifactMetadata:
    """Name and version key of one build payload."""

    name: str
    version_and_variant: str  # verbatim, used as salt input and ledger key


def parse_version(raw: str) -> ArtifactMetadata:
    """
    Parse a declared version string.

    Only the second segment becomes the name; further hyphenated segments
    are ignored for the name but stay in the key.

        >>> parse_version("0.1.0-Beta-TestContract").name
        'Beta'

    Raises:
        InvalidVersionFormat: fewer than two segments, or an empty name
    """
    parts = raw.split(VERSION_DELIMITER)
    if len(parts) < 2 or not parts[1]:
        raise InvalidVersionFormat(raw)
    return ArtifactMetadata(name=parts[1], version_and_variant=raw)


def extract_metadata(payload: bytes, sandbox: PayloadSandbox) -> ArtifactMetadata:
    """Instantiate `payload` in the sandbox, read its version, and parse it."""
    return parse_version(sandbox.query_version(payload))
