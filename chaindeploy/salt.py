"""
Deterministic salt derivation.

The salt is the only address-determining input to the deterministic
factory, so identical (caller, version, suffix) must yield identical bytes.

Layout (32 bytes):

    [0:20]  caller identity
    [20]    protection flag, always CROSSCHAIN_ALLOWED
    [21:32] low 11 bytes of hash(len(version) ‖ version ‖ len(suffix) ‖ suffix)

Each part is prefixed with its UTF-8 length as 4 big-endian bytes, so
("1.0.0-Token", "2") and ("1.0.0-Token2", None) hash differently.
"""

from __future__ import annotations

import hashlib
from typing import Callable

from .util import ADDRESS_BYTES, address_to_bytes

SALT_BYTES = 32

# Redeploy protection off: the same salt resolves to the same address on
# every chain.
CROSSCHAIN_ALLOWED = b"\x00"

ENTROPY_BYTES = SALT_BYTES - ADDRESS_BYTES - len(CROSSCHAIN_ALLOWED)

HashFunction = Callable[[bytes], bytes]


def sha3_256(data: bytes) -> bytes:
    return hashlib.sha3_256(data).digest()


def _length_prefixed(part: str) -> bytes:
    raw = part.encode("utf-8")
    return len(raw).to_bytes(4, "big") + raw


def deployment_key(version: str, suffix: str | None = None) -> str:
    """Ledger and verification key: `version` or `version-suffix`."""
    if suffix is None:
        return version
    return f"{version}-{suffix}"


def derive_salt(
    caller: str | bytes,
    version: str,
    suffix: str | None = None,
    *,
    hash_fn: HashFunction = sha3_256,
) -> bytes:
    """
    Derive the 32-byte factory salt.

    Args:
        caller: Deploying identity (hex address or 20 raw bytes)
        version: Verbatim version string declared by the payload
        suffix: Optional instance suffix for multiple copies of one version
        hash_fn: Digest function; must return at least ENTROPY_BYTES bytes

    Returns:
        32-byte salt
    """
    preimage = _length_prefixed(version)
    if suffix is not None:
        preimage += _length_prefixed(suffix)

    digest = hash_fn(preimage)
    if len(digest) < ENTROPY_BYTES:
        raise ValueError(f"hash_fn returned {len(digest)} bytes, need {ENTROPY_BYTES}")

    salt = address_to_bytes(caller) + CROSSCHAIN_ALLOWED + digest[-ENTROPY_BYTES:]
    assert len(salt) == SALT_BYTES
    return salt


def salt_with_suffix(
    caller: str | bytes,
    version: str,
    suffix: str,
    *,
    hash_fn: HashFunction = sha3_256,
) -> bytes:
    """Salt for one of several instances of identical code."""
    return derive_salt(caller, version, suffix, hash_fn=hash_fn)
