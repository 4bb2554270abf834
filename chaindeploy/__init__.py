"""
chaindeploy - deterministic, idempotent artifact deployment across chains.

Orchestrates: extract version → derive salt → precompute address →
[skip | verification gate → broadcast] → ledger → ownership handoff

Key invariants:
- Identical inputs always land at an identical address
- Every reversible check runs before the one irreversible broadcast
- A published verification record is never overwritten
"""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
