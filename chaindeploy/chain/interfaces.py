"""
Collaborator protocols for chain access.

The orchestrator never talks to a network directly. Everything that touches
an execution environment goes through one of these seams, so the state
machine can be driven by a live transport or by SimulatedChain.

Key design decisions:
- compute_address is pure; deploy is the only irreversible call
- Addresses cross the seams as `0x` hex strings
- Sandboxed version probing is a capability, not orchestrator logic
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class EnvironmentContext(Protocol):
    """The environment a run targets, seen from the deploying identity."""

    @property
    def environment_id(self) -> int:
        """Chain id of the current environment."""
        ...

    @property
    def caller(self) -> str:
        """Address of the deploying identity."""
        ...

    def has_code(self, address: str) -> bool:
        """True if `address` already holds deployed code."""
        ...


class AddressFactory(Protocol):
    """Deterministic factory address precomputation."""

    def compute_address(self, salt: bytes, caller: str) -> str:
        """
        Address a deployment with `salt` from `caller` will land at.

        Must not mutate the environment.
        """
        ...


class Broadcaster(Protocol):
    """Submits the irreversible deployment transaction."""

    def deploy(self, salt: bytes, payload: bytes) -> str:
        """
        Broadcast a factory deployment and return the resulting address.

        Raises:
            AlreadyDeployed: if the factory rejected a colliding deployment
        """
        ...


class PayloadSandbox(Protocol):
    """Instantiate-and-query primitive with no persistent effect."""

    def query_version(self, payload: bytes) -> str:
        """Instantiate `payload` transiently and return its `version()`."""
        ...


class VerificationArtifactProducer(Protocol):
    """Produces the canonical build-input document for third-party verification."""

    def generate(self, name: str) -> str:
        ...


@runtime_checkable
class OwnableInstance(Protocol):
    """Handle on a deployed instance with a single administrative owner."""

    @property
    def address(self) -> str:
        ...

    def owner(self) -> str:
        ...

    def transfer_ownership(self, new_owner: str) -> None:
        """Privileged, irreversible owner change."""
        ...
