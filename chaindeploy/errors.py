"""
Error taxonomy for deployment runs.

Governing rule: fail closed before any irreversible action (broadcast,
ownership transfer); warn only once nothing but bookkeeping is affected.

Nothing in this package retries. Transport and filesystem errors raised by
collaborators propagate unmodified; only the types below are ours.
"""

from __future__ import annotations


class DeployError(Exception):
    """Base class for all chaindeploy errors."""


class InvalidVersionFormat(DeployError, ValueError):
    """Payload declared a version string that is not `X.Y.Z-Name[-Extra...]`."""

    def __init__(self, raw: str):
        self.raw = raw
        super().__init__(f"Invalid version string {raw!r}: expected 'X.Y.Z-Name'")


class VerificationMismatch(DeployError):
    """
    Fresh verification content differs from the published record.

    Raised before any broadcast. Set force_override to deploy anyway; the
    divergent content is then stored beside the canonical record.
    """

    def __init__(self, key: str, canonical_path: str):
        self.key = key
        self.canonical_path = canonical_path
        super().__init__(
            f"Verification content for {key} differs from {canonical_path}. "
            "Refusing to deploy without force_override."
        )


class AddressComputationMismatch(DeployError):
    """
    Broadcast landed at a different address than precomputed.

    Signals that the factory or salt derivation is inconsistent. Fatal and
    never retried.
    """

    def __init__(self, key: str, expected: str, actual: str):
        self.key = key
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Address mismatch for {key}: computed {expected}, deployed {actual}"
        )


class AlreadyDeployed(DeployError):
    """
    Broadcast rejected because the target address already holds code.

    Not a failure: the orchestrator turns it into a skip.
    """

    def __init__(self, address: str):
        self.address = address
        super().__init__(f"Code already present at {address}")


class ConfigurationMissing(DeployError):
    """
    Managed environment without a target owner.

    Reported as a warning on the ownership result, never raised.
    """

    def __init__(self, environment_id: int):
        self.environment_id = environment_id
        super().__init__(
            f"No target owner configured for managed environment {environment_id}; "
            "ownership left unchanged"
        )


class ConfigError(DeployError, ValueError):
    """Configuration file is malformed."""
