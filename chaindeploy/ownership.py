"""
Ownership handoff on managed environments.

Managed (production-like) environments get their instances handed to a
designated owner; unmanaged ones keep the deploying identity as owner.
Applying the policy any number of times issues at most one transfer call.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .chain.interfaces import OwnableInstance
from .errors import ConfigurationMissing
from .util import same_address


class OwnershipOutcome(str, Enum):
    UNMANAGED = "unmanaged"  # Environment not managed, nothing to do
    NO_TARGET = "no_target"  # Managed but no target owner configured
    ALREADY_OWNER = "already_owner"  # Target already owns the instance
    TRANSFERRED = "transferred"  # One transfer call issued


@dataclass(frozen=True)
class OwnershipResult:
    """Result of OwnershipPolicy.apply()."""

    outcome: OwnershipOutcome
    address: str
    previous_owner: str | None = None
    new_owner: str | None = None
    warning: ConfigurationMissing | None = None

    @property
    def transferred(self) -> bool:
        return self.outcome is OwnershipOutcome.TRANSFERRED


class OwnershipPolicy:
    def __init__(self, managed_environments: frozenset[int], target_owner: str | None):
        self.managed_environments = frozenset(managed_environments)
        self.target_owner = target_owner

    def classify(self, environment_id: int) -> bool:
        """True if `environment_id` is managed."""
        return environment_id in self.managed_environments

    def apply(self, instance: OwnableInstance, environment_id: int) -> OwnershipResult:
        """
        Hand `instance` to the target owner if the environment is managed.

        Never raises for missing configuration; the result carries a
        ConfigurationMissing warning instead.
        """
        if not self.classify(environment_id):
            return OwnershipResult(outcome=OwnershipOutcome.UNMANAGED, address=instance.address)

        if not self.target_owner:
            return OwnershipResult(
                outcome=OwnershipOutcome.NO_TARGET,
                address=instance.address,
                warning=ConfigurationMissing(environment_id),
            )

        current = instance.owner()
        if same_address(current, self.target_owner):
            return OwnershipResult(
                outcome=OwnershipOutcome.ALREADY_OWNER,
                address=instance.address,
                previous_owner=current,
                new_owner=current,
            )

        instance.transfer_ownership(self.target_owner)
        return OwnershipResult(
            outcome=OwnershipOutcome.TRANSFERRED,
            address=instance.address,
            previous_owner=current,
            new_owner=self.target_owner,
        )
