"""Tests for ownership handoff."""

from __future__ import annotations

from chaindeploy.chain.simulated import SimulatedInstance
from chaindeploy.errors import ConfigurationMissing
from chaindeploy.ownership import OwnershipOutcome, OwnershipPolicy

from .conftest import CALLER, OWNER

INSTANCE_ADDRESS = "0x" + "ab" * 20


def _instance(owner: str = CALLER) -> SimulatedInstance:
    return SimulatedInstance(address=INSTANCE_ADDRESS, _owner=owner)


class TestClassify:
    def test_membership(self):
        policy = OwnershipPolicy(frozenset({1, 8453}), OWNER)
        assert policy.classify(1)
        assert policy.classify(8453)
        assert not policy.classify(11155111)


class TestApply:
    def test_unmanaged_never_transfers(self):
        policy = OwnershipPolicy(frozenset({1}), OWNER)
        instance = _instance()

        result = policy.apply(instance, 11155111)

        assert result.outcome is OwnershipOutcome.UNMANAGED
        assert instance.transfer_calls == []

    def test_managed_without_target_warns(self):
        policy = OwnershipPolicy(frozenset({1}), None)
        instance = _instance()

        result = policy.apply(instance, 1)

        assert result.outcome is OwnershipOutcome.NO_TARGET
        assert isinstance(result.warning, ConfigurationMissing)
        assert instance.transfer_calls == []

    def test_managed_already_owned(self):
        policy = OwnershipPolicy(frozenset({1}), OWNER)
        instance = _instance(owner=OWNER)

        result = policy.apply(instance, 1)

        assert result.outcome is OwnershipOutcome.ALREADY_OWNER
        assert instance.transfer_calls == []

    def test_owner_comparison_ignores_case(self):
        policy = OwnershipPolicy(frozenset({1}), "0x" + "AB" * 20)
        instance = _instance(owner="0x" + "ab" * 20)

        assert policy.apply(instance, 1).outcome is OwnershipOutcome.ALREADY_OWNER

    def test_managed_transfers_exactly_once(self):
        policy = OwnershipPolicy(frozenset({1}), OWNER)
        instance = _instance()

        first = policy.apply(instance, 1)
        second = policy.apply(instance, 1)

        assert first.transferred
        assert first.previous_owner == CALLER
        assert first.new_owner == OWNER
        assert second.outcome is OwnershipOutcome.ALREADY_OWNER
        assert instance.transfer_calls == [OWNER]
