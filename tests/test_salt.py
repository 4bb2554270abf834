"""Tests for salt derivation."""

from __future__ import annotations

import pytest

from chaindeploy.chain.simulated import SimulatedChain
from chaindeploy.salt import (
    CROSSCHAIN_ALLOWED,
    SALT_BYTES,
    derive_salt,
    deployment_key,
    salt_with_suffix,
)

from .conftest import CALLER


class TestDeploymentKey:
    def test_plain(self):
        assert deployment_key("1.0.0-A") == "1.0.0-A"

    def test_suffixed(self):
        assert deployment_key("1.0.0-A", "usdc") == "1.0.0-A-usdc"


class TestDeriveSalt:
    def test_layout(self):
        salt = derive_salt(CALLER, "1.0.0-A")
        assert len(salt) == SALT_BYTES
        assert salt[:20] == bytes.fromhex(CALLER[2:])
        assert salt[20:21] == CROSSCHAIN_ALLOWED

    @pytest.mark.parametrize("suffix", [None, "a", "instance-2"])
    def test_pure(self, suffix):
        first = derive_salt(CALLER, "1.0.0-A", suffix)
        second = derive_salt(CALLER, "1.0.0-A", suffix)
        assert first == second

    def test_raw_bytes_caller_equivalent(self):
        assert derive_salt(bytes.fromhex(CALLER[2:]), "1.0.0-A") == derive_salt(CALLER, "1.0.0-A")

    def test_suffix_changes_entropy_only(self):
        plain = derive_salt(CALLER, "1.0.0-A")
        suffixed = salt_with_suffix(CALLER, "1.0.0-A", "b")
        assert plain[:21] == suffixed[:21]
        assert plain[21:] != suffixed[21:]

    def test_suffix_boundary_is_unambiguous(self):
        suffixed = derive_salt(CALLER, "1.0.0-Token", "2")
        plain = derive_salt(CALLER, "1.0.0-Token2")
        assert deployment_key("1.0.0-Token", "2") != deployment_key("1.0.0-Token2")
        assert suffixed != plain

    def test_empty_suffix_differs_from_none(self):
        assert derive_salt(CALLER, "1.0.0-A", "") != derive_salt(CALLER, "1.0.0-A")

    def test_version_changes_salt(self):
        assert derive_salt(CALLER, "1.0.0-A") != derive_salt(CALLER, "1.0.1-A")

    def test_caller_changes_salt(self):
        other = "0x" + "33" * 20
        assert derive_salt(CALLER, "1.0.0-A") != derive_salt(other, "1.0.0-A")

    def test_custom_hash(self):
        salt = derive_salt(CALLER, "1.0.0-A", hash_fn=lambda data: b"\xab" * 32)
        assert salt[21:] == b"\xab" * 11

    def test_short_hash_rejected(self):
        with pytest.raises(ValueError):
            derive_salt(CALLER, "1.0.0-A", hash_fn=lambda data: b"\x00" * 4)

    @pytest.mark.parametrize("caller", ["0x1234", "11" * 20, b"\x00" * 19])
    def test_bad_caller_rejected(self, caller):
        with pytest.raises(ValueError):
            derive_salt(caller, "1.0.0-A")


class TestAddressStability:
    def test_same_salt_same_address_across_runs(self):
        salt = derive_salt(CALLER, "1.0.0-A")
        first = SimulatedChain(1, CALLER).compute_address(salt, CALLER)
        second = SimulatedChain(10, CALLER).compute_address(salt, CALLER)
        assert first == second
