"""
In-memory execution environment.

SimulatedChain implements every collaborator protocol against plain dicts:
deterministic factory addresses, code presence, registered payload
versions and ownable instances. Calls are recorded so rehearsals can
report what a live run would broadcast, and tests can spy on them.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field

from ..errors import AlreadyDeployed
from ..util import address_to_bytes, format_address

# Arbitrary but fixed; only needs to be stable across runs.
DEFAULT_FACTORY_ADDRESS = "0xba5ed099633d3b313e4d5f7bdc1305d3c28ba5ed"


@dataclass
class SimulatedInstance:
    """A deployed instance with a single owner."""

    address: str
    _owner: str
    transfer_calls: list[str] = field(default_factory=list)

    def owner(self) -> str:
        return self._owner

    def transfer_ownership(self, new_owner: str) -> None:
        self.transfer_calls.append(new_owner)
        self._owner = new_owner


@dataclass
class BroadcastCall:
    """One recorded deployment broadcast."""

    salt: bytes
    payload: bytes
    address: str


class SimulatedChain:
    """
    In-memory chain implementing EnvironmentContext, AddressFactory,
    Broadcaster and PayloadSandbox.

    Addresses follow the shape of a salted factory deployment:

        guarded = H(caller ‖ salt)
        address = H(0xff ‖ factory ‖ guarded)[-20:]

    so they depend only on (salt, caller), never on payload content.
    """

    def __init__(
        self,
        environment_id: int,
        caller: str,
        *,
        factory_address: str = DEFAULT_FACTORY_ADDRESS,
    ):
        address_to_bytes(caller)
        self._environment_id = environment_id
        self._caller = caller
        self.factory_address = factory_address
        self._code: dict[str, bytes] = {}
        self._versions: dict[bytes, str] = {}
        self._instances: dict[str, SimulatedInstance] = {}
        self.broadcasts: list[BroadcastCall] = []
        self.version_queries = 0

    # -------------------------------------------------------------------------
    # EnvironmentContext
    # -------------------------------------------------------------------------

    @property
    def environment_id(self) -> int:
        return self._environment_id

    @property
    def caller(self) -> str:
        return self._caller

    def has_code(self, address: str) -> bool:
        return address.lower() in self._code

    # -------------------------------------------------------------------------
    # PayloadSandbox
    # -------------------------------------------------------------------------

    def register_payload(self, payload: bytes, version: str) -> None:
        """Declare the string `payload.version()` returns."""
        self._versions[payload] = version

    def query_version(self, payload: bytes) -> str:
        self.version_queries += 1
        try:
            return self._versions[payload]
        except KeyError:
            raise LookupError(
                f"payload {hashlib.sha256(payload).hexdigest()[:12]} has no registered version"
            ) from None

    # -------------------------------------------------------------------------
    # AddressFactory / Broadcaster
    # -------------------------------------------------------------------------

    def compute_address(self, salt: bytes, caller: str) -> str:
        guarded = hashlib.sha3_256(address_to_bytes(caller) + salt).digest()
        preimage = b"\xff" + address_to_bytes(self.factory_address) + guarded
        return format_address(hashlib.sha3_256(preimage).digest()[-20:])

    def deploy(self, salt: bytes, payload: bytes) -> str:
        address = self.compute_address(salt, self._caller)
        if self.has_code(address):
            raise AlreadyDeployed(address)

        self._code[address] = payload
        self._instances[address] = SimulatedInstance(address=address, _owner=self._caller)
        self.broadcasts.append(BroadcastCall(salt=salt, payload=payload, address=address))
        return address

    # -------------------------------------------------------------------------
    # Inspection and seeding
    # -------------------------------------------------------------------------

    def mark_deployed(self, address: str, payload: bytes = b"") -> SimulatedInstance:
        """Seed code at `address` as if an earlier run had deployed it."""
        key = address.lower()
        self._code[key] = payload
        instance = self._instances.get(key)
        if instance is None:
            instance = SimulatedInstance(address=key, _owner=self._caller)
            self._instances[key] = instance
        return instance

    def instance(self, address: str) -> SimulatedInstance:
        """Handle on the instance deployed at `address`."""
        try:
            return self._instances[address.lower()]
        except KeyError:
            raise LookupError(f"no instance at {address}") from None
