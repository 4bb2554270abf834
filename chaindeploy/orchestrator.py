"""
Deployment orchestrator: the state machine for one run on one environment.

    INIT → ADDRESS_COMPUTED → SKIPPED
                            → GATE_PASSED → BROADCAST → DEPLOYED → LEDGER_UPDATED → DONE
    (any state before BROADCAST) → ABORTED

Key invariants:
- The ledger's `all` view records every computed address, skipped or not
- Every local, reversible check (code probe, verification gate) completes
  before the one irreversible step, the broadcast
- A broadcast that lands anywhere but the precomputed address is fatal
- Nothing is retried

The orchestrator is single-threaded; one deploy call finishes or aborts
before the next starts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable

from rich.console import Console

from .audit_log import (
    DEPLOY,
    DEPLOY_ABORTED,
    DEPLOY_FAILED,
    DEPLOY_SKIPPED,
    OWNERSHIP_TRANSFER,
    log_operation,
)
from .build import BuildArtifact
from .chain.interfaces import (
    AddressFactory,
    Broadcaster,
    EnvironmentContext,
    OwnableInstance,
    PayloadSandbox,
    VerificationArtifactProducer,
)
from .config import DeployConfig
from .errors import AddressComputationMismatch, AlreadyDeployed, VerificationMismatch
from .ledger import DeploymentLedger, LedgerPaths
from .ownership import OwnershipOutcome, OwnershipPolicy, OwnershipResult
from .salt import HashFunction, derive_salt, deployment_key, sha3_256
from .util import same_address, unix_timestamp
from .verification import GateResult, VerificationGate
from .version import ArtifactMetadata, extract_metadata

VERIFICATION_SUBDIR = "standard-json-inputs"


class DeployState(str, Enum):
    INIT = "init"
    ADDRESS_COMPUTED = "address_computed"
    SKIPPED = "skipped"
    GATE_PASSED = "gate_passed"
    BROADCAST = "broadcast"
    DEPLOYED = "deployed"
    LEDGER_UPDATED = "ledger_updated"
    DONE = "done"
    ABORTED = "aborted"


# BROADCAST → SKIPPED covers a racing run that deployed the same key first.
_TRANSITIONS: dict[DeployState, frozenset[DeployState]] = {
    DeployState.INIT: frozenset({DeployState.ADDRESS_COMPUTED, DeployState.ABORTED}),
    DeployState.ADDRESS_COMPUTED: frozenset(
        {DeployState.SKIPPED, DeployState.GATE_PASSED, DeployState.ABORTED}
    ),
    DeployState.GATE_PASSED: frozenset({DeployState.BROADCAST, DeployState.ABORTED}),
    DeployState.BROADCAST: frozenset({DeployState.DEPLOYED, DeployState.SKIPPED}),
    DeployState.DEPLOYED: frozenset({DeployState.LEDGER_UPDATED}),
    DeployState.LEDGER_UPDATED: frozenset({DeployState.DONE}),
    DeployState.SKIPPED: frozenset(),
    DeployState.DONE: frozenset(),
    DeployState.ABORTED: frozenset(),
}


def _advance(history: list[DeployState], state: DeployState) -> None:
    current = history[-1]
    if state not in _TRANSITIONS[current]:
        raise RuntimeError(f"illegal deploy transition {current.value} → {state.value}")
    history.append(state)


@dataclass
class DeploymentPlan:
    """Result of DeploymentOrchestrator.plan(). Nothing recorded or written."""

    metadata: ArtifactMetadata
    key: str
    salt: bytes
    address: str
    already_deployed: bool
    gate: GateResult | None = None
    gate_error: str | None = None

    @property
    def would_deploy(self) -> bool:
        return not self.already_deployed and self.gate_error is None

    def summary(self) -> str:
        lines = [
            f"{self.key} ({self.metadata.name})",
            f"  Address: {self.address}",
            f"  Salt: 0x{self.salt.hex()}",
        ]
        if self.already_deployed:
            lines.append("  Code present: skip")
        elif self.gate_error:
            lines.append(f"  [BLOCKED] {self.gate_error}")
        elif self.gate is not None:
            lines.append(f"  Verification: {self.gate.outcome.value}")
        return "\n".join(lines)


@dataclass
class DeployResult:
    """Result of DeploymentOrchestrator.deploy()."""

    key: str
    address: str
    did_deploy: bool
    history: list[DeployState] = field(default_factory=list)
    gate: GateResult | None = None
    verification_path: Path | None = None

    @property
    def state(self) -> DeployState:
        return self.history[-1]


class DeploymentOrchestrator:
    """
    Deploys versioned payloads through a deterministic factory.

    Provides:
    - plan(): Pure - metadata, key, salt, address, code probe, gate preview
    - deploy() / deploy_with_salt(): Impure - the full state machine
    - apply_ownership(): Idempotent ownership handoff on managed environments
    - finalize(): Persist the diff and cumulative ledgers
    """

    def __init__(
        self,
        config: DeployConfig,
        *,
        environment: EnvironmentContext,
        factory: AddressFactory,
        broadcaster: Broadcaster,
        sandbox: PayloadSandbox,
        producer: VerificationArtifactProducer,
        root: Path,
        console: Console | None = None,
        clock: Callable[[], int] = unix_timestamp,
        hash_fn: HashFunction = sha3_256,
    ):
        self.config = config
        self.environment = environment
        self.factory = factory
        self.broadcaster = broadcaster
        self.sandbox = sandbox
        self.producer = producer
        self.root = root
        self.console = console or Console(stderr=True)
        self._clock = clock
        self._hash_fn = hash_fn

        self.run_timestamp = clock()
        self.output_dir = root / config.subfolder
        self.ledger = DeploymentLedger()
        self.gate = VerificationGate(
            self.output_dir / VERIFICATION_SUBDIR,
            force_override=config.force_override,
            clock=clock,
        )
        self.ownership = OwnershipPolicy(config.managed_environments, config.target_owner)

    @property
    def environment_id(self) -> int:
        return self.environment.environment_id

    @property
    def diff_path(self) -> Path:
        return self.output_dir / f"{self.environment_id}-{self.config.host}-{self.run_timestamp}.json"

    @property
    def latest_path(self) -> Path:
        return self.output_dir / f"{self.environment_id}-latest.json"

    # -------------------------------------------------------------------------
    # plan(): Pure phase
    # -------------------------------------------------------------------------

    def plan(self, artifact: bytes | BuildArtifact, suffix: str | None = None) -> DeploymentPlan:
        """
        Compute what deploy() would do, without recording or writing anything.

        A verification mismatch is reported in `gate_error`, not raised.
        """
        payload = _payload_of(artifact)
        metadata, key, salt, address = self._compute(payload, suffix)
        plan = DeploymentPlan(
            metadata=metadata,
            key=key,
            salt=salt,
            address=address,
            already_deployed=self.environment.has_code(address),
        )
        if plan.already_deployed:
            return plan

        try:
            plan.gate = self.gate.check(key, self.producer.generate(metadata.name))
        except VerificationMismatch as e:
            plan.gate_error = str(e)
        return plan

    # -------------------------------------------------------------------------
    # deploy(): Impure phase
    # -------------------------------------------------------------------------

    def deploy(self, artifact: bytes | BuildArtifact, suffix: str | None = None) -> DeployResult:
        """
        Deploy `artifact` unless it is already present.

        Args:
            artifact: Payload bytes or a loaded BuildArtifact
            suffix: Instance suffix for several copies of identical code

        Returns:
            DeployResult; did_deploy is False for a skip

        Raises:
            InvalidVersionFormat: payload declares a malformed version
            VerificationMismatch: verification content drifted, no override
            AddressComputationMismatch: broadcast landed elsewhere
        """
        payload = _payload_of(artifact)
        history = [DeployState.INIT]
        key: str | None = None

        # Everything up to GATE_PASSED is local and reversible.
        try:
            metadata, key, salt, address = self._compute(payload, suffix)
            _advance(history, DeployState.ADDRESS_COMPUTED)
            self.ledger.record_computed(key, address)

            present = self.environment.has_code(address)
            if not present:
                fresh = self.producer.generate(metadata.name)
                gate = self.gate.check(key, fresh)
                _advance(history, DeployState.GATE_PASSED)
        except Exception as e:
            _advance(history, DeployState.ABORTED)
            self._record_abort(key, e)
            raise

        if present:
            return self._skip(history, key, address, "code already present")

        if gate.divergent:
            self.console.print(
                f"{key}: verification content differs from {gate.canonical_path.name}, "
                "deploying under force_override",
                style="yellow",
            )

        _advance(history, DeployState.BROADCAST)
        self.console.print(f"Deploying {key} to {address}...", style="dim")
        try:
            deployed = self.broadcaster.deploy(salt, payload)
        except AlreadyDeployed:
            return self._skip(history, key, address, "deployed by a concurrent run")

        if not same_address(deployed, address):
            log_operation(
                self.root,
                DEPLOY_FAILED,
                self._metadata(key, address, deployed_address=deployed),
            )
            self.console.print(f"{key}: deployed to {deployed}, expected {address}", style="bold red")
            raise AddressComputationMismatch(key, address, deployed)

        _advance(history, DeployState.DEPLOYED)
        self.ledger.record_deployed(key, address)
        _advance(history, DeployState.LEDGER_UPDATED)

        verification_path = None
        if gate.needs_write:
            verification_path = self.gate.persist(key, fresh, divergent=gate.divergent)

        log_operation(
            self.root,
            DEPLOY,
            self._metadata(
                key,
                address,
                name=metadata.name,
                divergent=gate.divergent,
                verification_path=str(verification_path) if verification_path else None,
            ),
        )
        self.console.print(f"{key} deployed at {address}", style="green")
        _advance(history, DeployState.DONE)
        return DeployResult(
            key=key,
            address=address,
            did_deploy=True,
            history=history,
            gate=gate,
            verification_path=verification_path,
        )

    def deploy_with_salt(self, artifact: bytes | BuildArtifact, suffix: str) -> DeployResult:
        """Deploy one of several instances of identical code, keyed by `suffix`."""
        if not suffix:
            raise ValueError("suffix must be a non-empty string")
        return self.deploy(artifact, suffix)

    # -------------------------------------------------------------------------
    # Ownership and finalization
    # -------------------------------------------------------------------------

    def apply_ownership(self, instance: OwnableInstance) -> OwnershipResult:
        """Hand `instance` to the configured owner on managed environments."""
        result = self.ownership.apply(instance, self.environment_id)

        if result.outcome is OwnershipOutcome.UNMANAGED:
            self.console.print(
                f"Environment {self.environment_id} is unmanaged; owner of {instance.address} unchanged",
                style="dim",
            )
        elif result.outcome is OwnershipOutcome.NO_TARGET:
            self.console.print(str(result.warning), style="yellow", markup=False)
        elif result.outcome is OwnershipOutcome.ALREADY_OWNER:
            self.console.print(f"{instance.address} already owned by {result.new_owner}", style="dim")
        else:
            log_operation(
                self.root,
                OWNERSHIP_TRANSFER,
                {
                    "environment": self.environment_id,
                    "address": result.address,
                    "previous_owner": result.previous_owner,
                    "new_owner": result.new_owner,
                },
            )
            self.console.print(
                f"Ownership of {instance.address} transferred to {result.new_owner}",
                style="green",
            )
        return result

    def finalize(self) -> LedgerPaths:
        """Write the cumulative ledger, and the diff ledger if anything was deployed."""
        paths = self.ledger.finalize(self.diff_path, self.latest_path)
        self.console.print(f"Ledger written: {paths.all_path}", style="dim")
        if paths.diff_path is None:
            self.console.print("No new deployments this run", style="dim")
        else:
            self.console.print(f"Changes written: {paths.diff_path}", style="green")
        return paths

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _compute(
        self,
        payload: bytes,
        suffix: str | None,
    ) -> tuple[ArtifactMetadata, str, bytes, str]:
        metadata = extract_metadata(payload, self.sandbox)
        version = metadata.version_and_variant
        key = deployment_key(version, suffix)
        caller = self.environment.caller
        salt = derive_salt(caller, version, suffix, hash_fn=self._hash_fn)
        address = self.factory.compute_address(salt, caller)
        return metadata, key, salt, address

    def _skip(
        self,
        history: list[DeployState],
        key: str,
        address: str,
        reason: str,
    ) -> DeployResult:
        _advance(history, DeployState.SKIPPED)
        log_operation(self.root, DEPLOY_SKIPPED, self._metadata(key, address, reason=reason))
        self.console.print(f"{key} at {address}: {reason}, skipping", style="dim")
        return DeployResult(key=key, address=address, did_deploy=False, history=history)

    def _record_abort(self, key: str | None, error: Exception) -> None:
        log_operation(
            self.root,
            DEPLOY_ABORTED,
            {
                "environment": self.environment_id,
                "key": key,
                "error_type": type(error).__name__,
                "error": str(error),
            },
        )
        self.console.print(f"Aborted {key or 'deployment'}: {error}", style="bold red", markup=False)

    def _metadata(self, key: str, address: str, **extra: object) -> dict[str, object]:
        data: dict[str, object] = {
            "environment": self.environment_id,
            "key": key,
            "address": address,
        }
        data.update({k: v for k, v in extra.items() if v is not None})
        return data


def _payload_of(artifact: bytes | BuildArtifact) -> bytes:
    if isinstance(artifact, BuildArtifact):
        return artifact.payload
    return artifact
