"""
Chain access: collaborator protocols and an in-memory implementation.

The orchestrator depends only on the protocols. SimulatedChain implements
all of them for rehearsals and tests.
"""

from __future__ import annotations

from .interfaces import (
    AddressFactory,
    Broadcaster,
    EnvironmentContext,
    OwnableInstance,
    PayloadSandbox,
    VerificationArtifactProducer,
)
from .simulated import SimulatedChain, SimulatedInstance

__all__ = [
    # Protocols
    "AddressFactory",
    "Broadcaster",
    "EnvironmentContext",
    "OwnableInstance",
    "PayloadSandbox",
    "VerificationArtifactProducer",
    # In-memory implementation
    "SimulatedChain",
    "SimulatedInstance",
]
