"""Pytest configuration and fixtures."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Callable

import pytest
from rich.console import Console

from chaindeploy.chain.simulated import SimulatedChain
from chaindeploy.config import DeployConfig
from chaindeploy.orchestrator import DeploymentOrchestrator

CALLER = "0x" + "11" * 20
OWNER = "0x" + "22" * 20
RUN_TIMESTAMP = 1_700_000_000


class StaticProducer:
    """Verification producer serving fixed documents by contract name."""

    def __init__(self, documents: dict[str, str] | None = None):
        self.documents = dict(documents or {})
        self.calls: list[str] = []

    def generate(self, name: str) -> str:
        self.calls.append(name)
        return self.documents.get(name, f'{{"contract": "{name}"}}\n')


@pytest.fixture
def chain() -> SimulatedChain:
    """Unmanaged test environment with chain id 1."""
    return SimulatedChain(1, CALLER)


@pytest.fixture
def producer() -> StaticProducer:
    return StaticProducer()


@pytest.fixture
def quiet_console() -> Console:
    return Console(file=io.StringIO(), width=200)


@pytest.fixture
def make_orchestrator(
    tmp_path: Path,
    producer: StaticProducer,
    quiet_console: Console,
) -> Callable[..., DeploymentOrchestrator]:
    """Build an orchestrator over a SimulatedChain, writing under tmp_path."""

    def _make(
        chain: SimulatedChain,
        *,
        clock: Callable[[], int] = lambda: RUN_TIMESTAMP,
        **config_overrides,
    ) -> DeploymentOrchestrator:
        config = DeployConfig(host="testhost", **config_overrides)
        return DeploymentOrchestrator(
            config,
            environment=chain,
            factory=chain,
            broadcaster=chain,
            sandbox=chain,
            producer=producer,
            root=tmp_path,
            console=quiet_console,
            clock=clock,
        )

    return _make
