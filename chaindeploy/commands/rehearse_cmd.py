"""
Rehearsal: plan a configured run without touching a network.

The configured artifacts are planned against a SimulatedChain seeded with
every address in the environment's last cumulative ledger, so the output
shows which keys a live run would skip, deploy, or refuse. Nothing is
written.
"""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..build import BuildInfoProducer, load_build_artifact
from ..chain.simulated import SimulatedChain
from ..config import DeployConfig
from ..errors import DeployError
from ..ledger import load_ledger
from ..orchestrator import DeploymentOrchestrator, DeploymentPlan


def build_rehearsal(
    config: DeployConfig,
    *,
    root: Path,
    environment_id: int,
    caller: str,
    build_info_dir: Path,
) -> tuple[DeploymentOrchestrator, SimulatedChain]:
    """Orchestrator over a SimulatedChain seeded from the last ledger."""
    chain = SimulatedChain(environment_id, caller)
    latest = root / config.subfolder / f"{environment_id}-latest.json"
    for address in load_ledger(latest).values():
        chain.mark_deployed(address)

    orchestrator = DeploymentOrchestrator(
        config,
        environment=chain,
        factory=chain,
        broadcaster=chain,
        sandbox=chain,
        producer=BuildInfoProducer(build_info_dir),
        root=root,
    )
    return orchestrator, chain


def plan_configured_artifacts(
    orchestrator: DeploymentOrchestrator,
    chain: SimulatedChain,
    config: DeployConfig,
) -> list[DeploymentPlan]:
    plans: list[DeploymentPlan] = []
    for entry in config.artifacts:
        if entry.version is None:
            raise DeployError(f"{entry.build}: a declared version is required to rehearse")
        artifact = load_build_artifact(entry.build)
        chain.register_payload(artifact.payload, entry.version)

        for suffix in entry.suffixes or (None,):
            plans.append(orchestrator.plan(artifact, suffix))
    return plans


def run_rehearse(
    config: DeployConfig,
    *,
    root: Path,
    environment_id: int,
    caller: str,
    build_info_dir: Path,
) -> int:
    console = Console()
    err = Console(stderr=True)

    if not config.artifacts:
        err.print("No [[artifacts]] configured.", style="yellow")
        return 1

    try:
        orchestrator, chain = build_rehearsal(
            config,
            root=root,
            environment_id=environment_id,
            caller=caller,
            build_info_dir=build_info_dir,
        )
        plans = plan_configured_artifacts(orchestrator, chain, config)
    except (DeployError, LookupError, ValueError, OSError) as e:
        err.print(str(e), style="bold red", markup=False)
        return 1

    managed = "managed" if config.is_managed(environment_id) else "unmanaged"
    table = Table(title=f"Rehearsal: environment {environment_id} ({managed})")
    table.add_column("key", style="cyan", no_wrap=True)
    table.add_column("address")
    table.add_column("action")
    table.add_column("verification")

    blocked = 0
    for plan in plans:
        if plan.already_deployed:
            action, verification = "skip", ""
        elif plan.gate_error:
            blocked += 1
            action, verification = "[bold red]blocked[/bold red]", "divergent"
        else:
            action = "[green]deploy[/green]"
            verification = plan.gate.outcome.value if plan.gate else ""
        table.add_row(plan.key, plan.address, action, verification)

    console.print(table)
    if blocked:
        err.print(
            f"{blocked} deployment(s) blocked by verification drift; "
            "set force_override to deploy anyway",
            style="bold red",
        )
        return 1
    return 0
