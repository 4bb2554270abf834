"""
Run configuration.

Everything a run needs to know up front (output subfolder, target owner,
managed environments, override flag) is fixed in one immutable value
passed to the orchestrator at construction. Nothing is read from ambient
state mid-run.

Configuration files are TOML:

    [deploy]
    subfolder = "deployments"
    target_owner = "0x..."
    managed_environments = [1, 10, 8453]
    force_override = false

    [[artifacts]]
    build = "out/Token.sol/Token.json"
    version = "1.0.0-Token"
    suffixes = ["a", "b"]
"""

from __future__ import annotations

import dataclasses
import platform
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .errors import ConfigError
from .util import is_address

DEFAULT_SUBFOLDER = "deployments"


@dataclass(frozen=True)
class ArtifactEntry:
    """One build artifact listed in a configuration file."""

    build: Path
    version: str | None = None  # Declared version, used when rehearsing
    suffixes: tuple[str, ...] = ()


@dataclass(frozen=True)
class DeployConfig:
    """Immutable configuration for one orchestrator run."""

    subfolder: str = DEFAULT_SUBFOLDER
    target_owner: str | None = None
    managed_environments: frozenset[int] = frozenset()
    force_override: bool = False
    host: str = field(default_factory=platform.node)
    artifacts: tuple[ArtifactEntry, ...] = ()

    def __post_init__(self) -> None:
        if self.target_owner is not None and not is_address(self.target_owner):
            raise ConfigError(f"target_owner is not an address: {self.target_owner!r}")
        if not self.subfolder or Path(self.subfolder).is_absolute():
            raise ConfigError(f"subfolder must be a relative path, got {self.subfolder!r}")

    def replace(self, **changes: Any) -> DeployConfig:
        """Copy with some fields overridden (e.g. from CLI flags)."""
        return dataclasses.replace(self, **changes)

    def is_managed(self, environment_id: int) -> bool:
        return environment_id in self.managed_environments


def _coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _parse_environments(raw: Any) -> frozenset[int]:
    if raw is None:
        return frozenset()
    if not isinstance(raw, list):
        raise ConfigError("managed_environments must be a list of chain ids")
    ids: set[int] = set()
    for item in raw:
        # bool is an int subclass; reject it explicitly
        if isinstance(item, bool) or not isinstance(item, int) or item <= 0:
            raise ConfigError(f"managed_environments entry is not a chain id: {item!r}")
        ids.add(item)
    return frozenset(ids)


def _parse_artifacts(raw: Any, base_dir: Path) -> tuple[ArtifactEntry, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ConfigError("[[artifacts]] must be an array of tables")

    entries: list[ArtifactEntry] = []
    for i, item in enumerate(raw):
        item = _coerce_dict(item)
        build = str(item.get("build", "")).strip()
        if not build:
            raise ConfigError(f"artifacts[{i}].build is required")

        version = item.get("version")
        if version is not None and not isinstance(version, str):
            raise ConfigError(f"artifacts[{i}].version must be a string")

        suffixes = item.get("suffixes", [])
        if not isinstance(suffixes, list) or not all(isinstance(s, str) and s for s in suffixes):
            raise ConfigError(f"artifacts[{i}].suffixes must be a list of non-empty strings")

        build_path = Path(build)
        if not build_path.is_absolute():
            build_path = base_dir / build_path
        entries.append(ArtifactEntry(build=build_path, version=version, suffixes=tuple(suffixes)))
    return tuple(entries)


def load_config(path: Path) -> DeployConfig:
    """
    Load a DeployConfig from TOML.

    Relative artifact paths resolve against the config file's directory.

    Raises:
        ConfigError: missing [deploy] table or invalid values
    """
    import tomllib

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"{path}: {e}") from e

    if "deploy" not in data:
        raise ConfigError(f"{path}: missing [deploy] table")
    deploy = _coerce_dict(data["deploy"])

    subfolder = str(deploy.get("subfolder", DEFAULT_SUBFOLDER)).strip() or DEFAULT_SUBFOLDER

    target_owner = deploy.get("target_owner")
    if target_owner is not None:
        target_owner = str(target_owner).strip() or None

    force_override = deploy.get("force_override", False)
    if not isinstance(force_override, bool):
        raise ConfigError("force_override must be true or false")

    kwargs: dict[str, Any] = {
        "subfolder": subfolder,
        "target_owner": target_owner,
        "managed_environments": _parse_environments(deploy.get("managed_environments")),
        "force_override": force_override,
        "artifacts": _parse_artifacts(data.get("artifacts"), path.parent),
    }
    host = deploy.get("host")
    if host:
        kwargs["host"] = str(host)

    return DeployConfig(**kwargs)
