"""
Build outputs: deployable payloads and verification inputs.

Compilation is not our job. This module reads what a compiler already
produced:

- artifact JSON (`out/Token.sol/Token.json`) → deployable payload bytes
- build-info JSON (`out/build-info/*.json`) → standard-JSON compiler input,
  the document third-party verifiers need to reproduce the build
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .util import dump_json


@dataclass(frozen=True)
class BuildArtifact:
    """A compiled, deployable payload."""

    name: str
    payload: bytes
    path: Path


def _bytecode_hex(data: dict[str, Any]) -> str:
    bytecode = data.get("bytecode")
    # Foundry nests the hex under "object"; Hardhat stores it directly.
    if isinstance(bytecode, dict):
        bytecode = bytecode.get("object")
    if not isinstance(bytecode, str):
        return ""
    return bytecode[2:] if bytecode.startswith("0x") else bytecode


def load_build_artifact(path: Path) -> BuildArtifact:
    """
    Load a compiler artifact.

    Raises:
        ValueError: if the artifact carries no creation bytecode
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path}: artifact is not a JSON object")

    hex_code = _bytecode_hex(data)
    if not hex_code:
        raise ValueError(f"{path}: no creation bytecode (abstract contract or interface?)")

    name = data.get("contractName") or path.stem
    return BuildArtifact(name=str(name), payload=bytes.fromhex(hex_code), path=path)


class BuildInfoProducer:
    """
    Produces verification content from compiler build-info files.

    The content for a contract is the `input` document of the build-info
    whose `output.contracts` declares that contract name, serialized with
    sorted keys so repeated builds compare byte-for-byte.
    """

    def __init__(self, build_info_dir: Path):
        self.build_info_dir = build_info_dir
        self._cache: dict[str, str] = {}

    def generate(self, name: str) -> str:
        """
        Return the verification document for contract `name`.

        Raises:
            LookupError: no build-info declares `name`, or several declare it
                with different inputs
        """
        if name in self._cache:
            return self._cache[name]

        found: dict[str, Path] = {}
        for path in sorted(self.build_info_dir.glob("*.json")):
            data = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                continue
            if not _declares_contract(data, name):
                continue
            content = dump_json(data.get("input", {}))
            found.setdefault(content, path)

        if not found:
            raise LookupError(f"no build-info in {self.build_info_dir} declares {name!r}")
        if len(found) > 1:
            paths = ", ".join(p.name for p in found.values())
            raise LookupError(f"{name!r} is declared by build-infos with different inputs: {paths}")

        content = next(iter(found))
        self._cache[name] = content
        return content


def _declares_contract(build_info: dict[str, Any], name: str) -> bool:
    contracts = build_info.get("output", {}).get("contracts", {})
    if not isinstance(contracts, dict):
        return False
    return any(isinstance(by_name, dict) and name in by_name for by_name in contracts.values())
