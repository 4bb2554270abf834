"""Salt inspection command."""

from __future__ import annotations

import json

from rich.console import Console

from ..salt import derive_salt, deployment_key


def run_salt(caller: str, version: str, suffix: str | None = None, *, output_json: bool = False) -> int:
    err = Console(stderr=True)
    try:
        salt = derive_salt(caller, version, suffix)
    except ValueError as e:
        err.print(str(e), style="bold red", markup=False)
        return 1

    data = {
        "caller": caller,
        "key": deployment_key(version, suffix),
        "salt": "0x" + salt.hex(),
    }
    if output_json:
        print(json.dumps(data, indent=2, sort_keys=True))
        return 0

    console = Console()
    console.print(f"key:  {data['key']}", markup=False)
    console.print(f"salt: {data['salt']}", markup=False)
    return 0
