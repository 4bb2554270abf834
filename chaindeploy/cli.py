"""CLI entrypoint for chaindeploy."""

import sys
from pathlib import Path

import click

from . import __version__
from .config import DEFAULT_SUBFOLDER, DeployConfig, load_config
from .errors import ConfigError


@click.group()
@click.version_option(__version__, prog_name="chaindeploy")
@click.option(
    "--root",
    "-r",
    type=click.Path(exists=False, file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Deployment output root (defaults to the current directory)",
)
@click.pass_context
def cli(ctx: click.Context, root: Path | None) -> None:
    """chaindeploy - Deterministic, idempotent deployments across chains.

    Inspect salts, ledgers and verification records, and rehearse a
    configured run before broadcasting anything.
    """
    ctx.ensure_object(dict)
    ctx.obj["root"] = (root or Path.cwd()).resolve()


@cli.command()
@click.option("--caller", required=True, help="Deploying address (0x...)")
@click.option("--version", "version", required=True, help="Declared version, e.g. 1.0.0-Token")
@click.option("--suffix", default=None, help="Instance suffix for several copies of one version")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def salt(caller: str, version: str, suffix: str | None, output_json: bool) -> None:
    """Print the deployment key and factory salt.

    Examples:

        chaindeploy salt --caller 0xab... --version 1.0.0-Token

        chaindeploy salt --caller 0xab... --version 1.0.0-Token --suffix usdc
    """
    from .commands.salt_cmd import run_salt

    sys.exit(run_salt(caller, version, suffix, output_json=output_json))


# -----------------------------------------------------------------------------
# Ledger commands
# -----------------------------------------------------------------------------


@cli.group()
def ledger() -> None:
    """Inspect persisted deployment ledgers."""
    pass


@ledger.command("show")
@click.option("--env", "environment_id", type=int, required=True, help="Chain id")
@click.option("--subfolder", default=DEFAULT_SUBFOLDER, show_default=True)
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def ledger_show(ctx: click.Context, environment_id: int, subfolder: str, output_json: bool) -> None:
    """Show the cumulative ledger for one environment."""
    from .commands.ledger_cmd import run_ledger_show

    sys.exit(run_ledger_show(ctx.obj["root"], subfolder, environment_id, output_json=output_json))


@cli.command()
@click.option("--last", "last_n", type=int, default=None, help="Only the last N entries")
@click.pass_context
def audit(ctx: click.Context, last_n: int | None) -> None:
    """Print the deployment audit log."""
    from .commands.ledger_cmd import run_audit

    sys.exit(run_audit(ctx.obj["root"], last_n=last_n))


# -----------------------------------------------------------------------------
# Verification commands
# -----------------------------------------------------------------------------


@cli.group()
def verify() -> None:
    """Check verification records before deploying."""
    pass


@verify.command("check")
@click.argument("key")
@click.argument(
    "content_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option("--subfolder", default=DEFAULT_SUBFOLDER, show_default=True)
@click.pass_context
def verify_check(ctx: click.Context, key: str, content_file: Path, subfolder: str) -> None:
    """Compare CONTENT_FILE with the published record for KEY.

    Exits 1 if a deployment of KEY would be refused.
    """
    from .commands.verify_cmd import run_verify_check

    sys.exit(run_verify_check(ctx.obj["root"], subfolder, key, content_file))


# -----------------------------------------------------------------------------
# Rehearsal
# -----------------------------------------------------------------------------


@cli.command()
@click.argument(
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option("--env", "environment_id", type=int, required=True, help="Chain id to rehearse")
@click.option("--caller", required=True, help="Deploying address (0x...)")
@click.option(
    "--build-info",
    "build_info_dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Compiler build-info directory (defaults to out/build-info next to CONFIG_PATH)",
)
@click.option(
    "--force-override",
    is_flag=True,
    default=None,
    help="Accept divergent verification content (overrides the config file)",
)
@click.pass_context
def rehearse(
    ctx: click.Context,
    config_path: Path,
    environment_id: int,
    caller: str,
    build_info_dir: Path | None,
    force_override: bool | None,
) -> None:
    """Plan the configured artifacts without broadcasting.

    Shows which keys would be skipped, deployed, or blocked by
    verification drift. Writes nothing.
    """
    from .commands.rehearse_cmd import run_rehearse

    try:
        config: DeployConfig = load_config(config_path)
    except ConfigError as e:
        raise click.ClickException(str(e))

    if force_override:
        config = config.replace(force_override=True)

    if build_info_dir is None:
        build_info_dir = config_path.parent / "out" / "build-info"

    sys.exit(
        run_rehearse(
            config,
            root=ctx.obj["root"],
            environment_id=environment_id,
            caller=caller,
            build_info_dir=build_info_dir,
        )
    )


def main() -> None:
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()
