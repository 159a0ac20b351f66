"""CLI entry point for lockstep."""

from __future__ import annotations

from pathlib import Path

import click

from .pipeline import ReleaseOptions, RunContext, current_version, run_release
from .propagate import propagate_versions
from .versions import resolve_preid, suggest, validate_version
from .workspace import Workspace


@click.group()
@click.version_option()
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Workspace root directory.",
)
@click.pass_context
def cli(ctx: click.Context, root: Path) -> None:
    """Release every package of a monorepo under one version."""
    ctx.obj = Workspace(root)


@cli.command()
@click.argument("version", required=False)
@click.option("--preid", help="Pre-release identifier (e.g. alpha, beta, rc).")
@click.option(
    "--dry", "dry_run", is_flag=True, help="Print commands instead of running them."
)
@click.option("--skip-tests", is_flag=True, help="Do not run the test gate.")
@click.option("--skip-build", is_flag=True, help="Do not run the build gate.")
@click.option("--tag", help="Distribution tag for every published package.")
@click.option(
    "--skip",
    multiple=True,
    metavar="UNIT",
    help="Do not publish this unit (repeatable).",
)
@click.option("-y", "--yes", is_flag=True, help="Do not ask for confirmation.")
@click.pass_obj
def release(
    workspace: Workspace,
    version: str | None,
    preid: str | None,
    dry_run: bool,
    skip_tests: bool,
    skip_build: bool,
    tag: str | None,
    skip: tuple[str, ...],
    yes: bool,
) -> None:
    """Release VERSION, or pick one interactively."""
    options = ReleaseOptions(
        version=version,
        preid=preid,
        dry_run=dry_run,
        skip_tests=skip_tests,
        skip_build=skip_build,
        tag=tag,
        skip=list(skip),
        yes=yes,
    )
    run_release(RunContext.create(workspace, options))


@cli.command()
@click.argument("version")
@click.pass_obj
def propagate(workspace: Workspace, version: str) -> None:
    """Set VERSION on every manifest and pin workspace dependencies to it."""
    target = validate_version(version)
    rewrites = propagate_versions(workspace, target)
    click.echo(
        f"✓ {len(workspace.list_units()) + 1} manifests at {target}, "
        f"{len(rewrites)} dependencies pinned"
    )


@cli.command("list")
@click.pass_obj
def list_units(workspace: Workspace) -> None:
    """Show the units of the workspace."""
    skip = set(workspace.config.skip)
    for unit in workspace.units():
        manifest = workspace.load_manifest(unit)
        flags = []
        if manifest.private:
            flags.append("private")
        if unit.name in skip:
            flags.append("skipped")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        click.echo(f"  {unit.name}: {manifest.name} {manifest.version}{suffix}")


@cli.command()
@click.option("--preid", help="Pre-release identifier (e.g. alpha, beta, rc).")
@click.pass_obj
def versions(workspace: Workspace, preid: str | None) -> None:
    """Show the versions each increment would produce."""
    current = current_version(workspace)
    click.echo(f"current: {current}")
    for kind, version in suggest(current, resolve_preid(current, preid)):
        click.echo(f"  {kind}: {version}")
