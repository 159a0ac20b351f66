"""Version propagation across the workspace.

Every unit, the root project included, is set to the release version and
every dependency on another workspace package is pinned to exactly that
version. Ranges are not interpreted: "^3.1.0" or "~3.1.0" both become
the bare target version, so all workspace packages always depend on each
other's current release.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

import click

from .models import DEPENDENCY_FIELDS, DependencyRewrite, Manifest, Unit
from .workspace import Workspace

RewriteHook = Callable[[DependencyRewrite], None]
SaveHook = Optional[Callable[[Path], None]]


def echo_rewrite(rewrite: DependencyRewrite) -> None:
    """Default hook: print one line per rewritten dependency edge."""
    click.secho(
        f"{rewrite.unit} -> {rewrite.field} -> {rewrite.dependency}@{rewrite.new}",
        fg="yellow",
    )


def update_dependencies(
    workspace: Workspace,
    manifest: Manifest,
    field: str,
    version: str,
    on_rewrite: RewriteHook = echo_rewrite,
) -> list[DependencyRewrite]:
    """Pin the workspace dependencies found under one manifest field.

    Modifies the manifest in place. Entries for packages outside the
    workspace are left untouched.
    """
    deps = manifest.dependency_map(field)
    rewrites: list[DependencyRewrite] = []
    for dep, old in deps.items():
        if not workspace.is_workspace_dependency(dep):
            continue
        rewrite = DependencyRewrite(
            unit=manifest.name, field=field, dependency=dep, old=old, new=version
        )
        on_rewrite(rewrite)
        deps[dep] = version
        rewrites.append(rewrite)
    return rewrites


def update_unit(
    workspace: Workspace,
    unit: Unit,
    version: str,
    on_rewrite: RewriteHook = echo_rewrite,
    on_save: SaveHook = None,
) -> list[DependencyRewrite]:
    """Load, rewrite and immediately save one unit's manifest."""
    manifest = workspace.load_manifest(unit)
    manifest.version = version
    rewrites: list[DependencyRewrite] = []
    for field in DEPENDENCY_FIELDS:
        rewrites.extend(
            update_dependencies(workspace, manifest, field, version, on_rewrite)
        )
    workspace.save_manifest(unit, manifest)
    if on_save is not None:
        on_save(workspace.manifest_path(unit))
    return rewrites


def propagate_versions(
    workspace: Workspace,
    version: str,
    on_rewrite: RewriteHook = echo_rewrite,
    on_save: SaveHook = None,
) -> list[DependencyRewrite]:
    """Set ``version`` on the root project and every unit, in order.

    Each manifest is written as soon as it is updated. A failure aborts
    the remaining units and leaves the ones already written at the new
    version; running again with the same version is a no-op rewrite.

    Raises:
        ManifestNotFound, ManifestParseError, ManifestWriteError: On the
            first manifest that cannot be read or written.
    """
    rewrites: list[DependencyRewrite] = []
    for unit in [workspace.root(), *workspace.units()]:
        rewrites.extend(update_unit(workspace, unit, version, on_rewrite, on_save))
    return rewrites
