"""Workspace catalog: unit discovery and manifest I/O.

A workspace is a root project plus one directory per unit under the
packages root. Manifests are JSON documents written back with two-space
indentation, original key order and a single trailing newline, so that a
rewrite only touches the lines whose values changed.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError

from .config import ReleaseConfig, load_config
from .errors import (
    ManifestNotFound,
    ManifestParseError,
    ManifestWriteError,
)
from .models import Manifest, Unit


class Workspace:
    """The units of a monorepo and their manifests.

    Units are enumerated once, on first use, and the set stays fixed for
    the lifetime of the object.
    """

    def __init__(self, root: Path, config: ReleaseConfig | None = None) -> None:
        self.path = root.resolve()
        self.config = config or load_config(self.path)
        self._units: list[str] | None = None
        self._project_name: str | None = None

    @property
    def packages_root(self) -> Path:
        return self.path / self.config.packages_dir

    def list_units(self) -> list[str]:
        """Return unit names under the packages root, sorted.

        A unit is a non-hidden directory holding a manifest; stray files
        (e.g. a shared ``global.d.ts``) and directories without a manifest
        are ignored.

        Raises:
            ManifestParseError: If two units declare the same package name.
        """
        if self._units is None:
            if not self.packages_root.is_dir():
                units = []
            else:
                units = sorted(
                    p.name
                    for p in self.packages_root.iterdir()
                    if p.is_dir()
                    and not p.name.startswith(".")
                    and (p / self.config.manifest).is_file()
                )
            self._check_unique_names(units)
            self._units = units
        return list(self._units)

    def _check_unique_names(self, units: list[str]) -> None:
        seen: dict[str, str] = {}
        for name in units:
            unit = self.unit(name)
            published = self.load_manifest(unit).name
            if published in seen:
                raise ManifestParseError(
                    self.manifest_path(unit),
                    f"package name {published!r} is also used by {seen[published]!r}",
                )
            seen[published] = name

    def root(self) -> Unit:
        """Return the root project unit."""
        return Unit(name=self.path.name, path=self.path, is_root=True)

    def unit(self, name: str) -> Unit:
        return Unit(name=name, path=self.packages_root / name)

    def units(self) -> list[Unit]:
        return [self.unit(name) for name in self.list_units()]

    def manifest_path(self, unit: Unit) -> Path:
        return unit.path / self.config.manifest

    def load_manifest(self, unit: Unit) -> Manifest:
        """Read and parse a unit's manifest.

        Raises:
            ManifestNotFound: If the manifest file does not exist.
            ManifestParseError: If it is not valid JSON or lacks a name.
        """
        path = self.manifest_path(unit)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise ManifestNotFound(path) from None
        except OSError as exc:
            raise ManifestParseError(path, str(exc)) from exc

        try:
            document = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ManifestParseError(path, f"invalid JSON: {exc}") from exc
        if not isinstance(document, dict):
            raise ManifestParseError(path, "expected a JSON object")

        try:
            return Manifest.from_document(document)
        except ValidationError as exc:
            raise ManifestParseError(path, str(exc)) from exc

    def save_manifest(self, unit: Unit, manifest: Manifest) -> None:
        """Write a manifest back in full.

        Raises:
            ManifestWriteError: If the file cannot be written.
        """
        path = self.manifest_path(unit)
        text = json.dumps(manifest.to_document(), indent=2, ensure_ascii=False) + "\n"
        try:
            path.write_text(text, encoding="utf-8")
        except OSError as exc:
            raise ManifestWriteError(path, str(exc)) from exc

    def project_name(self) -> str:
        """Published name of the root project.

        Taken from the configuration when set, otherwise from the root
        manifest.
        """
        if self._project_name is None:
            self._project_name = (
                self.config.project_name or self.load_manifest(self.root()).name
            )
        return self._project_name

    def is_workspace_dependency(self, dep: str) -> bool:
        """Whether a dependency name refers to a package of this workspace.

        Matching is by name only: the root project's published name, or
        a scoped name whose remainder is a known unit. Any scope matches
        unless ``scope`` is configured, in which case only that one does.
        """
        if dep == self.project_name():
            return True
        scope, sep, rest = dep.partition("/")
        if not sep or not scope.startswith("@"):
            return False
        if self.config.scope is not None and scope != self.config.scope.rstrip("/"):
            return False
        return rest in self.list_units()
