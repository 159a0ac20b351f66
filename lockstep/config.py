"""Workspace configuration.

Settings are read with tomlkit from ``lockstep.toml`` at the workspace
root, or from ``[tool.lockstep]`` in the root ``pyproject.toml``. Every
key is optional; a workspace without either file uses the defaults.

Example ``lockstep.toml``::

    packages-dir = "packages"
    scope = "@acme"
    primary = "core"
    skip = ["playground"]
    registry = "npm"
    test = [["npm", "test", "--", "--bail"]]
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import tomlkit
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from tomlkit.exceptions import ParseError

from .errors import ConfigError

CONFIG_FILE = "lockstep.toml"

Command = list[str]


class ReleaseConfig(BaseModel):
    """Static settings for a workspace.

    Attributes:
        packages_dir: Directory, relative to the root, holding one
                      directory per unit.
        manifest: Manifest filename inside each unit and at the root.
        project_name: Published name of the root project. Defaults to the
                      name in the root manifest.
        scope: Scope prefix (e.g. "@acme") of published unit names. When
               unset, in-workspace dependencies are matched by bare unit
               name.
        primary: Flagship unit published under the "next" tag.
        skip: Units never published.
        registry: Registry client used to publish.
        access: Visibility requested when publishing.
        remote: Git remote receiving the release tag.
        tag_prefix: Prefix of the release tag ("v" → "v1.2.3").
        commit_message: Release commit message; "{version}" is substituted.
        test: Commands run by the test gate.
        build: Commands run by the build gate.
        verify: Commands run after a successful build, under the same gate.
        changelog: Commands that regenerate the changelog.
    """

    model_config = ConfigDict(
        alias_generator=lambda name: name.replace("_", "-"),
        populate_by_name=True,
        extra="forbid",
    )

    packages_dir: str = "packages"
    manifest: str = "package.json"
    project_name: str | None = None
    scope: str | None = None
    primary: str | None = None
    skip: list[str] = Field(default_factory=list)
    registry: Literal["yarn", "npm"] = "yarn"
    access: str = "public"
    remote: str = "origin"
    tag_prefix: str = "v"
    commit_message: str = "release: v{version}"
    test: list[Command] = Field(
        default_factory=lambda: [["npm", "test", "--", "--bail"]]
    )
    build: list[Command] = Field(
        default_factory=lambda: [["npm", "run", "build", "--", "--release"]]
    )
    verify: list[Command] = Field(
        default_factory=lambda: [["npm", "run", "test-dts-only"]]
    )
    changelog: list[Command] = Field(
        default_factory=lambda: [["npm", "run", "changelog"]]
    )


def load_config(root: Path) -> ReleaseConfig:
    """Load the configuration for the workspace rooted at ``root``.

    ``lockstep.toml`` takes precedence over ``[tool.lockstep]`` in
    ``pyproject.toml``.

    Raises:
        ConfigError: If a file cannot be parsed or holds invalid settings.
    """
    table: dict[str, Any] = {}
    source = root / CONFIG_FILE
    if source.exists():
        table = _parse(source)
    elif (root / "pyproject.toml").exists():
        source = root / "pyproject.toml"
        table = _parse(source).get("tool", {}).get("lockstep", {})

    try:
        return ReleaseConfig.model_validate(table)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {source}:\n{exc}") from exc


def _parse(path: Path) -> dict[str, Any]:
    try:
        doc = tomlkit.parse(path.read_text())
    except ParseError as exc:
        raise ConfigError(f"Cannot parse {path}: {exc}") from exc
    # tomlkit containers wrap their values; unwrap to plain Python types
    return doc.unwrap()
