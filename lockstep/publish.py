"""Publishing units to a package registry.

The Publisher decides whether and under which distribution tag a unit is
published; the registry clients only know how to invoke their tool and
how to recognize a duplicate-version rejection, which they report as the
typed AlreadyPublished error.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Protocol

import click

from .errors import AlreadyPublished, PublishFailed, StepFailed
from .models import PublishResult, PublishStatus, Unit
from .shell import Executor, step
from .workspace import Workspace

PRERELEASE_TAGS = ("alpha", "beta", "rc")


class Registry(Protocol):
    """A registry client able to publish one package directory."""

    def publish(
        self, location: Path, version: str, tag: str | None, access: str
    ) -> None:
        """Publish the package at ``location``.

        Raises:
            AlreadyPublished: If the registry already has this version.
            StepFailed: For any other failure.
        """
        ...


class YarnRegistry:
    """Publishes with ``yarn publish``, which also stamps the version."""

    duplicate = re.compile(r"previously published")

    def __init__(self, executor: Executor) -> None:
        self.executor = executor

    def command(self, version: str, tag: str | None, access: str) -> list[str]:
        cmd = ["yarn", "publish", "--new-version", version]
        if tag:
            cmd.extend(["--tag", tag])
        cmd.extend(["--access", access])
        return cmd

    def publish(
        self, location: Path, version: str, tag: str | None, access: str
    ) -> None:
        try:
            self.executor.run(
                *self.command(version, tag, access), cwd=location, capture=True
            )
        except StepFailed as exc:
            if self.duplicate.search(exc.stderr):
                raise AlreadyPublished(location, version) from exc
            raise


class NpmRegistry(YarnRegistry):
    """Publishes with ``npm publish``; the manifest already holds the version."""

    duplicate = re.compile(
        r"EPUBLISHCONFLICT|cannot publish over|previously published", re.IGNORECASE
    )

    def command(self, version: str, tag: str | None, access: str) -> list[str]:
        cmd = ["npm", "publish"]
        if tag:
            cmd.extend(["--tag", tag])
        cmd.extend(["--access", access])
        return cmd


REGISTRIES: dict[str, type[YarnRegistry]] = {
    "yarn": YarnRegistry,
    "npm": NpmRegistry,
}


def make_registry(name: str, executor: Executor) -> Registry:
    return REGISTRIES[name](executor)


def distribution_tag(
    unit: str,
    version: str,
    override: str | None = None,
    primary: str | None = None,
) -> str | None:
    """Choose the distribution tag for a unit.

    Priority: explicit override, then a pre-release channel named in the
    version ("alpha", "beta", "rc"), then "next" for the flagship unit.
    None means the registry default ("latest").

    Examples:
        ("core", "3.1.0-beta.2") → "beta"
        ("core", "3.1.0", primary="core") → "next"
        ("util", "3.1.0", primary="core") → None
    """
    if override:
        return override
    for channel in PRERELEASE_TAGS:
        if channel in version:
            return channel
    if primary is not None and unit == primary:
        return "next"
    return None


class Publisher:
    """Publishes workspace units one at a time.

    Attributes:
        workspace: The workspace the units belong to.
        registry: Client performing the actual publish.
        skip: Units excluded from publishing for this run.
        tag_override: Distribution tag forced by the operator.
    """

    def __init__(
        self,
        workspace: Workspace,
        registry: Registry,
        skip: frozenset[str] = frozenset(),
        tag_override: str | None = None,
    ) -> None:
        self.workspace = workspace
        self.registry = registry
        self.skip = skip
        self.tag_override = tag_override

    def publish(self, unit: Unit, version: str) -> PublishResult:
        """Publish a single unit.

        Returns:
            A result whose status is SKIPPED, NOT_PUBLIC, PUBLISHED or
            ALREADY_PUBLISHED.

        Raises:
            PublishFailed: For any registry failure other than a duplicate
                version.
            ManifestNotFound, ManifestParseError: If the manifest cannot be
                read.
        """
        if unit.name in self.skip:
            return PublishResult(
                unit=unit.name, status=PublishStatus.SKIPPED, version=version
            )

        manifest = self.workspace.load_manifest(unit)
        if manifest.private:
            return PublishResult(
                unit=unit.name, status=PublishStatus.NOT_PUBLIC, version=version
            )

        tag = distribution_tag(
            unit.name, version, self.tag_override, self.workspace.config.primary
        )

        step(f"Publishing {unit.name}...")
        try:
            self.registry.publish(unit.path, version, tag, self.workspace.config.access)
        except AlreadyPublished:
            click.secho(f"Skipping already published: {unit.name}", fg="red")
            return PublishResult(
                unit=unit.name,
                status=PublishStatus.ALREADY_PUBLISHED,
                version=version,
                tag=tag,
            )
        except StepFailed as exc:
            raise PublishFailed(unit.name, exc) from exc

        click.secho(f"Successfully published {unit.name}@{version}", fg="green")
        return PublishResult(
            unit=unit.name, status=PublishStatus.PUBLISHED, version=version, tag=tag
        )
