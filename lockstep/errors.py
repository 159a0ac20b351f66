"""Error types raised by the release tooling.

All errors derive from click.ClickException so the CLI reports them as a
single ``Error: ...`` line on stderr with exit code 1.
"""

from __future__ import annotations

from pathlib import Path

import click


class LockstepError(click.ClickException):
    """Base class for all release errors."""


class ConfigError(LockstepError):
    """The workspace configuration file is malformed."""


class InvalidVersion(LockstepError):
    """An operator-supplied version string is not valid semver."""

    def __init__(self, version: str) -> None:
        super().__init__(f"invalid target version: {version}")
        self.version = version


class InvalidIncrement(LockstepError):
    """An increment could not produce a valid semantic version."""

    def __init__(self, current: str, kind: str, preid: str | None = None) -> None:
        suffix = f" with preid {preid!r}" if preid else ""
        super().__init__(f"cannot apply {kind} increment to {current}{suffix}")
        self.current = current
        self.kind = kind
        self.preid = preid


class ManifestError(LockstepError):
    """Base class for manifest I/O failures."""

    def __init__(self, path: Path, detail: str) -> None:
        super().__init__(f"{path}: {detail}")
        self.path = path


class ManifestNotFound(ManifestError):
    def __init__(self, path: Path) -> None:
        super().__init__(path, "manifest not found")


class ManifestParseError(ManifestError):
    pass


class ManifestWriteError(ManifestError):
    pass


class StepFailed(LockstepError):
    """An external command exited non-zero (or could not be started)."""

    def __init__(
        self, args: tuple[str, ...], returncode: int, stderr: str = ""
    ) -> None:
        command = " ".join(args)
        message = f"`{command}` failed with exit code {returncode}"
        if stderr.strip():
            message = f"{message}\n{stderr.strip()}"
        super().__init__(message)
        self.command = args
        self.returncode = returncode
        self.stderr = stderr


class AlreadyPublished(LockstepError):
    """The registry already holds this exact version of the package."""

    def __init__(self, location: Path, version: str) -> None:
        super().__init__(f"{location.name}@{version} was previously published")
        self.location = location
        self.version = version


class PublishFailed(LockstepError):
    """Any publish failure other than a duplicate version."""

    def __init__(self, unit: str, cause: StepFailed) -> None:
        super().__init__(f"Failed to publish {unit}: {cause.message}")
        self.unit = unit
        self.cause = cause
