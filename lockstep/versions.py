"""Version resolution utilities.

Computes the candidate next versions offered to the operator and
validates the version finally chosen. Increments follow the usual
semver tooling rules:

- ``patch``/``minor``/``major`` on a pre-release finalize it when the
  pre-release already sits on that boundary ("1.3.0-beta.2" minor → "1.3.0").
- ``prepatch``/``preminor``/``premajor`` bump and start a new
  ``<preid>.0`` pre-release.
- ``prerelease`` continues the current pre-release line ("-beta.0" →
  "-beta.1"), switches channel when the preid differs, and behaves like
  ``prepatch`` on a stable version.
"""

from __future__ import annotations

import semver

from .errors import InvalidIncrement, InvalidVersion

STABLE_INCREMENTS = ("patch", "minor", "major")
PRE_INCREMENTS = ("prepatch", "preminor", "premajor", "prerelease")


def parse_version(version_str: str) -> semver.Version:
    """Parse a version string, raising InvalidVersion on malformed input."""
    try:
        return semver.Version.parse(version_str)
    except (ValueError, TypeError) as exc:
        raise InvalidVersion(version_str) from exc


def validate_version(version_str: str) -> str:
    """Validate an operator-supplied version and return it normalized.

    Surrounding whitespace and a leading "v" or "=" are accepted and
    dropped: " v1.2.3" → "1.2.3".
    """
    cleaned = version_str.strip().lstrip("=v").strip()
    try:
        return str(parse_version(cleaned))
    except InvalidVersion:
        raise InvalidVersion(version_str) from None


def current_preid(version_str: str) -> str | None:
    """Return the identifier of a version's pre-release, if any.

    Examples:
        "1.2.3-beta.4" → "beta"
        "1.2.3" → None
    """
    prerelease = parse_version(version_str).prerelease
    if not prerelease:
        return None
    head = prerelease.split(".")[0]
    return None if head.isdigit() else head


def resolve_preid(current: str, override: str | None = None) -> str | None:
    """Pick the pre-release identifier for this run.

    An explicit override wins; otherwise the identifier already carried by
    the current version is reused so that successive releases stay on the
    same channel.
    """
    return override or current_preid(current)


def available_increments(preid: str | None) -> list[str]:
    """Increment kinds the operator may choose from.

    Pre-release increments are only offered when a preid is known.
    """
    if preid:
        return [*STABLE_INCREMENTS, *PRE_INCREMENTS]
    return list(STABLE_INCREMENTS)


def increment(current: str, kind: str, preid: str | None = None) -> str:
    """Apply an increment to the current version.

    Raises:
        InvalidVersion: If the current version is malformed.
        InvalidIncrement: If the increment is unknown, needs a preid that
            was not given, or produces an invalid version.
    """
    version = parse_version(current)
    if kind not in available_increments(preid):
        raise InvalidIncrement(current, kind, preid)

    major, minor, patch = version.major, version.minor, version.patch
    prerelease = version.prerelease

    if kind == "major":
        if minor or patch or not prerelease:
            major += 1
        return _format(major, 0, 0)
    if kind == "minor":
        if patch or not prerelease:
            minor += 1
        return _format(major, minor, 0)
    if kind == "patch":
        if not prerelease:
            patch += 1
        return _format(major, minor, patch)

    if kind == "premajor":
        result = _format(major + 1, 0, 0, f"{preid}.0")
    elif kind == "preminor":
        result = _format(major, minor + 1, 0, f"{preid}.0")
    elif kind == "prepatch":
        result = _format(major, minor, patch + 1, f"{preid}.0")
    elif not prerelease:
        result = _format(major, minor, patch + 1, f"{preid}.0")
    else:
        result = _format(major, minor, patch, _next_prerelease(prerelease, preid))

    try:
        return str(semver.Version.parse(result))
    except ValueError as exc:
        raise InvalidIncrement(current, kind, preid) from exc


def suggest(current: str, preid: str | None = None) -> list[tuple[str, str]]:
    """Return (increment, resulting version) pairs for the selection prompt.

    Increments whose result would be invalid are left out.
    """
    choices: list[tuple[str, str]] = []
    for kind in available_increments(preid):
        try:
            choices.append((kind, increment(current, kind, preid)))
        except InvalidIncrement:
            continue
    return choices


def _format(major: int, minor: int, patch: int, prerelease: str | None = None) -> str:
    base = f"{major}.{minor}.{patch}"
    return f"{base}-{prerelease}" if prerelease else base


def _next_prerelease(prerelease: str, preid: str) -> str:
    """Advance an existing pre-release on the given channel.

    Examples:
        ("beta.0", "beta") → "beta.1"
        ("alpha.3", "beta") → "beta.0"
        ("beta", "beta") → "beta.0"
    """
    parts = prerelease.split(".")
    if parts[0] != preid:
        return f"{preid}.0"
    # Bump the right-most numeric component, or start a counter.
    for i in range(len(parts) - 1, 0, -1):
        if parts[i].isdigit():
            parts[i] = str(int(parts[i]) + 1)
            return ".".join(parts)
    return ".".join([*parts, "0"])
