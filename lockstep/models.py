"""Units, package manifests and the records a release run produces.

Manifests are validated with Pydantic but keep their raw JSON document, so
writing one back changes only the fields a release touches.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

DEPENDENCY_FIELDS = ("dependencies", "peerDependencies")


class Unit(BaseModel):
    """A publishable package in the workspace.

    Attributes:
        name: Directory name under the packages root. This is the name used
              for skip-set membership and scoped-name matching, not the
              published name from the manifest.
        path: Absolute path to the package directory.
        is_root: True for the workspace root project, which is versioned
                 like every other unit but never enumerated or published.
    """

    name: str
    path: Path
    is_root: bool = False


class Manifest(BaseModel):
    """One unit's package manifest.

    The parsed fields are validated, while the original document is kept
    so that keys this model does not know about survive a save, in their
    original order.

    Attributes:
        name: Published package name.
        version: Semantic version string.
        dependencies: Runtime dependencies, name → version range.
        peer_dependencies: Peer dependencies, name → version range.
        private: Private packages are never published.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str
    version: str = "0.0.0"
    dependencies: dict[str, str] = Field(default_factory=dict)
    peer_dependencies: dict[str, str] = Field(
        default_factory=dict, alias="peerDependencies"
    )
    private: bool = False

    _document: dict[str, Any] = PrivateAttr(default_factory=dict)

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> Manifest:
        manifest = cls.model_validate(document)
        manifest._document = document
        return manifest

    def dependency_map(self, field: str) -> dict[str, str]:
        """Return the dependency map stored under a manifest key."""
        if field == "dependencies":
            return self.dependencies
        if field == "peerDependencies":
            return self.peer_dependencies
        raise KeyError(field)

    def to_document(self) -> dict[str, Any]:
        """Merge the model back into the original document.

        Existing keys keep their position; keys absent from the original
        are only added when they carry information.
        """
        document = dict(self._document)
        document["name"] = self.name
        document["version"] = self.version
        for field in DEPENDENCY_FIELDS:
            deps = self.dependency_map(field)
            if deps or field in document:
                document[field] = dict(deps)
        if self.private or "private" in document:
            document["private"] = self.private
        return document


class DependencyRewrite(BaseModel):
    """A single dependency edge rewritten during propagation."""

    unit: str
    field: str
    dependency: str
    old: str
    new: str


class PublishStatus(str, Enum):
    """Terminal outcome of publishing one unit."""

    SKIPPED = "skipped"
    NOT_PUBLIC = "not-public"
    PUBLISHED = "published"
    ALREADY_PUBLISHED = "already-published"


class PublishResult(BaseModel):
    unit: str
    status: PublishStatus
    version: str
    tag: str | None = None


class ReleaseReport(BaseModel):
    """What a release run did.

    Attributes:
        version: The confirmed target version, or None if none was confirmed.
        declined: True when the operator declined the confirmation prompt.
        dry_run: True when external side effects were only simulated.
        committed: True when the working tree had changes and a release
                   commit was created.
        rewrites: Dependency edges rewritten by propagation.
        results: Per-unit publish outcomes, in enumeration order.
        skipped: Units excluded from publishing by the skip set.
    """

    version: str | None = None
    declined: bool = False
    dry_run: bool = False
    committed: bool = False
    rewrites: list[DependencyRewrite] = Field(default_factory=list)
    results: list[PublishResult] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)

    def by_status(self, status: PublishStatus) -> list[str]:
        return [r.unit for r in self.results if r.status is status]
