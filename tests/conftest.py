"""Shared test fixtures."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from lockstep.errors import AlreadyPublished, StepFailed
from lockstep.pipeline import ReleaseOptions, RunContext
from lockstep.shell import CommandResult, Executor
from lockstep.workspace import Workspace

CONFIG = """\
scope = "@acme"
primary = "core"
"""


def write_manifest(path: Path, document: dict) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    manifest = path / "package.json"
    manifest.write_text(json.dumps(document, indent=2) + "\n")
    return manifest


def read_manifest(path: Path) -> dict:
    return json.loads((path / "package.json").read_text())


@pytest.fixture
def workspace_root(tmp_path: Path) -> Path:
    """A workspace with three units, a private one and some stray entries.

    packages/
      core        depends on @acme/shared and lodash
      shared      peer-depends on the root project "acme"
      playground  private, depends on @acme/core
      global.d.ts stray file
      .cache/     hidden directory
    """
    root = tmp_path / "repo"
    write_manifest(
        root,
        {
            "name": "acme",
            "private": True,
            "version": "3.2.0",
            "scripts": {"test": "jest"},
            "devDependencies": {"@acme/core": "^3.2.0", "jest": "^29.0.0"},
        },
    )
    (root / "lockstep.toml").write_text(CONFIG)
    packages = root / "packages"
    write_manifest(
        packages / "core",
        {
            "name": "@acme/core",
            "version": "3.2.0",
            "main": "index.js",
            "dependencies": {"@acme/shared": "^3.2.0", "lodash": "^4.17.21"},
        },
    )
    write_manifest(
        packages / "shared",
        {
            "name": "@acme/shared",
            "version": "3.2.0",
            "peerDependencies": {"acme": "~3.2.0", "react": ">=18"},
        },
    )
    write_manifest(
        packages / "playground",
        {
            "name": "@acme/playground",
            "version": "3.2.0",
            "private": True,
            "dependencies": {"@acme/core": "3.2.0", "@other/core": "^1.0.0"},
        },
    )
    (packages / "global.d.ts").write_text("declare var __DEV__: boolean\n")
    (packages / ".cache").mkdir()
    return root


@pytest.fixture
def workspace(workspace_root: Path) -> Workspace:
    return Workspace(workspace_root)


class FakeExecutor(Executor):
    """Executor that never spawns processes.

    Commands starting with a prefix in ``failures`` exit with the given
    (returncode, stderr); ``outputs`` maps a command prefix to its stdout.
    """

    def __init__(self, cwd: Path, dry: bool = False) -> None:
        super().__init__(cwd=cwd, dry=dry)
        self.failures: dict[tuple[str, ...], tuple[int, str]] = {}
        self.outputs: dict[tuple[str, ...], str] = {}

    def _lookup(self, table: dict, args: tuple[str, ...]):
        for prefix, value in table.items():
            if args[: len(prefix)] == prefix:
                return value
        return None

    def _execute(self, args, cwd, capture):
        failure = self._lookup(self.failures, args)
        if failure is not None:
            returncode, stderr = failure
            self.history.append(
                CommandResult(args=args, cwd=cwd, returncode=returncode, stderr=stderr)
            )
            raise StepFailed(args, returncode, stderr)
        stdout = self._lookup(self.outputs, args) or ""
        result = CommandResult(args=args, cwd=cwd, stdout=stdout)
        self.history.append(result)
        return result

    def commands(self) -> list[tuple[str, ...]]:
        return [r.args for r in self.history]

    def ran(self, *prefix: str) -> bool:
        return any(args[: len(prefix)] == prefix for args in self.commands())


class FakeRegistry:
    """Registry recording publish calls; selected units fail."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, str | None, str]] = []
        self.already_published: set[str] = set()
        self.broken: set[str] = set()

    def publish(
        self, location: Path, version: str, tag: str | None, access: str
    ) -> None:
        self.calls.append((location.name, version, tag, access))
        if location.name in self.already_published:
            raise AlreadyPublished(location, version)
        if location.name in self.broken:
            raise StepFailed(("fake", "publish"), 1, "E403 forbidden")

    def published(self) -> list[str]:
        return [name for name, *_ in self.calls]


class ScriptedPrompter:
    """Answers prompts from a script and records the questions."""

    def __init__(
        self, choice: str | None = None, text: str = "", confirm: bool = True
    ) -> None:
        self.choice = choice
        self.answer = text
        self.answer_confirm = confirm
        self.questions: list[tuple[str, object]] = []

    def select(self, message: str, choices: list[str]) -> str:
        self.questions.append((message, choices))
        if self.choice is None:
            return choices[0]
        return next(c for c in choices if c.startswith(self.choice))

    def text(self, message: str, default: str) -> str:
        self.questions.append((message, default))
        return self.answer

    def confirm(self, message: str) -> bool:
        self.questions.append((message, None))
        return self.answer_confirm


@pytest.fixture
def executor(workspace_root: Path) -> FakeExecutor:
    fake = FakeExecutor(cwd=workspace_root)
    fake.outputs[("git", "diff")] = "diff --git a/package.json b/package.json"
    return fake


@pytest.fixture
def registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture
def make_context(workspace: Workspace, executor: FakeExecutor, registry: FakeRegistry):
    def _make(**options) -> RunContext:
        executor.dry = options.get("dry_run", False)
        return RunContext.create(
            workspace, ReleaseOptions(**options), executor=executor, registry=registry
        )

    return _make
