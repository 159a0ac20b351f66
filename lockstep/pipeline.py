"""Release pipeline: confirm → test → propagate → build → publish → tag.

This module orchestrates a lockstep release:
1. Pick the target version (explicit, or chosen from suggested increments)
   and have the operator confirm it
2. Run the test gate
3. Propagate the version to every manifest in the workspace
4. Run the build gate
5. Regenerate the changelog
6. Commit the result if the working tree changed
7. Publish every unit, tolerating versions that are already published
8. Tag the release and push

Nothing is modified before the operator confirms. After propagation no
step is undone on failure: the error is reported together with the
manifests that were rewritten, and the run can be repeated once the
problem is fixed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

import click
from pydantic import BaseModel, Field

from .errors import LockstepError
from .models import DependencyRewrite, PublishResult, PublishStatus, ReleaseReport
from .propagate import echo_rewrite, propagate_versions
from .publish import Publisher, Registry, make_registry
from .shell import Executor, skipped, step
from .versions import resolve_preid, suggest, validate_version
from .workspace import Workspace

CUSTOM_CHOICE = "custom"


class ReleaseOptions(BaseModel):
    """Options of one release run, as given on the command line.

    Attributes:
        version: Explicit target version; prompts for one when unset.
        preid: Pre-release identifier overriding the current one.
        dry_run: Print side-effecting commands instead of running them.
        skip_tests: Do not run the test gate.
        skip_build: Do not run the build gate.
        tag: Distribution tag forced on every published unit.
        skip: Units excluded from publishing, on top of the configured ones.
        yes: Do not ask for a final confirmation.
    """

    version: str | None = None
    preid: str | None = None
    dry_run: bool = False
    skip_tests: bool = False
    skip_build: bool = False
    tag: str | None = None
    skip: list[str] = Field(default_factory=list)
    yes: bool = False


class Prompter(Protocol):
    """Interactive questions asked before anything is modified."""

    def select(self, message: str, choices: list[str]) -> str: ...

    def text(self, message: str, default: str) -> str: ...

    def confirm(self, message: str) -> bool: ...


class ClickPrompter:
    """Asks questions on the terminal."""

    def select(self, message: str, choices: list[str]) -> str:
        for i, choice in enumerate(choices, start=1):
            click.echo(f"  {i}) {choice}")
        index = click.prompt(message, type=click.IntRange(1, len(choices)), default=1)
        return choices[index - 1]

    def text(self, message: str, default: str) -> str:
        return click.prompt(message, default=default)

    def confirm(self, message: str) -> bool:
        return click.confirm(message, default=False)


@dataclass
class RunContext:
    """State threaded through every step of one release run.

    Attributes:
        workspace: Workspace being released.
        options: Run options.
        executor: Runs (or simulates) every external command.
        registry: Client used by the publisher.
        skip: Units excluded from publishing; fixed for the run.
        version: Confirmed target version, set once by choose_version().
        modified: Manifests already rewritten in this run.
    """

    workspace: Workspace
    options: ReleaseOptions
    executor: Executor
    registry: Registry
    skip: frozenset[str]
    version: str | None = None
    modified: list[Path] = field(default_factory=list)

    @classmethod
    def create(
        cls,
        workspace: Workspace,
        options: ReleaseOptions,
        executor: Executor | None = None,
        registry: Registry | None = None,
    ) -> RunContext:
        executor = executor or Executor(cwd=workspace.path, dry=options.dry_run)
        return cls(
            workspace=workspace,
            options=options,
            executor=executor,
            registry=registry or make_registry(workspace.config.registry, executor),
            skip=frozenset(workspace.config.skip) | frozenset(options.skip),
        )


def current_version(workspace: Workspace) -> str:
    return workspace.load_manifest(workspace.root()).version


def choose_version(ctx: RunContext, prompter: Prompter) -> str | None:
    """Determine the target version and have the operator confirm it.

    Returns:
        The validated version, or None if the operator declined.

    Raises:
        InvalidVersion: If the chosen version is not valid semver.
    """
    target = ctx.options.version
    if not target:
        current = current_version(ctx.workspace)
        preid = resolve_preid(current, ctx.options.preid)
        labels = {
            f"{kind} ({version})": version
            for kind, version in suggest(current, preid)
        }
        choice = prompter.select("Select release type", [*labels, CUSTOM_CHOICE])
        if choice == CUSTOM_CHOICE:
            target = prompter.text("Input custom version", default=current)
        else:
            target = labels[choice]

    target = validate_version(target)
    if not ctx.options.yes and not prompter.confirm(f"Releasing v{target}. Confirm?"):
        return None
    ctx.version = target
    return target


def _run_commands(ctx: RunContext, commands: list[list[str]]) -> None:
    for command in commands:
        ctx.executor.run(*command)


def run_tests(ctx: RunContext) -> None:
    step("Running tests...")
    if ctx.options.skip_tests or ctx.options.dry_run:
        skipped()
        return
    _run_commands(ctx, ctx.workspace.config.test)


def _confirmed_version(ctx: RunContext) -> str:
    if ctx.version is None:
        raise LockstepError("No release version has been confirmed.")
    return ctx.version


def update_versions(ctx: RunContext) -> list[DependencyRewrite]:
    """Propagate the confirmed version, recording every manifest written."""
    step("Updating cross dependencies...")
    return propagate_versions(
        ctx.workspace,
        _confirmed_version(ctx),
        echo_rewrite,
        on_save=ctx.modified.append,
    )


def build(ctx: RunContext) -> None:
    step("Building all packages...")
    if ctx.options.skip_build or ctx.options.dry_run:
        skipped()
        return
    _run_commands(ctx, ctx.workspace.config.build)
    if ctx.workspace.config.verify:
        step("Verifying type declarations...")
        _run_commands(ctx, ctx.workspace.config.verify)


def generate_changelog(ctx: RunContext) -> None:
    step("Generating changelog...")
    _run_commands(ctx, ctx.workspace.config.changelog)


def commit_changes(ctx: RunContext) -> bool:
    """Commit the working tree if it changed.

    Returns:
        True if a commit was made (or simulated).
    """
    if not ctx.executor.read("git", "diff"):
        click.echo("No changes to commit.")
        return False

    step("Committing changes...")
    message = ctx.workspace.config.commit_message.format(version=ctx.version)
    ctx.executor.run("git", "add", "-A")
    ctx.executor.run("git", "commit", "-m", message)
    return True


def publish_units(ctx: RunContext) -> list[PublishResult]:
    """Publish every unit in enumeration order.

    Skipped, private and already-published units do not stop the run; any
    other failure aborts the remaining units.
    """
    step("Publishing packages...")
    version = _confirmed_version(ctx)
    publisher = Publisher(
        ctx.workspace, ctx.registry, skip=ctx.skip, tag_override=ctx.options.tag
    )
    return [publisher.publish(unit, version) for unit in ctx.workspace.units()]


def push_release(ctx: RunContext) -> None:
    step("Pushing to remote...")
    config = ctx.workspace.config
    tag = f"{config.tag_prefix}{ctx.version}"
    ctx.executor.run("git", "tag", tag)
    ctx.executor.run("git", "push", config.remote, f"refs/tags/{tag}")
    ctx.executor.run("git", "push")


def print_summary(ctx: RunContext, report: ReleaseReport) -> None:
    if ctx.options.dry_run:
        click.echo("\nDry run finished - run git diff to see package changes.")
    if report.skipped:
        listing = "\n- ".join(report.skipped)
        click.secho(
            f"The following packages are skipped and NOT published:\n- {listing}",
            fg="yellow",
        )
    click.echo()


def _report_partial_release(ctx: RunContext) -> None:
    click.secho(
        f"\nRelease of v{ctx.version} stopped after manifests were rewritten. "
        "They were not reverted:",
        fg="red",
        err=True,
    )
    for path in ctx.modified:
        click.echo(f"  {path}", err=True)


def run_release(ctx: RunContext, prompter: Prompter | None = None) -> ReleaseReport:
    """Execute the full release pipeline.

    Returns:
        A report of the run. When the operator declines the confirmation,
        the report has ``declined`` set and nothing was modified.

    Raises:
        LockstepError: On the first failing step.
    """
    report = ReleaseReport(dry_run=ctx.options.dry_run)
    version = choose_version(ctx, prompter or ClickPrompter())
    if version is None:
        report.declined = True
        return report
    report.version = version

    run_tests(ctx)

    try:
        report.rewrites = update_versions(ctx)
        build(ctx)
        generate_changelog(ctx)
        report.committed = commit_changes(ctx)
        report.results = publish_units(ctx)
        push_release(ctx)
    except LockstepError:
        if ctx.modified:
            _report_partial_release(ctx)
        raise

    report.skipped = report.by_status(PublishStatus.SKIPPED)
    print_summary(ctx, report)
    return report
