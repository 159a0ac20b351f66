"""Command execution and terminal output.

Every external action of a release (tests, builds, git, registry
publishes) goes through an Executor. In dry mode the executor only prints
what it would have run, so a simulated release follows exactly the same
steps as a real one.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from pathlib import Path

import click

from .errors import StepFailed


@dataclass
class CommandResult:
    """Outcome of one command invocation.

    Attributes:
        args: The command and its arguments.
        cwd: Working directory the command ran (or would have run) in.
        returncode: Exit status; always 0 for simulated commands.
        stdout: Captured stdout, or "" when output was streamed.
        stderr: Captured stderr, or "" when output was streamed.
        simulated: True if the command was only printed.
    """

    args: tuple[str, ...]
    cwd: Path
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""
    simulated: bool = False


@dataclass
class Executor:
    """Runs external commands, or only prints them when ``dry`` is set.

    Attributes:
        cwd: Default working directory, normally the workspace root.
        dry: Simulate side-effecting commands instead of running them.
        history: Every invocation made through this executor, in order.
    """

    cwd: Path = field(default_factory=Path.cwd)
    dry: bool = False
    history: list[CommandResult] = field(default_factory=list)

    def run(
        self, *args: str, cwd: Path | None = None, capture: bool = False
    ) -> CommandResult:
        """Run a side-effecting command.

        Output streams to the terminal unless ``capture`` is set, in which
        case it is returned on the result (and attached to the error).

        Raises:
            StepFailed: If the command exits non-zero or cannot be started.
        """
        workdir = cwd or self.cwd
        if self.dry:
            location = "" if workdir == self.cwd else f" (in {workdir})"
            click.secho(f"[dryrun] {' '.join(args)}{location}", fg="blue")
            result = CommandResult(args=args, cwd=workdir, simulated=True)
            self.history.append(result)
            return result
        return self._execute(args, workdir, capture)

    def read(self, *args: str, cwd: Path | None = None) -> str:
        """Run a read-only command for real, even in dry mode.

        Returns:
            Stripped stdout of the command.
        """
        return self._execute(args, cwd or self.cwd, capture=True).stdout.strip()

    def _execute(
        self, args: tuple[str, ...], cwd: Path, capture: bool
    ) -> CommandResult:
        try:
            proc = subprocess.run(args, cwd=cwd, capture_output=capture, text=True)
        except FileNotFoundError as exc:
            self.history.append(CommandResult(args=args, cwd=cwd, returncode=127))
            raise StepFailed(args, 127, str(exc)) from exc

        result = CommandResult(
            args=args,
            cwd=cwd,
            returncode=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
        )
        self.history.append(result)
        if proc.returncode != 0:
            raise StepFailed(args, proc.returncode, result.stderr)
        return result


def step(msg: str) -> None:
    """Announce a release phase in cyan, after a blank line."""
    click.secho(f"\n{msg}", fg="cyan")


def skipped() -> None:
    click.echo("(skipped)")
