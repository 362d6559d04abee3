"""External command execution.

Two modes: ``run_command`` streams output straight to the terminal and raises
on failure, ``run_captured`` collects combined stdout/stderr for the caller to
inspect. Neither applies a timeout.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class CommandError(Exception):
    """Raised when an external command cannot be launched or exits non-zero."""

    def __init__(self, message: str, command: list[str], returncode: int | None = None):
        super().__init__(message)
        self.command = command
        self.returncode = returncode


@dataclass
class CommandResult:
    """Outcome of a captured command."""

    command: list[str]
    returncode: int
    output: str
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.returncode == 0 and self.error is None


def run_args(args: list[str]) -> None:
    """Run ``args`` with inherited stdout/stderr.

    Raises:
        CommandError: If the program is not found or exits non-zero
    """
    if not args:
        raise CommandError("Empty command", args)

    logger.debug("Running: %s", " ".join(args))
    try:
        result = subprocess.run(args)
    except OSError as e:
        raise CommandError(f"Failed to start {args[0]}: {e}", args)  # noqa: B904

    if result.returncode != 0:
        raise CommandError(
            f"Command failed with exit code {result.returncode}: {' '.join(args)}",
            args,
            result.returncode,
        )


def run_command(command_line: str) -> None:
    """Split ``command_line`` on whitespace and run it.

    No shell quoting is honoured; arguments containing spaces must go
    through :func:`run_args`.

    Raises:
        CommandError: If the program is not found or exits non-zero
    """
    run_args(command_line.split())


def run_captured(program: str, *args: str) -> CommandResult:
    """Run a program and capture its combined output.

    Never raises for a failing command; the result carries the return code
    and, if the program could not be started, the launch error.
    """
    cmd = [program, *args]
    logger.debug("Running (captured): %s", " ".join(cmd))
    try:
        result = subprocess.run(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
        )
    except OSError as e:
        return CommandResult(command=cmd, returncode=127, output="", error=str(e))

    error = None
    if result.returncode != 0:
        error = f"exit status {result.returncode}"
    return CommandResult(
        command=cmd,
        returncode=result.returncode,
        output=result.stdout or "",
        error=error,
    )
