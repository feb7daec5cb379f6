# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Command execution for every external tool rattopkg touches.

uname, file, strip, pandoc, du, fakeroot/dpkg-deb, tar and docker all go
through a CommandRunner. The real one is a thin wrapper around subprocess.run:
list argv (never shell=True), capture stdout/stderr as text, block until the
process exits, hand back a CommandResult. Tests swap in a fake runner that
records argv and returns scripted results.

run_checked is the "non-zero is fatal" helper the pipeline uses almost
everywhere. It turns a failed result into SubprocessFailure carrying the exact
command line, so an operator can re-run it by hand.
"""

import shlex
import subprocess
import time
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

from rattopkg.exceptions import SubprocessFailure
from rattopkg.logging.logger import get_logger

logger = get_logger(__name__)

# Conventional shell exit status for "command not found".
COMMAND_NOT_FOUND: int = 127


@dataclass(frozen=True)
class CommandResult:
    """Exit status and captured output of one external command."""

    argv: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def command_line(self) -> str:
        return shlex.join(self.argv)


class CommandRunner(Protocol):
    """Anything that can run an argv and report how it went."""

    def run(
        self,
        argv: Sequence[str],
        *,
        input: Optional[str] = None,
        cwd: Optional[Path] = None,
    ) -> CommandResult: ...


class SubprocessRunner:
    """
    The real runner. Blocks until the child exits.

    A missing executable is reported as exit 127 rather than raised, and a
    timeout as exit -1, so every failure looks the same to run_checked.
    """

    def __init__(self, timeout_seconds: Optional[float] = None) -> None:
        self._timeout = timeout_seconds

    def run(
        self,
        argv: Sequence[str],
        *,
        input: Optional[str] = None,
        cwd: Optional[Path] = None,
    ) -> CommandResult:
        args = tuple(str(a) for a in argv)
        start = time.monotonic()

        try:
            completed = subprocess.run(
                list(args),
                input=input,
                capture_output=True,
                text=True,
                timeout=self._timeout,
                cwd=str(cwd) if cwd is not None else None,
            )
        except FileNotFoundError:
            logger.error("Command not found", extra={"command": args[0]})
            return CommandResult(
                argv=args,
                returncode=COMMAND_NOT_FOUND,
                stderr=f"{args[0]}: command not found",
            )
        except subprocess.TimeoutExpired:
            logger.warning(
                "Command timed out",
                extra={"command": shlex.join(args), "timeout_seconds": self._timeout},
            )
            return CommandResult(
                argv=args,
                returncode=-1,
                stderr=f"timed out after {self._timeout}s",
            )

        logger.debug(
            "Command finished",
            extra={
                "command": shlex.join(args),
                "exit_code": completed.returncode,
                "elapsed_seconds": round(time.monotonic() - start, 3),
            },
        )
        return CommandResult(
            argv=args,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )


def run_checked(
    runner: CommandRunner,
    argv: Sequence[str],
    operation: str,
    *,
    input: Optional[str] = None,
    cwd: Optional[Path] = None,
    error: type[SubprocessFailure] = SubprocessFailure,
) -> CommandResult:
    """
    Run a command and raise if it exits non-zero.

    Args:
        runner: Where to run it.
        argv: Program and arguments.
        operation: Short human description used in the error ("strip binary").
        input: Optional text fed to stdin.
        cwd: Optional working directory for the child.
        error: SubprocessFailure subclass to raise on failure.

    Returns:
        The successful CommandResult.

    Raises:
        SubprocessFailure (or the given subclass): on any non-zero exit.
    """
    result = runner.run(argv, input=input, cwd=cwd)
    if not result.ok:
        raise error(operation, result.command_line, result.returncode, result.stderr)
    return result
