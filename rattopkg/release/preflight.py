# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Host preflight: the interpreter version and every external program that
build-deb, build-tgz and docker-test shell out to.

The Python gate is also what bootstrap runs before any subcommand.
"""

import logging
import shutil
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Callable, Optional

from rattopkg.logging.logger import get_logger

_logger: logging.Logger = get_logger(__name__)

MINIMUM_PYTHON: tuple[int, int] = (3, 11)

BUILD_TOOLS: tuple[str, ...] = ("uname", "file", "strip", "pandoc", "du", "fakeroot", "dpkg-deb")


def harness_tools(runtime: str) -> tuple[str, ...]:
    """Tools the container harness needs on the host."""
    return (runtime,)


@dataclass(frozen=True)
class PreflightCheck:
    """One line of the check-tools report."""

    name: str
    passed: bool
    message: str
    value: str


def check_python_version(version_info: Optional[Sequence[int]] = None) -> PreflightCheck:
    """The interpreter gate shared by bootstrap and check-tools."""
    current = tuple((version_info or sys.version_info)[:3])
    found = ".".join(map(str, current))
    wanted = ".".join(map(str, MINIMUM_PYTHON))
    if current[:2] >= MINIMUM_PYTHON:
        return PreflightCheck("python_version", True, f"Python {found} (>= {wanted})", found)
    return PreflightCheck(
        "python_version",
        False,
        f"rattopkg requires Python >= {wanted}, found {found}",
        found,
    )


def check_tool(
    tool: str,
    which: Optional[Callable[[str], Optional[str]]] = None,
) -> PreflightCheck:
    """Is `tool` on PATH?"""
    location = (which or shutil.which)(tool)
    if location is None:
        return PreflightCheck(
            name=tool,
            passed=False,
            message=f"{tool} not found on PATH",
            value="missing",
        )
    return PreflightCheck(name=tool, passed=True, message=f"{tool} at {location}", value=location)


def run_preflight(
    tools: Sequence[str],
    which: Optional[Callable[[str], Optional[str]]] = None,
) -> list[PreflightCheck]:
    """Python gate first, then one PATH lookup per tool, in the order given."""
    checks = [check_python_version(), *(check_tool(tool, which) for tool in tools)]

    missing = [c.name for c in checks if not c.passed]
    for check in checks:
        if check.passed:
            _logger.debug("Preflight ok", extra={"check": check.name, "found": check.value})
        else:
            _logger.error("Preflight failed", extra={"check": check.name, "check_message": check.message})

    _logger.info(
        "Preflight finished",
        extra={"checked": len(checks), "missing": missing},
    )
    return checks
