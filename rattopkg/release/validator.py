# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Pre-packaging validation of the rattomail binary.

This is the only gate in front of packaging and testing. The package
installs the binary setuid, so we refuse anything that isn't exactly what we
expect: an existing, regular (non-symlink), readable, executable, statically
linked file. Static linkage matters because the same .deb is installed on
hosts whose libc we know nothing about.

Checks run in order and the first failure stops validation, with a message
and a `check` tag specific to that failure.
"""

import os
import re
from pathlib import Path

from rattopkg.config.schema import PackagingConfig
from rattopkg.exceptions import ExecutableValidationFailed
from rattopkg.logging.logger import get_logger
from rattopkg.runtime.process import CommandRunner, run_checked

logger = get_logger(__name__)


class ExecutableValidator:
    """Checks a candidate binary before anything is staged."""

    def __init__(self, config: PackagingConfig, runner: CommandRunner) -> None:
        self._runner = runner
        self._static_re = re.compile(config.static_link_pattern)

    def validate(self, exe_path: Path) -> None:
        """
        Run every check against `exe_path`.

        Raises:
            ExecutableValidationFailed: On the first failing check.
            SubprocessFailure: If the `file` probe itself fails.
        """
        path_str = str(exe_path)

        if not exe_path.exists():
            raise ExecutableValidationFailed(
                "exists", path_str, f"file '{path_str}' does not exist."
            )

        if exe_path.is_symlink() or not exe_path.is_file():
            raise ExecutableValidationFailed(
                "regular_file", path_str, f"'{path_str}' is not a regular file."
            )

        if not os.access(exe_path, os.R_OK):
            raise ExecutableValidationFailed(
                "readable", path_str, f"Cannot read '{path_str}'."
            )

        if not os.access(exe_path, os.X_OK):
            raise ExecutableValidationFailed(
                "executable", path_str, f"'{path_str}' is not executable."
            )

        probe = run_checked(self._runner, ["file", path_str], f"run 'file' on {path_str}")
        if not self._static_re.search(probe.stdout):
            raise ExecutableValidationFailed(
                "static_linkage", path_str, f"Binary {path_str} is not statically linked"
            )

        logger.info("Executable looks ok", extra={"exe": path_str})
