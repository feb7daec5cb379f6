# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Acceptance harness: installs a built .deb in a throwaway container, sends
one message through it and checks what landed in the Maildir.

The run is a straight line:

    check inputs -> build image -> launch -> install + submit -> collect -> assert -> stop

Once the container has been launched, stopping it is guaranteed: the stop
runs from a context manager, so a failed install, a failed submission or a
bug in the checks still tears the container down. A failing stop is only a
warning and never hides the error that got us there.

Usage:
    harness = AcceptanceHarness(config.harness, SubprocessRunner(), TapReporter())
    report = harness.run(Path("rattomail-0.1.0-1-amd64.deb"))
    report.raise_for_failures()
"""

import logging
import os
import time
from pathlib import Path
from typing import Callable, Optional

from rattopkg.config.schema import HarnessConfig
from rattopkg.exceptions import ArtifactMissing, SubmissionFailed
from rattopkg.harness.assertions import (
    CHECK_NAMES,
    MailboxReport,
    collect_message_files,
    evaluate_mailbox,
)
from rattopkg.harness.container import ContainerRuntime, running_container
from rattopkg.harness.report import TapReporter
from rattopkg.logging.logger import get_logger
from rattopkg.runtime.process import CommandRunner
from rattopkg.utils.filesystem import scratch_directory

_logger: logging.Logger = get_logger(__name__)


def validate_input_file(path: Path) -> Path:
    """
    Check that a harness input exists, is a regular file and is readable.

    Returns:
        The absolute path, ready to be used as a bind-mount source.

    Raises:
        ArtifactMissing: With a message naming the failed condition.
    """
    if not path.exists():
        raise ArtifactMissing(f"file '{path}' does not exist.")
    if path.is_symlink() or not path.is_file():
        raise ArtifactMissing(f"'{path}' is not a regular file.")
    if not os.access(path, os.R_OK):
        raise ArtifactMissing(f"file '{path}' is not readable.")
    return path.resolve()


class AcceptanceHarness:
    """Runs the container acceptance test for one package file."""

    def __init__(
        self,
        config: HarnessConfig,
        runner: CommandRunner,
        reporter: TapReporter,
        sleep: Optional[Callable[[float], None]] = None,
        work_dir: Optional[Path] = None,
    ) -> None:
        self._config = config
        self._runtime = ContainerRuntime(config, runner)
        self._reporter = reporter
        self._sleep = sleep or time.sleep
        self._work_dir = work_dir

    def run(self, deb_path: Path) -> MailboxReport:
        """
        Run every stage and report each check on the TAP stream.

        Returns:
            The MailboxReport. All seven checks are reported before this
            returns, whether they passed or not.

        Raises:
            SubprocessFailure: Image build, launch or copy-out failed.
            ArtifactMissing: The package or agent config isn't usable.
            SubmissionFailed: Install or mail submission inside the container failed.
        """
        cfg = self._config
        work_dir = (self._work_dir or Path.cwd()).resolve()
        self._reporter.plan(len(CHECK_NAMES))

        deb = validate_input_file(deb_path)
        agent_config = validate_input_file(work_dir / cfg.config_file)

        self._reporter.diag("Building container image")
        self._runtime.build_image()

        self._reporter.diag("Running container in background")
        with running_container(self._runtime, deb, agent_config, work_dir) as container_id:
            self._sleep(cfg.settle_seconds)

            self._reporter.diag(f"Installing {deb.name} and sending mail inside the container")
            self._exercise(container_id, deb.name)

            with scratch_directory(cfg.scratch_prefix, work_dir) as collect_dir:
                self._runtime.copy_out(container_id, cfg.maildir, collect_dir)
                files = collect_message_files(collect_dir)
                report = evaluate_mailbox(files, cfg)

        self._reporter.report_all(report.results)
        _logger.info(
            "Acceptance run finished",
            extra={"deb": str(deb), "passed": report.passed},
        )
        return report

    def _exercise(self, container_id: str, deb_name: str) -> None:
        cfg = self._config
        self._runtime.exec(
            container_id,
            [*cfg.install_command, f"{cfg.package_mount_dir}/{deb_name}"],
            f"install {deb_name} in container",
            error=SubmissionFailed,
        )
        self._runtime.exec(
            container_id,
            [cfg.submit_client, "-s", cfg.subject, cfg.recipient],
            f"send mail with {cfg.submit_client} in container",
            input=cfg.body + "\n",
            error=SubmissionFailed,
        )
        _logger.info("Message submitted", extra={"container_id": container_id})
