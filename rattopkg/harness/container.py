# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Thin wrapper over the container runtime CLI (docker by default).

Every call goes through the CommandRunner, so the harness never talks to a
daemon socket directly and tests can script the whole container lifecycle.
"""

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from rattopkg.config.schema import HarnessConfig
from rattopkg.exceptions import SubprocessFailure
from rattopkg.logging.logger import get_logger
from rattopkg.runtime.process import CommandResult, CommandRunner, run_checked

_logger: logging.Logger = get_logger(__name__)


class ContainerRuntime:
    """Image build, launch, exec, copy-out and stop for one test image."""

    def __init__(self, config: HarnessConfig, runner: CommandRunner) -> None:
        self._config = config
        self._runner = runner

    def build_image(self) -> None:
        """`docker build -t <tag> <image dir>`."""
        run_checked(
            self._runner,
            [self._config.runtime, "build", "-t", self._config.image_tag, self._config.image_dir],
            f"build container image {self._config.image_tag}",
        )
        _logger.info("Container image built", extra={"image": self._config.image_tag})

    def launch_command(self, deb_path: Path, config_path: Path, work_dir: Path) -> list[str]:
        cfg = self._config
        return [
            cfg.runtime,
            "run",
            "--rm",
            "--detach",
            "-v", f"{work_dir}:{cfg.work_mount}",
            "-v", f"{config_path}:{cfg.config_mount}",
            "-v", f"{deb_path}:{cfg.package_mount_dir}/{deb_path.name}",
            "--workdir", cfg.work_mount,
            cfg.image_tag,
            *cfg.keepalive_command,
        ]

    def launch(self, deb_path: Path, config_path: Path, work_dir: Path) -> str:
        """
        Start a detached container with the package and agent config mounted.

        Paths must be absolute; docker treats relative -v sources as volume names.

        Returns:
            The container id.

        Raises:
            SubprocessFailure: If the run fails or prints no id.
        """
        result = run_checked(
            self._runner,
            self.launch_command(deb_path, config_path, work_dir),
            "start test container",
        )
        container_id = result.stdout.strip()
        if not container_id:
            raise SubprocessFailure(
                "start test container",
                result.command_line,
                result.returncode,
                "no container id on stdout",
            )
        _logger.info("Container started", extra={"container_id": container_id})
        return container_id

    def exec(
        self,
        container_id: str,
        argv: Sequence[str],
        operation: str,
        *,
        input: Optional[str] = None,
        error: type[SubprocessFailure] = SubprocessFailure,
    ) -> CommandResult:
        """Run argv inside the container. stdin is attached only when `input` is given."""
        command = [self._config.runtime, "exec"]
        if input is not None:
            command.append("-i")
        command.append(container_id)
        command.extend(argv)
        return run_checked(self._runner, command, operation, input=input, error=error)

    def copy_out(self, container_id: str, source: str, destination: Path) -> None:
        run_checked(
            self._runner,
            [self._config.runtime, "cp", f"{container_id}:{source}", str(destination)],
            f"copy {source} out of container",
        )

    def stop(self, container_id: str) -> bool:
        """
        `docker stop -t 0 <id>`. Never raises.

        Returns:
            Whether the stop succeeded. Failure is logged as a warning.
        """
        result = self._runner.run([self._config.runtime, "stop", "-t", "0", container_id])
        if not result.ok:
            _logger.warning(
                "Failed to stop container",
                extra={
                    "container_id": container_id,
                    "exit_code": result.returncode,
                    "stderr": result.stderr.strip(),
                },
            )
            return False
        _logger.info("Container stopped", extra={"container_id": container_id})
        return True


@contextmanager
def running_container(
    runtime: ContainerRuntime,
    deb_path: Path,
    config_path: Path,
    work_dir: Path,
) -> Iterator[str]:
    """
    Launch a container and stop it on the way out, however the block exits.

    If the launch itself fails there is nothing to stop.
    """
    container_id = runtime.launch(deb_path, config_path, work_dir)
    try:
        yield container_id
    finally:
        runtime.stop(container_id)
