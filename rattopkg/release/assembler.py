# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Final archive step: `fakeroot dpkg-deb --build`.

fakeroot makes every file in the archive owned by root without us running as
root, which is what lets the setuid bit on the staged binary mean "setuid
root" once installed.
"""

from pathlib import Path

from rattopkg.config.schema import PackagingConfig
from rattopkg.logging.logger import get_logger
from rattopkg.release.identity import PackageIdentity
from rattopkg.release.staging import StagingLayout
from rattopkg.runtime.process import CommandRunner, run_checked

logger = get_logger(__name__)


class PackageAssembler:
    """Turns a finished staging tree into one .deb."""

    def __init__(self, config: PackagingConfig, runner: CommandRunner) -> None:
        self._config = config
        self._runner = runner

    def command(self, root: Path, output_path: Path) -> list[str]:
        return [
            "fakeroot",
            "dpkg-deb",
            f"-Z{self._config.compression}",
            f"-z{self._config.compression_level}",
            "--build",
            str(root),
            str(output_path),
        ]

    def assemble(
        self,
        layout: StagingLayout,
        identity: PackageIdentity,
        output_dir: Path,
    ) -> Path:
        """
        Build <output_dir>/<deb filename> from the staging tree.

        Raises:
            SubprocessFailure: On non-zero exit; the message includes the full command.
        """
        output_path = output_dir / identity.deb_filename
        run_checked(
            self._runner,
            self.command(layout.root, output_path),
            "build .deb package",
        )
        logger.info("Assembled package", extra={"deb": str(output_path)})
        return output_path
