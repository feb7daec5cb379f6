# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Control file generation.

The template (debian/control.in) carries three literal tokens, replaced
everywhere they occur:

    VERSION         -> <version>-<revision>
    ARCHITECTURE    -> Debian architecture
    INSTALLED_SIZE  -> `du -k -s` of the staging root, in kB

Size is measured before DEBIAN/control exists, so the control file itself is
not counted.
"""

from pathlib import Path

from rattopkg.config.schema import PackagingConfig
from rattopkg.exceptions import SubprocessFailure
from rattopkg.logging.logger import get_logger
from rattopkg.release.identity import PackageIdentity
from rattopkg.release.staging import StagingLayout
from rattopkg.runtime.process import CommandRunner, run_checked
from rattopkg.utils.filesystem import atomic_write, safe_read

logger = get_logger(__name__)

VERSION_TOKEN = "VERSION"
ARCHITECTURE_TOKEN = "ARCHITECTURE"
INSTALLED_SIZE_TOKEN = "INSTALLED_SIZE"


def render_control(template: str, identity: PackageIdentity, installed_size_kb: int) -> str:
    """Substitute all three tokens globally."""
    rendered = template.replace(VERSION_TOKEN, identity.debian_version)
    rendered = rendered.replace(ARCHITECTURE_TOKEN, identity.architecture)
    rendered = rendered.replace(INSTALLED_SIZE_TOKEN, str(installed_size_kb))
    return rendered


class ControlFileGenerator:
    """Measures the staging tree and writes DEBIAN/control."""

    def __init__(self, config: PackagingConfig, runner: CommandRunner) -> None:
        self._config = config
        self._runner = runner

    def measure_installed_size(self, root: Path) -> int:
        """
        Installed size in kB: first field of `du -k -s <root>`.

        Raises:
            SubprocessFailure: If du fails or prints something that isn't a size.
        """
        result = run_checked(
            self._runner,
            ["du", "-k", "-s", str(root)],
            f"calculate installed size for {root}",
        )
        fields = result.stdout.split()
        if not fields or not fields[0].isdigit():
            raise SubprocessFailure(
                f"calculate installed size for {root}",
                result.command_line,
                result.returncode,
                f"unexpected output: {result.stdout!r}",
            )
        return int(fields[0])

    def generate(self, layout: StagingLayout, identity: PackageIdentity) -> tuple[Path, int]:
        """
        Render the template into <root>/DEBIAN/control.

        Returns:
            (path of the written control file, installed size in kB)

        Raises:
            SubprocessFailure: If the size probe fails.
            FileNotFoundError: If the template is missing.
        """
        installed_size = self.measure_installed_size(layout.root)
        template = safe_read(Path(self._config.control_template))
        rendered = render_control(template, identity, installed_size)

        control_path = layout.metadata_dir / "control"
        atomic_write(control_path, rendered)

        logger.info(
            "Wrote control file",
            extra={
                "path": str(control_path),
                "version": identity.debian_version,
                "architecture": identity.architecture,
                "installed_size_kb": installed_size,
            },
        )
        return control_path, installed_size
