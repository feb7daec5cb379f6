# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Staging tree builder: lays out the package contents exactly as they'll be
installed, under a scratch root:

    <root>/
    ├─ usr/sbin/rattomail            stripped, mode 04755
    ├─ usr/sbin/sendmail -> /usr/sbin/rattomail
    ├─ usr/share/man/man8/rattomail.8
    ├─ usr/share/doc/rattomail/examples/
    └─ DEBIAN/                       control file goes here later

The sendmail symlink points at the *installed* path of the binary, not at the
staging copy; traditional mail clients call /usr/sbin/sendmail and must land
on rattomail after installation.

The builder never creates or removes the root itself. The caller owns the
scratch directory and its cleanup.
"""

import os
import shutil
from dataclasses import dataclass
from pathlib import Path

from rattopkg.config.schema import PackagingConfig
from rattopkg.logging.logger import get_logger
from rattopkg.runtime.process import CommandRunner, run_checked
from rattopkg.utils.filesystem import working_directory

logger = get_logger(__name__)


@dataclass(frozen=True)
class StagingLayout:
    """Fixed subpaths of one staging tree."""

    root: Path
    bin_dir: Path
    man_dir: Path
    example_dir: Path
    metadata_dir: Path

    @classmethod
    def for_root(cls, root: Path, config: PackagingConfig) -> "StagingLayout":
        return cls(
            root=root,
            bin_dir=root / config.install_dir.lstrip("/"),
            man_dir=root / "usr" / "share" / "man" / f"man{config.man_section}",
            example_dir=root / "usr" / "share" / "doc" / config.package_name / "examples",
            metadata_dir=root / "DEBIAN",
        )

    @property
    def directories(self) -> tuple[Path, ...]:
        return (self.bin_dir, self.man_dir, self.example_dir, self.metadata_dir)


def _make_tree(root: Path, target: Path, mode: int) -> None:
    """
    Create `target` and any missing parents below `root`, each with `mode`.

    mkdir's mode is filtered through the umask, so we chmod explicitly.
    """
    current = root
    for part in target.relative_to(root).parts:
        current = current / part
        if not current.is_dir():
            current.mkdir()
            current.chmod(mode)


class StagingTreeBuilder:
    """Populates a staging root with binary, man page, examples and the sendmail shim."""

    def __init__(self, config: PackagingConfig, runner: CommandRunner) -> None:
        self._config = config
        self._runner = runner

    def build(self, exe_path: Path, root: Path) -> StagingLayout:
        """
        Stage a validated executable under `root`.

        Args:
            exe_path: Binary that already passed ExecutableValidator.
            root: Fresh, empty scratch directory.

        Returns:
            The layout of the populated tree.

        Raises:
            SubprocessFailure: If strip or pandoc fail.
            OSError: On copy/chmod/symlink failures.
        """
        layout = StagingLayout.for_root(root, self._config)

        for directory in layout.directories:
            _make_tree(root, directory, self._config.directory_mode)

        self._install_binary(exe_path, layout)
        self._render_man_page(layout)
        self._copy_examples(layout)
        self._create_sendmail_link(layout)

        logger.info("Staging tree ready", extra={"root": str(root)})
        return layout

    def _install_binary(self, exe_path: Path, layout: StagingLayout) -> Path:
        staged = layout.bin_dir / self._config.package_name
        shutil.copyfile(exe_path, staged)

        run_checked(self._runner, ["strip", str(staged)], f"strip {staged}")

        # chmod after strip: strip rewrites the file and may drop the setuid bit.
        staged.chmod(self._config.binary_mode)
        logger.info(
            "Staged binary",
            extra={"source": str(exe_path), "dest": str(staged), "mode": oct(self._config.binary_mode)},
        )
        return staged

    def _render_man_page(self, layout: StagingLayout) -> Path:
        man_page = layout.man_dir / f"{self._config.package_name}.{self._config.man_section}"
        run_checked(
            self._runner,
            [
                "pandoc",
                "-s",
                "-t", "man",
                "-f", "markdown",
                "-o", str(man_page),
                self._config.man_source,
            ],
            "render man page with pandoc",
        )
        logger.info("Rendered man page", extra={"source": self._config.man_source, "dest": str(man_page)})
        return man_page

    def _copy_examples(self, layout: StagingLayout) -> None:
        for example in self._config.example_files:
            source = Path(example)
            shutil.copyfile(source, layout.example_dir / source.name)
            (layout.example_dir / source.name).chmod(0o644)
            logger.debug("Copied example", extra={"source": str(source)})

    def _create_sendmail_link(self, layout: StagingLayout) -> None:
        installed_path = f"{self._config.install_dir}/{self._config.package_name}"
        with working_directory(layout.bin_dir):
            os.symlink(installed_path, self._config.sendmail_link)
        logger.info(
            "Created sendmail link",
            extra={"link": self._config.sendmail_link, "target": installed_path},
        )
