# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Plain tarball of the stripped binary, for hosts that don't use dpkg.

The archive holds a single member, the binary itself, owned by root:

    rattomail-<version>-linux-<arch>.tgz
    └─ rattomail
"""

import logging
import shutil
from collections.abc import Mapping
from pathlib import Path
from typing import Optional

from rattopkg.config.schema import PackagingConfig
from rattopkg.logging.logger import get_logger
from rattopkg.release.packager import query_package_identity
from rattopkg.release.validator import ExecutableValidator
from rattopkg.runtime.process import CommandRunner, run_checked
from rattopkg.utils.filesystem import scratch_directory

_logger: logging.Logger = get_logger(__name__)


def build_tarball(
    exe_path: Path,
    config: PackagingConfig,
    runner: CommandRunner,
    environ: Optional[Mapping[str, str]] = None,
    output_dir: Optional[Path] = None,
    work_base: Optional[Path] = None,
) -> Path:
    """
    Strip a copy of `exe_path` and pack it into <output_dir>/<tarball name>.

    The version comes from the build manifest, like the name query tool.

    Returns:
        Path to the written .tgz.

    Raises:
        ExecutableValidationFailed, ManifestVersionMissing, UnsupportedArchitecture,
        SubprocessFailure.
    """
    ExecutableValidator(config, runner).validate(exe_path)
    identity = query_package_identity(config, runner, environ)

    out_dir = (output_dir or Path(config.output_dir)).resolve()
    tarball = out_dir / identity.tarball_filename

    with scratch_directory(config.scratch_prefix, work_base or Path.cwd()) as work_dir:
        staged = work_dir / config.package_name
        shutil.copyfile(exe_path, staged)
        staged.chmod(0o755)
        run_checked(runner, ["strip", str(staged)], f"strip {staged}")
        run_checked(
            runner,
            ["fakeroot", "tar", "-C", str(work_dir), "-czf", str(tarball), config.package_name],
            "build tarball",
        )

    _logger.info("Tarball built", extra={"tarball": str(tarball)})
    return tarball
