# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Package builder: one validated binary in, one .deb out.

    validate  ->  resolve identity  ->  stage  ->  control  ->  assemble

The .deb lands in the output directory:

    <output_dir>/<name>-<version>-<revision>-<arch>.deb

Nothing else survives the run. The staging tree lives in a fresh
tmp_ratto_build_XXXXXX directory that is removed whether the build succeeds
or fails, so there is no such thing as a partial package.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from rattopkg.config.schema import PackagingConfig
from rattopkg.logging.logger import get_logger
from rattopkg.release.assembler import PackageAssembler
from rattopkg.release.control import ControlFileGenerator
from rattopkg.release.identity import PackageIdentity, build_identity
from rattopkg.release.staging import StagingTreeBuilder
from rattopkg.release.validator import ExecutableValidator
from rattopkg.release.version import VersionResolver
from rattopkg.runtime.process import CommandRunner
from rattopkg.utils.filesystem import scratch_directory
from rattopkg.utils.hashing import compute_sha256

_logger: logging.Logger = get_logger(__name__)


@dataclass(frozen=True)
class BuildResult:
    """Outcome of a successful package build."""

    identity: PackageIdentity
    deb_path: Path
    installed_size_kb: int
    sha256: str


def query_package_identity(
    config: PackagingConfig,
    runner: CommandRunner,
    environ: Optional[Mapping[str, str]] = None,
) -> PackageIdentity:
    """
    Identity from the build manifest and the host architecture.

    This is what the name query tool reports; it never looks at a binary.
    """
    resolver = VersionResolver(config, runner)
    version = resolver.from_manifest()
    architecture = resolver.architecture()
    return build_identity(config, version, architecture, environ)


def compute_deb_name(
    exe_path: Path,
    config: PackagingConfig,
    runner: CommandRunner,
    environ: Optional[Mapping[str, str]] = None,
) -> PackageIdentity:
    """
    Validate the binary and work out what its package would be called.

    No files are created, so calling this twice with the same inputs gives
    the same answer and leaves the disk as it was.

    Raises:
        ExecutableValidationFailed: If the binary fails validation.
        VersionProbeFailed: If `<exe> --version` fails or is unparseable.
        SubprocessFailure / UnsupportedArchitecture: From the architecture probe.
    """
    ExecutableValidator(config, runner).validate(exe_path)
    resolver = VersionResolver(config, runner)
    version = resolver.from_executable(exe_path)
    architecture = resolver.architecture()
    return build_identity(config, version, architecture, environ)


def build_package(
    exe_path: Path,
    config: PackagingConfig,
    runner: CommandRunner,
    environ: Optional[Mapping[str, str]] = None,
    output_dir: Optional[Path] = None,
    work_base: Optional[Path] = None,
) -> BuildResult:
    """
    Build the complete .deb for `exe_path`.

    Args:
        exe_path: The statically linked rattomail binary.
        config: Packaging section of the config.
        runner: Command runner for every external tool.
        environ: Environment to read the revision override from (os.environ by default).
        output_dir: Where the .deb goes. Defaults to config.output_dir.
        work_base: Parent of the scratch staging directory. Defaults to the cwd.

    Returns:
        BuildResult with the identity, the .deb path, its installed size and digest.

    Raises:
        RattopkgError subclasses from any stage. The scratch directory is
        removed before the error propagates.
    """
    identity = compute_deb_name(exe_path, config, runner, environ)

    out_dir = (output_dir or Path(config.output_dir)).resolve()
    base = work_base or Path.cwd()

    _logger.info(
        "Building package",
        extra={"exe": str(exe_path), "deb": identity.deb_filename, "output_dir": str(out_dir)},
    )

    with scratch_directory(config.scratch_prefix, base) as work_dir:
        layout = StagingTreeBuilder(config, runner).build(exe_path, work_dir)
        _, installed_size = ControlFileGenerator(config, runner).generate(layout, identity)
        deb_path = PackageAssembler(config, runner).assemble(layout, identity, out_dir)

    digest = compute_sha256(deb_path)
    _logger.info(
        "Package built",
        extra={
            "deb": str(deb_path),
            "installed_size_kb": installed_size,
            "sha256": digest,
        },
    )

    return BuildResult(
        identity=identity,
        deb_path=deb_path,
        installed_size_kb=installed_size,
        sha256=digest,
    )

