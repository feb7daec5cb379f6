# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Version and architecture resolution.

Two ways to get a version, picked by the caller:
  - from the build manifest (Cargo.toml): the first line anywhere in the file
    that looks like `version = "..."`. Later matches (dependency tables,
    say) are ignored.
  - from the built executable: run it with --version and take the second
    token of the first output line ("rattomail 0.1.0" -> "0.1.0").

The architecture comes from `uname -m`, mapped onto Debian's names. There is
no fallback: a machine we don't know about is an error, because a .deb with
the wrong Architecture field installs fine and then fails at runtime.
"""

import re
from pathlib import Path

from rattopkg.config.schema import PackagingConfig
from rattopkg.exceptions import (
    ManifestVersionMissing,
    UnsupportedArchitecture,
    VersionProbeFailed,
)
from rattopkg.logging.logger import get_logger
from rattopkg.runtime.process import CommandRunner, run_checked
from rattopkg.utils.filesystem import safe_read

logger = get_logger(__name__)

# uname -m output -> Debian architecture
ARCHITECTURE_MAP: dict[str, str] = {
    "x86_64": "amd64",
    "i386": "i386",
    "i686": "i386",
    "aarch64": "arm64",
}

_MANIFEST_VERSION_RE = re.compile(r'^\s*version\s*=\s*"([^"]+)"', re.MULTILINE)


def extract_version(manifest_text: str) -> str:
    """
    Pull the version out of manifest text. First match wins.

    Raises:
        ManifestVersionMissing: If no line declares a version.
    """
    match = _MANIFEST_VERSION_RE.search(manifest_text)
    if match is None:
        raise ManifestVersionMissing("No `version = \"...\"` line found in manifest")
    return match.group(1)


def map_architecture(machine: str) -> str:
    """
    Map a hardware identifier (as printed by uname -m) to a Debian architecture.

    Raises:
        UnsupportedArchitecture: For anything outside ARCHITECTURE_MAP.
    """
    arch = ARCHITECTURE_MAP.get(machine.strip())
    if arch is None:
        raise UnsupportedArchitecture(machine.strip())
    return arch


def parse_version_output(output: str) -> str:
    """Second whitespace-delimited token of the first line, e.g. 'rattomail 0.1.0' -> '0.1.0'."""
    lines = output.splitlines()
    if not lines:
        raise VersionProbeFailed("Version query produced no output")
    tokens = lines[0].split()
    if len(tokens) < 2:
        raise VersionProbeFailed(f"Can't find a version in version output: {lines[0]!r}")
    return tokens[1]


class VersionResolver:
    """Resolves version and architecture, talking to the host only through the runner."""

    def __init__(self, config: PackagingConfig, runner: CommandRunner) -> None:
        self._config = config
        self._runner = runner

    def from_manifest(self, manifest_path: Path | None = None) -> str:
        """
        Read the version from the build manifest.

        Raises:
            ManifestVersionMissing: If the file can't be read or has no version line.
        """
        path = manifest_path or Path(self._config.manifest_path)
        try:
            text = safe_read(path)
        except OSError as err:
            raise ManifestVersionMissing(f"Failed to determine version from {path}: {err}") from err

        try:
            version = extract_version(text)
        except ManifestVersionMissing as err:
            raise ManifestVersionMissing(f"Failed to determine version from {path}: {err}") from err

        logger.debug("Version read from manifest", extra={"manifest": str(path), "version": version})
        return version

    def from_executable(self, exe_path: Path) -> str:
        """
        Ask the binary itself: `<exe> --version`.

        Raises:
            VersionProbeFailed: On non-zero exit, no output, or unparseable output.
        """
        abs_exe = exe_path.resolve()
        result = self._runner.run([str(abs_exe), self._config.version_flag])
        if not result.ok:
            raise VersionProbeFailed(
                f"Couldn't run '{result.command_line}': exit {result.returncode}"
                + (f": {result.stderr.strip()}" if result.stderr.strip() else "")
            )

        try:
            version = parse_version_output(result.stdout)
        except VersionProbeFailed as err:
            raise VersionProbeFailed(f"Failed to determine version from {exe_path}: {err}") from err

        logger.debug("Version read from executable", extra={"exe": str(abs_exe), "version": version})
        return version

    def architecture(self) -> str:
        """
        Probe the host with `uname -m` and map the result.

        Raises:
            SubprocessFailure: If uname fails.
            UnsupportedArchitecture: If the machine isn't in ARCHITECTURE_MAP.
        """
        result = run_checked(self._runner, ["uname", "-m"], "get architecture using 'uname -m'")
        arch = map_architecture(result.stdout)
        logger.debug("Architecture resolved", extra={"machine": result.stdout.strip(), "arch": arch})
        return arch
