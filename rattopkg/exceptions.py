# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Error taxonomy for the packaging pipeline and the container harness.

We keep these in one module so the CLI can map any failure to an exit code
without importing the release or harness machinery. Every error here is fatal
at the point it's raised; nothing in the pipeline retries.
"""

from collections.abc import Sequence


class RattopkgError(Exception):
    """Base for every packaging and harness failure."""


class ManifestVersionMissing(RattopkgError):
    """No `version = "..."` line was found in the build manifest."""


class VersionProbeFailed(RattopkgError):
    """Running the executable with the version flag didn't give us a version."""


class UnsupportedArchitecture(RattopkgError):
    """The host hardware identifier has no Debian architecture mapping."""

    def __init__(self, machine: str) -> None:
        super().__init__(f"Unknown architecture: {machine!r}")
        self.machine = machine


class ExecutableValidationFailed(RattopkgError):
    """
    The candidate binary failed one of the pre-packaging checks.

    `check` names the failing check (exists, regular_file, readable,
    executable, static_linkage) so callers and tests can tell them apart
    without parsing the message.
    """

    def __init__(self, check: str, path: str, message: str) -> None:
        super().__init__(message)
        self.check = check
        self.path = path


class SubprocessFailure(RattopkgError):
    """An external tool exited non-zero (or couldn't be started)."""

    def __init__(
        self,
        operation: str,
        command: str,
        returncode: int,
        stderr: str = "",
    ) -> None:
        detail = stderr.strip()
        message = f"{operation} failed (exit {returncode}) with command: {command}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.operation = operation
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class SubmissionFailed(SubprocessFailure):
    """Installing the package or sending mail inside the container failed."""


class ArtifactMissing(RattopkgError):
    """An input file the harness needs is missing, not a file, or unreadable."""


class ArtifactCountMismatch(RattopkgError):
    """Wrong number of collected messages, or of a header within one."""

    def __init__(self, expected: int, found: int, what: str = "message file(s) in Maildir") -> None:
        super().__init__(f"Expected {expected} {what}, found {found}")
        self.expected = expected
        self.found = found


class ArtifactContentMismatch(RattopkgError):
    """A collected message failed a header or body check."""

    def __init__(self, check: str, expected: object, actual: object) -> None:
        super().__init__(f"{check}: expected {expected!r}, got {actual!r}")
        self.check = check
        self.expected = expected
        self.actual = actual


class AcceptanceFailed(RattopkgError):
    """One or more mailbox checks failed. Carries every failure, not just the first."""

    def __init__(self, failures: Sequence[RattopkgError]) -> None:
        names = ", ".join(str(f) for f in failures)
        super().__init__(f"{len(failures)} acceptance check(s) failed: {names}")
        self.failures = list(failures)


class ConfigError(RattopkgError):
    """Base for configuration problems. The CLI maps these to CONFIG_ERROR."""


class ConfigLoadError(ConfigError):
    """The config file can't be read, isn't YAML, or isn't a YAML mapping."""


class ConfigValidationError(ConfigError):
    """The YAML parsed but doesn't fit the schema (unknown keys, bad types, bad ranges)."""
