# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Mailbox checks for the acceptance harness.

After the test message is delivered, the Maildir is copied out of the
container and judged by seven checks:

    1. exactly one message file
    2. exactly one Received header
    3. Received header mentions rattomail and ends its clause with ';'
    4. To      == recipient
    5. From    == the unprivileged user (no sender override given)
    6. Subject == subject
    7. body    == body + newline

Every check is evaluated, even after an earlier one fails, so a broken
delivery shows all of its symptoms in one run.
"""

import email
import logging
import re
from dataclasses import dataclass, field
from email.message import Message
from pathlib import Path
from typing import Optional

from rattopkg.config.schema import HarnessConfig
from rattopkg.exceptions import (
    AcceptanceFailed,
    ArtifactContentMismatch,
    ArtifactCountMismatch,
    RattopkgError,
)
from rattopkg.logging.logger import get_logger

_logger: logging.Logger = get_logger(__name__)

CHECK_NAMES: tuple[str, ...] = (
    "exactly one file in Maildir",
    "exactly one Received header",
    "Received header mentions rattomail",
    "To matches",
    "From matches",
    "Subject matches",
    "body matches",
)

_FOLD_RE = re.compile(r"\r?\n[ \t]+")


@dataclass(frozen=True)
class CheckResult:
    """Outcome of one numbered check."""

    number: int
    name: str
    passed: bool
    error: Optional[RattopkgError] = None


@dataclass(frozen=True)
class MailboxReport:
    results: list[CheckResult] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(r.passed for r in self.results)

    @property
    def failures(self) -> list[RattopkgError]:
        return [r.error for r in self.results if r.error is not None]

    def raise_for_failures(self) -> None:
        if not self.passed:
            raise AcceptanceFailed(self.failures)


def collect_message_files(maildir_copy: Path) -> list[Path]:
    """Every regular file under the copied Maildir, in a stable order."""
    return sorted(p for p in maildir_copy.rglob("*") if p.is_file() and not p.is_symlink())


def _unfold(value: str) -> str:
    return _FOLD_RE.sub(" ", value).strip()


def parse_message(path: Path) -> Message:
    return email.message_from_bytes(path.read_bytes())


def _header(message: Message, name: str) -> Optional[str]:
    value = message.get(name)
    return None if value is None else _unfold(str(value))


def _body(message: Message) -> str:
    payload = message.get_payload()
    return payload if isinstance(payload, str) else ""


def evaluate_mailbox(files: list[Path], config: HarnessConfig) -> MailboxReport:
    """
    Run all seven checks against the collected files.

    With no file at all, the content checks fail with a count mismatch
    rather than being skipped. With more than one, the first file (sorted)
    is the one examined.
    """
    results: list[CheckResult] = []

    def record(passed: bool, error: Optional[RattopkgError]) -> None:
        number = len(results) + 1
        results.append(
            CheckResult(
                number=number,
                name=CHECK_NAMES[number - 1],
                passed=passed,
                error=None if passed else error,
            )
        )

    record(len(files) == 1, ArtifactCountMismatch(1, len(files)))

    if not files:
        for _ in CHECK_NAMES[1:]:
            record(False, ArtifactCountMismatch(1, 0, "message file(s) to examine"))
        _logger.warning("No message collected from Maildir")
        return MailboxReport(results=results)

    message = parse_message(files[0])

    received = [_unfold(str(v)) for v in message.get_all("Received", [])]
    record(
        len(received) == 1,
        ArtifactCountMismatch(1, len(received), "Received header(s)"),
    )

    pattern = re.compile(config.received_pattern)
    first_received = received[0] if received else None
    record(
        first_received is not None and pattern.search(first_received) is not None,
        ArtifactContentMismatch("Received", config.received_pattern, first_received),
    )

    expected_headers = (
        ("To", config.recipient),
        ("From", config.expected_sender),
        ("Subject", config.subject),
    )
    for name, expected in expected_headers:
        actual = _header(message, name)
        record(actual == expected, ArtifactContentMismatch(name, expected, actual))

    expected_body = config.body + "\n"
    actual_body = _body(message)
    record(actual_body == expected_body, ArtifactContentMismatch("body", expected_body, actual_body))

    report = MailboxReport(results=results)
    _logger.info(
        "Mailbox evaluated",
        extra={
            "message_file": str(files[0]),
            "passed": sum(1 for r in results if r.passed),
            "failed": sum(1 for r in results if not r.passed),
        },
    )
    return report
