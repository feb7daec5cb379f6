# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""TAP output for the acceptance harness. Results go to stdout, logs stay on stderr."""

import sys
from collections.abc import Iterable
from typing import TextIO

from rattopkg.exceptions import ArtifactContentMismatch
from rattopkg.harness.assertions import CheckResult


class TapReporter:
    """Writes a TAP stream: plan, `# ` diagnostics, one ok/not ok line per check."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream or sys.stdout

    def _emit(self, line: str) -> None:
        self._stream.write(line + "\n")
        self._stream.flush()

    def plan(self, count: int) -> None:
        self._emit(f"1..{count}")

    def diag(self, message: str) -> None:
        for line in message.splitlines() or [""]:
            self._emit(f"# {line}")

    def report(self, result: CheckResult) -> None:
        status = "ok" if result.passed else "not ok"
        self._emit(f"{status} {result.number} - {result.name}")
        if result.error is None:
            return
        if isinstance(result.error, ArtifactContentMismatch):
            self.diag(f"  expected: {result.error.expected!r}")
            self.diag(f"       got: {result.error.actual!r}")
        else:
            self.diag(f"  {result.error}")

    def report_all(self, results: Iterable[CheckResult]) -> None:
        for result in results:
            self.report(result)
