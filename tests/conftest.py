# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Shared pytest fixtures for rattopkg tests.

The centrepiece is FakeRunner: a CommandRunner that records every argv and
answers from a script instead of starting processes. A scripted answer is
either a CommandResult or a callable that gets the argv and stdin, which
lets a fake tool produce its file side effects (pandoc writing the man page,
dpkg-deb writing the .deb, docker cp writing a Maildir).
"""

import textwrap
from collections.abc import Sequence
from pathlib import Path
from typing import Callable, Optional, Union

import pytest

from rattopkg.logging.logger import configure_logging
from rattopkg.runtime.process import CommandResult

Responder = Union[CommandResult, Callable[[tuple[str, ...], Optional[str]], CommandResult]]

STATIC_FILE_OUTPUT = (
    "rattomail: ELF 64-bit LSB executable, x86-64, version 1 (SYSV), "
    "statically linked, stripped\n"
)
DYNAMIC_FILE_OUTPUT = (
    "rattomail: ELF 64-bit LSB pie executable, x86-64, version 1 (SYSV), "
    "dynamically linked, interpreter /lib64/ld-linux-x86-64.so.2\n"
)


class FakeRunner:
    """Records calls and returns scripted results. Unscripted commands succeed silently."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, ...]] = []
        self.inputs: list[Optional[str]] = []
        self._script: dict[str, Responder] = {}

    def on(
        self,
        key: str,
        response: Optional[Responder] = None,
        *,
        stdout: str = "",
        stderr: str = "",
        returncode: int = 0,
    ) -> "FakeRunner":
        """
        Script the answer for a command.

        `key` is matched against "<argv0> <argv1>" first, then "<argv0>";
        argv0 may be given as a full path or just its basename.
        """
        if response is None:
            response = CommandResult(argv=(), returncode=returncode, stdout=stdout, stderr=stderr)
        self._script[key] = response
        return self

    def _lookup(self, args: tuple[str, ...]) -> Optional[Responder]:
        program = args[0]
        basename = Path(program).name
        keys = []
        if len(args) > 1:
            keys += [f"{program} {args[1]}", f"{basename} {args[1]}"]
        keys += [program, basename]
        for key in keys:
            if key in self._script:
                return self._script[key]
        return None

    def run(
        self,
        argv: Sequence[str],
        *,
        input: Optional[str] = None,
        cwd: Optional[Path] = None,
    ) -> CommandResult:
        args = tuple(str(a) for a in argv)
        self.calls.append(args)
        self.inputs.append(input)

        response = self._lookup(args)
        if response is None:
            return CommandResult(argv=args, returncode=0)
        if callable(response):
            return response(args, input)
        return CommandResult(
            argv=args,
            returncode=response.returncode,
            stdout=response.stdout,
            stderr=response.stderr,
        )

    def commands(self, program: str) -> list[tuple[str, ...]]:
        """Every recorded argv whose program (or its basename) is `program`."""
        return [c for c in self.calls if c[0] == program or Path(c[0]).name == program]


def fake_dpkg_deb(args: tuple[str, ...], _input: Optional[str] = None) -> CommandResult:
    """Fake for dpkg-deb: the last argument is the package it creates."""
    Path(args[-1]).write_bytes(b"!<arch>\nfake package\n")
    return CommandResult(argv=args, returncode=0)


def fake_tar(args: tuple[str, ...], _input: Optional[str] = None) -> CommandResult:
    """tar -C DIR -czf ARCHIVE MEMBER...: the archive follows -czf."""
    Path(args[args.index("-czf") + 1]).write_bytes(b"\x1f\x8b fake tarball\n")
    return CommandResult(argv=args, returncode=0)


def fake_pandoc(args: tuple[str, ...], _input: Optional[str] = None) -> CommandResult:
    output = Path(args[args.index("-o") + 1])
    output.write_text('.TH "RATTOMAIL" "8"\n', encoding="utf-8")
    return CommandResult(argv=args, returncode=0)


@pytest.fixture(autouse=True)
def _reset_logging():
    """Rebind log handlers after each test so none keep a captured stream."""
    yield
    configure_logging()


@pytest.fixture()
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture()
def checkout(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """
    A minimal rattomail source tree as the working directory: manifest,
    control template and man page source.
    """
    (tmp_path / "Cargo.toml").write_text(
        textwrap.dedent("""\
            [package]
            name = "rattomail"
            version = "0.1.0"
            edition = "2021"

            [dependencies]
            nix = { version = "0.29.0" }
        """),
        encoding="utf-8",
    )
    (tmp_path / "debian").mkdir()
    (tmp_path / "debian" / "control.in").write_text(
        textwrap.dedent("""\
            Package: rattomail
            Version: VERSION
            Architecture: ARCHITECTURE
            Installed-Size: INSTALLED_SIZE
            Description: minimal MDA with Maildir support
        """),
        encoding="utf-8",
    )
    (tmp_path / "doc").mkdir()
    (tmp_path / "doc" / "rattomail.8.md").write_text("# NAME\n\nrattomail\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("RATTOMAIL_REVISION", raising=False)
    return tmp_path


@pytest.fixture()
def static_exe(tmp_path: Path) -> Path:
    """A stand-in rattomail binary: regular, readable, executable."""
    exe_dir = tmp_path / "static_binaries"
    exe_dir.mkdir()
    exe = exe_dir / "rattomail"
    exe.write_bytes(b"\x7fELF not really a binary\n")
    exe.chmod(0o755)
    return exe


@pytest.fixture()
def build_runner(fake_runner: FakeRunner) -> FakeRunner:
    """A FakeRunner scripted like a healthy amd64 build host."""
    fake_runner.on("file", stdout=STATIC_FILE_OUTPUT)
    fake_runner.on("rattomail --version", stdout="rattomail 0.1.0\n")
    fake_runner.on("uname -m", stdout="x86_64\n")
    fake_runner.on("du -k", stdout="1234\t.\n")
    fake_runner.on("pandoc", fake_pandoc)
    fake_runner.on("fakeroot dpkg-deb", fake_dpkg_deb)
    fake_runner.on("fakeroot tar", fake_tar)
    return fake_runner
