# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
In-process CLI tests with the command runner swapped for a FakeRunner.

These check what lands on stdout (the part scripts consume) and the exit
code for each class of failure.
"""

from pathlib import Path
from typing import Callable, Optional

import pytest

from conftest import DYNAMIC_FILE_OUTPUT, FakeRunner
from rattopkg.cli import commands
from rattopkg.cli.main import main
from rattopkg.runtime.process import CommandResult


UseRunner = Callable[[FakeRunner], FakeRunner]


@pytest.fixture()
def use_runner(monkeypatch: pytest.MonkeyPatch) -> UseRunner:
    def install(runner: FakeRunner) -> FakeRunner:
        monkeypatch.setattr(commands, "_make_runner", lambda: runner)
        return runner

    return install


def _main(*argv: str) -> int:
    with pytest.raises(SystemExit) as excinfo:
        main(list(argv))
    return int(excinfo.value.code or 0)


class TestDebName:
    def test_prints_filename(
        self, checkout: Path, build_runner: FakeRunner, use_runner: UseRunner,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        use_runner(build_runner)
        assert _main("deb-name") == 0
        assert capsys.readouterr().out == "rattomail-0.1.0-1-amd64.deb\n"

    def test_ver_arch(
        self, checkout: Path, build_runner: FakeRunner, use_runner: UseRunner,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        use_runner(build_runner)
        assert _main("deb-name", "--ver-arch") == 0
        assert capsys.readouterr().out == "0.1.0 amd64\n"

    def test_revision_from_environment(
        self, checkout: Path, build_runner: FakeRunner, use_runner: UseRunner,
        capsys: pytest.CaptureFixture[str],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("RATTOMAIL_REVISION", "3")
        use_runner(build_runner)
        assert _main("deb-name") == 0
        assert capsys.readouterr().out == "rattomail-0.1.0-3-amd64.deb\n"

    def test_unknown_architecture(
        self, checkout: Path, build_runner: FakeRunner, use_runner: UseRunner,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        use_runner(build_runner.on("uname -m", stdout="mips\n"))
        assert _main("deb-name") == 4
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Error: Unknown architecture: 'mips'" in captured.err


class TestBuildDeb:
    def test_builds_and_confirms(
        self, checkout: Path, static_exe: Path, build_runner: FakeRunner, use_runner: UseRunner,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        use_runner(build_runner)
        assert _main("build-deb", str(static_exe)) == 0
        assert capsys.readouterr().out == "Created rattomail-0.1.0-1-amd64.deb\n"
        assert (checkout / "rattomail-0.1.0-1-amd64.deb").exists()

    def test_print_deb_name_has_no_side_effects(
        self, checkout: Path, static_exe: Path, build_runner: FakeRunner, use_runner: UseRunner,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        use_runner(build_runner)
        before = set(checkout.rglob("*"))

        assert _main("build-deb", "--print-deb-name", str(static_exe)) == 0
        assert capsys.readouterr().out == "rattomail-0.1.0-1-amd64.deb\n"
        assert set(checkout.rglob("*")) == before
        assert build_runner.commands("fakeroot") == []

    def test_dynamic_binary_is_validation_error(
        self, checkout: Path, static_exe: Path, fake_runner: FakeRunner, use_runner: UseRunner,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        use_runner(fake_runner.on("file", stdout=DYNAMIC_FILE_OUTPUT))
        assert _main("build-deb", str(static_exe)) == 4
        assert "not statically linked" in capsys.readouterr().err

    def test_tool_failure_is_runtime_error(
        self, checkout: Path, static_exe: Path, build_runner: FakeRunner, use_runner: UseRunner,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        use_runner(build_runner.on("pandoc", returncode=64, stderr="pandoc: unknown writer"))
        assert _main("build-deb", str(static_exe)) == 3
        err = capsys.readouterr().err
        assert "Error: render man page with pandoc failed (exit 64)" in err


class TestBuildTgz:
    def test_builds_tarball(
        self, checkout: Path, static_exe: Path, build_runner: FakeRunner, use_runner: UseRunner,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        use_runner(build_runner)
        assert _main("build-tgz", str(static_exe)) == 0
        assert capsys.readouterr().out == "Created rattomail-0.1.0-linux-amd64.tgz\n"


class TestDockerTest:
    @staticmethod
    def _docker(fake_runner: FakeRunner, message: Optional[str]) -> FakeRunner:
        def copy_out(args: tuple[str, ...], _input: Optional[str]) -> CommandResult:
            new = Path(args[-1]) / "Maildir" / "new"
            new.mkdir(parents=True)
            if message is not None:
                (new / "1.localhost").write_text(message, encoding="utf-8")
            return CommandResult(argv=args, returncode=0)

        fake_runner.on("docker run", stdout="c0ffee\n")
        fake_runner.on("docker cp", copy_out)
        return fake_runner

    @pytest.fixture()
    def harness_checkout(self, checkout: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
        conf = checkout / "docker-tests" / "data" / "attomail.conf"
        conf.parent.mkdir(parents=True)
        conf.write_text("mailDir = /home/user/Maildir/new\nuserName = user\n")
        (checkout / "rattomail-0.1.0-1-amd64.deb").write_bytes(b"!<arch>\n")
        monkeypatch.setattr("rattopkg.harness.runner.time.sleep", lambda _s: None)
        return checkout

    def test_passing_run(
        self, harness_checkout: Path, fake_runner: FakeRunner, use_runner: UseRunner,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        message = "Received: by rattomail;\nTo: foo@bar.com\nFrom: user\nSubject: test\n\nwobble\n"
        use_runner(self._docker(fake_runner, message))

        assert _main("docker-test", "rattomail-0.1.0-1-amd64.deb") == 0
        out = capsys.readouterr().out.splitlines()
        assert out[0] == "1..7"
        assert sum(1 for line in out if line.startswith("ok ")) == 7

    def test_failed_checks_exit_with_validation_error(
        self, harness_checkout: Path, fake_runner: FakeRunner, use_runner: UseRunner,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        use_runner(self._docker(fake_runner, None))

        assert _main("docker-test", "rattomail-0.1.0-1-amd64.deb") == 4
        captured = capsys.readouterr()
        assert sum(1 for line in captured.out.splitlines() if line.startswith("not ok")) == 7
        assert "Error: 7 acceptance check(s) failed" in captured.err


class TestCheckTools:
    def test_reports_missing_tool(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.setattr(
            "rattopkg.release.preflight.shutil.which",
            lambda name: None if name == "pandoc" else f"/usr/bin/{name}",
        )
        assert _main("check-tools") == 4
        out = capsys.readouterr().out
        assert "FAIL  pandoc" in out
        assert "ok    dpkg-deb" in out
