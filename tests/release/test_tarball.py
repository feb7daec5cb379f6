# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""Tests for the stripped-binary tarball."""

from pathlib import Path

from conftest import FakeRunner
from rattopkg.config.schema import PackagingConfig
from rattopkg.release.tarball import build_tarball


def test_builds_named_tarball(checkout: Path, static_exe: Path, build_runner: FakeRunner) -> None:
    tarball = build_tarball(static_exe, PackagingConfig(), build_runner, environ={})

    assert tarball == checkout / "rattomail-0.1.0-linux-amd64.tgz"
    assert tarball.exists()
    assert list(checkout.glob("tmp_ratto_build_*")) == []


def test_archive_is_the_only_new_file(checkout: Path, static_exe: Path, build_runner: FakeRunner) -> None:
    before = {p.name for p in checkout.iterdir()}
    tarball = build_tarball(static_exe, PackagingConfig(), build_runner, environ={})

    assert {p.name for p in checkout.iterdir()} - before == {tarball.name}
    assert not (checkout / "rattomail").exists()


def test_tar_invocation(checkout: Path, static_exe: Path, build_runner: FakeRunner) -> None:
    build_tarball(static_exe, PackagingConfig(), build_runner, environ={})

    (strip_call,) = build_runner.commands("strip")
    (tar_call,) = build_runner.commands("fakeroot")
    scratch = Path(strip_call[1]).parent
    assert tar_call[:5] == ("fakeroot", "tar", "-C", str(scratch), "-czf")
    assert tar_call[-1] == "rattomail"
