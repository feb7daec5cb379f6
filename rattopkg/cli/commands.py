# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Subcommand handlers for the rattopkg CLI.

Each function here corresponds to one subcommand and returns an exit code.
Results (filenames, `version arch`, TAP lines, tool reports) are printed on
stdout because scripts and Makefiles consume them. Everything else goes
through the structured logger on stderr.

A fatal error prints exactly one `Error: ...` line on stderr, next to the
JSON log record carrying the detail.
"""

import argparse
import logging
import sys
from pathlib import Path

from rattopkg.cli.exit_codes import CONFIG_ERROR, RUNTIME_ERROR, SUCCESS, VALIDATION_ERROR
from rattopkg.config.loader import load_config
from rattopkg.config.schema import RattopkgConfig
from rattopkg.exceptions import ConfigError, RattopkgError, SubprocessFailure
from rattopkg.logging.logger import get_logger
from rattopkg.runtime.bootstrap import bootstrap
from rattopkg.runtime.process import CommandRunner, SubprocessRunner


def _make_runner() -> CommandRunner:
    """The runner every handler uses for external tools."""
    return SubprocessRunner()


def _report_error(err: BaseException) -> None:
    print(f"Error: {err}", file=sys.stderr)


def _load_and_bootstrap(
    args: argparse.Namespace,
    command_name: str,
) -> tuple[int, RattopkgConfig | None, logging.Logger]:
    """
    The shared setup that every command needs: load config, run bootstrap.

    Returns a tuple of (exit_code, config, logger). If exit_code is not SUCCESS,
    the caller should return it immediately.
    """
    logger = get_logger(f"rattopkg.cli.{command_name}")

    try:
        config = load_config(Path(args.config) if args.config is not None else None)
    except ConfigError as err:
        logger.error(
            "Configuration error",
            extra={"command": command_name, "error": str(err)},
        )
        _report_error(err)
        return CONFIG_ERROR, None, logger

    try:
        bootstrap(config.global_config, args.log_level)
    except RuntimeError as err:
        _report_error(err)
        return RUNTIME_ERROR, None, logger

    if args.config is None:
        logger.debug(
            "No config provided, running with defaults",
            extra={"command": command_name},
        )

    return SUCCESS, config, logger


def _exit_code_for(err: BaseException) -> int:
    if isinstance(err, SubprocessFailure):
        return RUNTIME_ERROR
    if isinstance(err, RattopkgError):
        return VALIDATION_ERROR
    return RUNTIME_ERROR


def _fail(logger: logging.Logger, command_name: str, err: Exception) -> int:
    exit_code = _exit_code_for(err)
    logger.error(
        "Command failed",
        extra={
            "command": command_name,
            "error_type": type(err).__name__,
            "error": str(err),
            "exit_code": exit_code,
        },
    )
    _report_error(err)
    return exit_code


def handle_deb_name(args: argparse.Namespace) -> int:
    """Print the package filename (or `version arch`) from the manifest and host."""
    exit_code, config, logger = _load_and_bootstrap(args, "deb_name")
    if exit_code != SUCCESS:
        return exit_code
    assert config is not None

    from rattopkg.release.packager import query_package_identity

    try:
        identity = query_package_identity(config.packaging, _make_runner())
    except (RattopkgError, OSError) as err:
        return _fail(logger, "deb-name", err)

    print(identity.ver_arch if args.ver_arch else identity.deb_filename)
    return SUCCESS


def handle_build_deb(args: argparse.Namespace) -> int:
    """Build the .deb, or with --print-deb-name just validate and name it."""
    exit_code, config, logger = _load_and_bootstrap(args, "build_deb")
    if exit_code != SUCCESS:
        return exit_code
    assert config is not None

    from rattopkg.release.packager import build_package, compute_deb_name

    exe_path = Path(args.exe_file)
    runner = _make_runner()

    try:
        if args.print_deb_name:
            identity = compute_deb_name(exe_path, config.packaging, runner)
            print(identity.deb_filename)
            return SUCCESS

        output_dir = Path(args.output_dir) if args.output_dir is not None else None
        result = build_package(exe_path, config.packaging, runner, output_dir=output_dir)
    except (RattopkgError, OSError) as err:
        return _fail(logger, "build-deb", err)

    print(f"Created {result.identity.deb_filename}")
    return SUCCESS


def handle_build_tgz(args: argparse.Namespace) -> int:
    """Build the stripped-binary tarball."""
    exit_code, config, logger = _load_and_bootstrap(args, "build_tgz")
    if exit_code != SUCCESS:
        return exit_code
    assert config is not None

    from rattopkg.release.tarball import build_tarball

    output_dir = Path(args.output_dir) if args.output_dir is not None else None
    try:
        tarball = build_tarball(
            Path(args.exe_file), config.packaging, _make_runner(), output_dir=output_dir
        )
    except (RattopkgError, OSError) as err:
        return _fail(logger, "build-tgz", err)

    print(f"Created {tarball.name}")
    return SUCCESS


def handle_docker_test(args: argparse.Namespace) -> int:
    """Install the package in a container and check the delivered message."""
    exit_code, config, logger = _load_and_bootstrap(args, "docker_test")
    if exit_code != SUCCESS:
        return exit_code
    assert config is not None

    from rattopkg.harness.report import TapReporter
    from rattopkg.harness.runner import AcceptanceHarness

    reporter = TapReporter(sys.stdout)
    harness = AcceptanceHarness(config.harness, _make_runner(), reporter)

    try:
        report = harness.run(Path(args.deb_file))
        report.raise_for_failures()
    except (RattopkgError, OSError) as err:
        reporter.diag(f"Error: {err}")
        return _fail(logger, "docker-test", err)

    logger.info("All acceptance checks passed", extra={"deb": args.deb_file})
    return SUCCESS


def handle_check_tools(args: argparse.Namespace) -> int:
    """Report whether every external tool is on PATH."""
    exit_code, config, logger = _load_and_bootstrap(args, "check_tools")
    if exit_code != SUCCESS:
        return exit_code
    assert config is not None

    from rattopkg.release.preflight import BUILD_TOOLS, harness_tools, run_preflight

    checks = run_preflight(BUILD_TOOLS + harness_tools(config.harness.runtime))
    for check in checks:
        status = "ok" if check.passed else "FAIL"
        print(f"{status:<4}  {check.name:<16} {check.message}")

    failed = [c.name for c in checks if not c.passed]
    if failed:
        logger.error("Missing tools", extra={"failed": failed})
        return VALIDATION_ERROR
    return SUCCESS
