# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
CLI entrypoint for rattopkg.

Every tool is a subcommand of `rattopkg`. The global options (--config,
--log-level) are inherited by every subcommand through argparse's parent
parser mechanism.

Usage:
    rattopkg deb-name [--ver-arch]
    rattopkg build-deb [--print-deb-name] static_binaries/rattomail
    rattopkg docker-test rattomail-0.1.0-1-amd64.deb
    rattopkg build-tgz static_binaries/rattomail
    rattopkg check-tools
"""

import argparse
import sys
from typing import Optional, Sequence

from rattopkg.cli.commands import (
    handle_build_deb,
    handle_build_tgz,
    handle_check_tools,
    handle_deb_name,
    handle_docker_test,
)
from rattopkg.cli.exit_codes import USER_ERROR

_EPILOG = """\
environment:
  RATTOMAIL_REVISION  Debian revision of the package (default: 1)

build-deb needs strip, pandoc, du, fakeroot and dpkg-deb on PATH;
run `rattopkg check-tools` to see what's missing.
"""


def _build_global_parser() -> argparse.ArgumentParser:
    """
    Build the parent parser with global options.

    We use a separate parent parser (with add_help=False) so that help text
    doesn't collide between the parent and the subcommand parsers.
    """
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to YAML configuration file.",
    )
    parent.add_argument(
        "--log-level",
        type=str,
        default=None,
        dest="log_level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging verbosity (overrides the config file).",
    )
    return parent


def _register_subcommands(
    subparsers: argparse._SubParsersAction,  # type: ignore[type-arg]
    parent: argparse.ArgumentParser,
) -> None:
    deb_name = subparsers.add_parser(
        "deb-name",
        parents=[parent],
        help="Print the package filename computed from Cargo.toml and the host.",
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    deb_name.add_argument(
        "--ver-arch",
        action="store_true",
        dest="ver_arch",
        help="Print '<version> <architecture>' instead of the filename.",
    )
    deb_name.set_defaults(func=handle_deb_name)

    build_deb = subparsers.add_parser(
        "build-deb",
        parents=[parent],
        help="Build a .deb from a statically linked rattomail binary.",
        description=(
            "Validate EXE_FILE, stage it setuid under /usr/sbin with a sendmail "
            "symlink and man page, and build <name>-<version>-<revision>-<arch>.deb. "
            "The version comes from running `EXE_FILE --version`."
        ),
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    build_deb.add_argument("exe_file", metavar="EXE_FILE", help="Path to the rattomail binary.")
    build_deb.add_argument(
        "--print-deb-name",
        action="store_true",
        dest="print_deb_name",
        help="Validate EXE_FILE, print the package filename and exit without building.",
    )
    build_deb.add_argument(
        "--output-dir",
        type=str,
        default=None,
        dest="output_dir",
        help="Directory for the .deb (default: packaging.output_dir).",
    )
    build_deb.set_defaults(func=handle_build_deb)

    build_tgz = subparsers.add_parser(
        "build-tgz",
        parents=[parent],
        help="Build <name>-<version>-linux-<arch>.tgz holding the stripped binary.",
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    build_tgz.add_argument("exe_file", metavar="EXE_FILE", help="Path to the rattomail binary.")
    build_tgz.add_argument(
        "--output-dir",
        type=str,
        default=None,
        dest="output_dir",
        help="Directory for the tarball (default: packaging.output_dir).",
    )
    build_tgz.set_defaults(func=handle_build_tgz)

    docker_test = subparsers.add_parser(
        "docker-test",
        parents=[parent],
        help="Install a .deb in a test container and check mail delivery (TAP output).",
    )
    docker_test.add_argument("deb_file", metavar="DEB_FILE", help="Path to the built .deb.")
    docker_test.set_defaults(func=handle_docker_test)

    check_tools = subparsers.add_parser(
        "check-tools",
        parents=[parent],
        help="Check that every external tool the pipeline needs is on PATH.",
    )
    check_tools.set_defaults(func=handle_check_tools)


def build_parser() -> argparse.ArgumentParser:
    parent = _build_global_parser()

    root_parser = argparse.ArgumentParser(
        prog="rattopkg",
        description="Package rattomail as a .deb and acceptance-test it in a container.",
        parents=[parent],
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = root_parser.add_subparsers(dest="command")
    _register_subcommands(subparsers, parent)
    return root_parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    """
    Main CLI entrypoint. This is what pyproject.toml's [project.scripts] points to.

    If no subcommand is given, we show help and exit with USER_ERROR.
    """
    root_parser = build_parser()
    args = root_parser.parse_args(argv)

    if not hasattr(args, "func") or args.func is None:
        root_parser.print_help(sys.stderr)
        sys.exit(USER_ERROR)

    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
