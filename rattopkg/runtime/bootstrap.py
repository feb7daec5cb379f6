# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Runtime bootstrap for rattopkg.

One-time setup before any subcommand does real work:
  1. Refuse to run on an interpreter older than MINIMUM_PYTHON
  2. Configure logging (level and optional file from config, CLI override wins)
  3. Log a startup record naming the interpreter and host machine
"""

import platform
from pathlib import Path
from typing import Optional

from rattopkg.config.schema import GlobalConfig
from rattopkg.logging.logger import configure_logging, get_logger
from rattopkg.release.preflight import check_python_version


def bootstrap(config: GlobalConfig, log_level: Optional[str] = None) -> None:
    """
    Run the bootstrap sequence.

    Args:
        config: The validated global configuration.
        log_level: Level from the command line; overrides config.log_level.

    Raises:
        RuntimeError: If the interpreter is too old.
    """
    python_check = check_python_version()
    if not python_check.passed:
        raise RuntimeError(python_check.message)

    log_file = Path(config.log_file) if config.log_file is not None else None
    configure_logging(log_level or config.log_level, log_file)

    get_logger("rattopkg.runtime").debug(
        "rattopkg bootstrap complete",
        extra={
            "python_version": python_check.value,
            "machine": platform.machine(),
            "log_file": str(log_file) if log_file is not None else None,
        },
    )
