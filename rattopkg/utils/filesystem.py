# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Filesystem helpers with guaranteed cleanup.

Three kinds of shared state need discipline in this project:
  - generated files (the control file) must never be left half-written
  - scratch directories (staging tree, collected Maildir) must be removed
    on every exit path
  - the process working directory, changed while creating the sendmail
    symlink, must be restored on every exit path

The cleanup side of scratch_directory and working_directory never raises:
a failed cleanup is logged as a warning so it can't replace the error that
got us there.
"""

import os
import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from rattopkg.logging.logger import get_logger

logger = get_logger(__name__)


def atomic_write(target_path: Path, content: str, encoding: str = "utf-8") -> None:
    """
    Write content to a file atomically.

    We write to a temp file in the same directory, then rename it onto the
    target. Rename within one filesystem is atomic on POSIX, so the target
    either has the full new content or is untouched.

    Raises:
        OSError: If the write or rename fails.
    """
    target_path.parent.mkdir(parents=True, exist_ok=True)

    # delete=False because the file has to survive closing so we can rename it.
    temp_fd = tempfile.NamedTemporaryFile(
        mode="w",
        encoding=encoding,
        dir=str(target_path.parent),
        prefix=".rattopkg_tmp_",
        suffix=".tmp",
        delete=False,
    )
    temp_path = Path(temp_fd.name)

    try:
        temp_fd.write(content)
        temp_fd.flush()
        temp_fd.close()
        # NamedTemporaryFile creates 0600; control files are world-readable.
        temp_path.chmod(0o644)
        temp_path.rename(target_path)
    except BaseException:
        temp_fd.close()
        if temp_path.exists():
            temp_path.unlink()
        raise


def safe_read(file_path: Path, encoding: str = "utf-8") -> str:
    """
    Read a text file with proper error context.

    Raises:
        FileNotFoundError: If the path doesn't exist.
        IsADirectoryError: If the path is a directory.
        OSError: For other I/O errors.
    """
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")
    if not file_path.is_file():
        raise IsADirectoryError(f"Expected a file, got a directory: {file_path}")
    return file_path.read_text(encoding=encoding)


@contextmanager
def scratch_directory(prefix: str, base_dir: Optional[Path] = None) -> Iterator[Path]:
    """
    Create a fresh, uniquely named directory and remove it on the way out.

    The name gets a random suffix from mkdtemp, so two runs never share a
    scratch directory. Removal happens whether the block succeeds or raises.

    Usage:
        with scratch_directory("tmp_ratto_build_", Path.cwd()) as work_dir:
            ...
    """
    scratch = Path(tempfile.mkdtemp(
        prefix=prefix,
        dir=str(base_dir) if base_dir is not None else None,
    ))
    logger.debug("Scratch directory created", extra={"path": str(scratch)})

    try:
        yield scratch
    finally:
        try:
            shutil.rmtree(scratch)
            logger.debug("Scratch directory removed", extra={"path": str(scratch)})
        except OSError as err:
            logger.warning(
                "Failed to remove scratch directory",
                extra={"path": str(scratch), "error": str(err)},
            )


@contextmanager
def working_directory(path: Path) -> Iterator[Path]:
    """
    Temporarily chdir into `path`, restoring the previous cwd on every exit path.

    Entering raises if `path` can't be entered. Failing to change back only
    warns.
    """
    previous = Path.cwd()
    os.chdir(path)
    try:
        yield path
    finally:
        try:
            os.chdir(previous)
        except OSError as err:
            logger.warning(
                "Failed to restore working directory",
                extra={"path": str(previous), "error": str(err)},
            )
