"""Removal of consumed records and the directories they leave behind."""

from __future__ import annotations

import errno
import logging
import os
import shutil
from pathlib import Path
from typing import Optional

from .exceptions import StoreIOError

LOG = logging.getLogger(__name__)


def remove_file(path: Path) -> bool:
    """Delete ``path``; return ``False`` if it was already gone."""

    try:
        os.unlink(path)
    except FileNotFoundError:
        return False
    except OSError as exc:
        raise StoreIOError(f"failed to delete record ({exc.strerror})", path) from exc
    return True


def reap_directory(directory: Path) -> bool:
    """Remove ``directory`` if it is empty.

    A directory that does not exist counts as reaped.  A non-empty directory,
    including one that gained an entry after it was listed, is left alone.
    """

    try:
        with os.scandir(directory) as entries:
            if any(True for _ in entries):
                return False
        os.rmdir(directory)
    except FileNotFoundError:
        return True
    except OSError as exc:
        if exc.errno in (errno.ENOTEMPTY, errno.EEXIST):
            return False
        raise StoreIOError(f"failed to remove directory ({exc.strerror})", directory) from exc
    LOG.debug("reaped empty directory %s", directory)
    return True


def reap(file_path: Optional[Path] = None, directory: Optional[Path] = None) -> bool:
    """Delete ``file_path`` if given, then ``directory`` if it is now empty.

    Returns whether this call removed the file, so callers racing on the same
    record can tell who won.
    """

    removed = False
    if file_path is not None:
        removed = remove_file(file_path)
    if directory is not None:
        reap_directory(directory)
    return removed


def remove_tree(directory: Path) -> bool:
    """Delete ``directory`` and everything in it; missing is success."""

    try:
        shutil.rmtree(directory)
    except FileNotFoundError:
        return False
    except OSError as exc:
        raise StoreIOError(f"failed to remove directory ({exc.strerror})", directory) from exc
    return True
