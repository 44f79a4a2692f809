"""Low level file helpers shared by the stores."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from .exceptions import StoreIOError

LOG = logging.getLogger(__name__)

DIR_MODE = 0o700
FILE_MODE = 0o644


def ensure_directory(directory: Path, mode: int = DIR_MODE) -> None:
    """Create ``directory`` (and parents) unless it already exists.

    Concurrent first writers may both get here; an existing directory is not
    an error.
    """

    try:
        directory.mkdir(mode=mode, parents=True, exist_ok=True)
    except FileExistsError as exc:
        # exist_ok only covers directories; a regular file in the way is fatal
        raise StoreIOError("path exists and is not a directory", directory) from exc
    except OSError as exc:
        raise StoreIOError(f"failed to create directory ({exc.strerror})", directory) from exc


def write_atomic(path: Path, data: bytes, mode: int = FILE_MODE) -> None:
    """Write ``data`` to ``path`` through a temporary file and a rename."""

    fd = -1
    tmp_name = ""
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        with os.fdopen(fd, "wb") as fh:
            fd = -1
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
        tmp_name = ""
    except OSError as exc:
        raise StoreIOError(f"failed to write record ({exc.strerror})", path) from exc
    finally:
        if fd >= 0:
            os.close(fd)
        if tmp_name:
            try:
                os.unlink(tmp_name)
            except OSError:
                LOG.warning("could not remove temporary file %s", tmp_name)
    LOG.debug("wrote %d bytes to %s", len(data), path)


def read_optional(path: Path) -> Optional[bytes]:
    """Return the contents of ``path`` or ``None`` if it does not exist."""

    try:
        return path.read_bytes()
    except FileNotFoundError:
        return None
    except OSError as exc:
        raise StoreIOError(f"failed to read record ({exc.strerror})", path) from exc
