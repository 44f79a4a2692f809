"""Error taxonomy for the handoff store."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

PathLike = Union[str, Path]


class StoreError(Exception):
    """Base class for every failure raised by the store.

    ``path`` names the file or directory the operation was working on so the
    plugin can report it back to the runtime.
    """

    def __init__(self, message: str, path: Optional[PathLike] = None) -> None:
        self.message = message
        self.path = Path(path) if path is not None else None
        super().__init__(self.__str__())

    def __str__(self) -> str:
        if self.path is None:
            return self.message
        return f"{self.message}: {self.path}"


class StoreIOError(StoreError):
    """A filesystem operation failed (permission, disk full, ...)."""


class MalformedRecord(StoreError):
    """A record file exists but does not decode into the expected shape."""


class MissingCompanionRecord(StoreError):
    """A remote configuration was claimed but its additional data is absent."""


class InvalidRecordName(StoreError, ValueError):
    """An interface name or container id cannot be used in a file name."""
