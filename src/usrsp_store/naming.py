"""Deterministic file naming for handoff records.

Every record lives in a single JSON file whose name is derived from the record
kind, the logical interface name and, where the record is container scoped, a
truncated container id::

    {shared_dir}/local-{container12}-{ifname}.json   interface state
    {shared_dir}/local-{ifname}.json                 interface state, unscoped
    {base_dir}/{container_id}/remote-{ifname}.json   remote configuration
    {base_dir}/{container_id}/addData-{ifname}.json  additional data

Names are validated before use; anything that could escape the target
directory or be mistaken for a glob pattern is rejected.
"""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Optional

from .exceptions import InvalidRecordName

CONTAINER_ID_PREFIX_LEN = 12
RECORD_SUFFIX = ".json"

_FORBIDDEN_CHARS = frozenset({"/", "\\", "\0", "*", "?", "[", "]"})


class RecordKind(Enum):
    """Record kinds and the file name prefix each one is stored under."""

    INTERFACE = "local"
    REMOTE = "remote"
    AUXILIARY = "addData"

    @property
    def prefix(self) -> str:
        return self.value

    @property
    def pattern(self) -> str:
        """Glob pattern matching every record of this kind in a directory."""

        return f"{self.value}-*{RECORD_SUFFIX}"


def validate_component(value: str, what: str) -> str:
    """Return ``value`` if it is safe to embed in a file name."""

    if not isinstance(value, str) or not value:
        raise InvalidRecordName(f"{what} must be a non-empty string")
    if value in (".", ".."):
        raise InvalidRecordName(f"{what} '{value}' is not a valid name")
    bad = _FORBIDDEN_CHARS.intersection(value)
    if os.sep in value or (os.altsep and os.altsep in value):
        bad.add(os.sep)
    if bad:
        raise InvalidRecordName(
            f"{what} '{value}' contains forbidden characters {sorted(bad)}"
        )
    return value


def container_prefix(container_id: str) -> str:
    """Truncate ``container_id`` to the short form used in file names."""

    validate_component(container_id, "container id")
    return container_id[:CONTAINER_ID_PREFIX_LEN]


def interface_record_path(
    shared_dir: Path, ifname: str, container_id: Optional[str] = None
) -> Path:
    validate_component(ifname, "interface name")
    if container_id is None:
        name = f"{RecordKind.INTERFACE.prefix}-{ifname}{RECORD_SUFFIX}"
    else:
        name = (
            f"{RecordKind.INTERFACE.prefix}-{container_prefix(container_id)}"
            f"-{ifname}{RECORD_SUFFIX}"
        )
    return Path(shared_dir) / name


def container_dir(base_dir: Path, container_id: str) -> Path:
    """Per-container directory holding staged remote records."""

    return Path(base_dir) / validate_component(container_id, "container id")


def record_path(directory: Path, kind: RecordKind, ifname: str) -> Path:
    validate_component(ifname, "interface name")
    return Path(directory) / f"{kind.prefix}-{ifname}{RECORD_SUFFIX}"


def remote_config_path(directory: Path, ifname: str) -> Path:
    return record_path(directory, RecordKind.REMOTE, ifname)


def aux_data_path(directory: Path, ifname: str) -> Path:
    return record_path(directory, RecordKind.AUXILIARY, ifname)


def interface_name_from_path(path: Path, kind: RecordKind) -> str:
    """Recover the interface name from a remote or additional-data file."""

    name = Path(path).name
    head = f"{kind.prefix}-"
    if not name.startswith(head) or not name.endswith(RECORD_SUFFIX):
        raise InvalidRecordName(f"not a {kind.name.lower()} record file", path)
    return validate_component(name[len(head):-len(RECORD_SUFFIX)], "interface name")


def socket_path(socket_root: Path, container_id: str, ifname: str) -> Path:
    """Location of a dataplane socket handed to a container."""

    validate_component(ifname, "interface name")
    return container_dir(socket_root, container_id) / (
        f"{container_prefix(container_id)}-{ifname}"
    )
