"""JSON codec for handoff records.

Records are written as a single JSON object with stable key names and a
``schemaVersion`` tag.  Files without the tag come from writers that predate
it and share the same field names, so they decode as version 0.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional, Type, Union

from .config import NetConf
from .exceptions import MalformedRecord
from .naming import RecordKind
from .records import AdditionalData, InterfaceRecord

SCHEMA_VERSION = 1
SCHEMA_KEY = "schemaVersion"

Record = Union[InterfaceRecord, NetConf, AdditionalData]

RECORD_TYPES: Dict[RecordKind, Type[Any]] = {
    RecordKind.INTERFACE: InterfaceRecord,
    RecordKind.REMOTE: NetConf,
    RecordKind.AUXILIARY: AdditionalData,
}


def kind_of(record: Record) -> RecordKind:
    for kind, record_type in RECORD_TYPES.items():
        if isinstance(record, record_type):
            return kind
    raise TypeError(f"unsupported record type {type(record).__name__}")


def encode(record: Record) -> bytes:
    kind_of(record)
    payload = record.to_dict()
    payload[SCHEMA_KEY] = SCHEMA_VERSION
    return json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")


def decode(raw: bytes, kind: RecordKind, path: Optional[Path] = None) -> Record:
    """Decode ``raw`` into the record type registered for ``kind``.

    Raises :class:`MalformedRecord` when the bytes are not a JSON object of
    the expected shape or carry a schema version newer than this reader.
    """

    try:
        payload = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MalformedRecord(f"invalid {kind.name.lower()} record ({exc})", path) from exc

    if not isinstance(payload, dict):
        raise MalformedRecord(f"{kind.name.lower()} record is not a JSON object", path)

    version = payload.pop(SCHEMA_KEY, 0)
    if isinstance(version, bool) or not isinstance(version, int) or version < 0:
        raise MalformedRecord(f"invalid schema version {version!r}", path)
    if version > SCHEMA_VERSION:
        raise MalformedRecord(
            f"schema version {version} is newer than supported {SCHEMA_VERSION}", path
        )

    try:
        return RECORD_TYPES[kind].from_dict(payload)
    except (KeyError, TypeError, ValueError) as exc:
        raise MalformedRecord(f"invalid {kind.name.lower()} record ({exc!s})", path) from exc
