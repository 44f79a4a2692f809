"""Per-interface dataplane state kept between ``ADD`` and ``DEL``."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from . import codec
from .files import DIR_MODE, FILE_MODE, ensure_directory, read_optional, write_atomic
from .naming import RecordKind, interface_record_path
from .reaper import reap
from .records import InterfaceRecord

LOG = logging.getLogger(__name__)


class LocalStateStore:
    """Save and consume :class:`~usrsp_store.records.InterfaceRecord` files.

    Parameters
    ----------
    shared_dir:
        Directory holding every interface record on this host.  Created on
        first write and removed again once the last record is consumed.
    scope_by_container:
        When true (the default) file names carry the truncated container id,
        ``local-{container12}-{ifname}.json``.  When false the older
        ``local-{ifname}.json`` form is used and the container id is ignored.
    """

    def __init__(
        self,
        shared_dir: Path,
        *,
        scope_by_container: bool = True,
        dir_mode: int = DIR_MODE,
        file_mode: int = FILE_MODE,
    ) -> None:
        self._shared_dir = Path(shared_dir)
        self._scope_by_container = scope_by_container
        self._dir_mode = dir_mode
        self._file_mode = file_mode

    @property
    def shared_dir(self) -> Path:
        return self._shared_dir

    def path_for(self, container_id: str, ifname: str) -> Path:
        scope = container_id if self._scope_by_container else None
        return interface_record_path(self._shared_dir, ifname, scope)

    def save(self, container_id: str, ifname: str, record: InterfaceRecord) -> Path:
        """Persist ``record``; an existing record for the key is overwritten."""

        path = self.path_for(container_id, ifname)
        data = codec.encode(record)
        ensure_directory(self._shared_dir, self._dir_mode)
        if path.exists():
            LOG.warning("overwriting interface state %s", path)
        write_atomic(path, data, self._file_mode)
        LOG.info("saved interface state for %s (swIfIndex=%s) to %s",
                 ifname, record.sw_if_index, path)
        return path

    def load(
        self, container_id: str, ifname: str, *, consume: bool = True
    ) -> Optional[InterfaceRecord]:
        """Return the saved record, or ``None`` when nothing was saved.

        With ``consume`` the file is deleted once it has been decoded, and the
        shared directory goes with it if that was the last record.  A record
        that fails to decode raises and is left in place.
        """

        path = self.path_for(container_id, ifname)
        raw = read_optional(path)
        if raw is None:
            LOG.debug("no interface state at %s", path)
            return None

        record = codec.decode(raw, RecordKind.INTERFACE, path)
        if consume:
            if not reap(path, self._shared_dir):
                LOG.warning("interface state %s was consumed concurrently", path)
                return None
            LOG.info("consumed interface state for %s from %s", ifname, path)
        return record
