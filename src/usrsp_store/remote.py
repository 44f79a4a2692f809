"""Staging area for configuration consumed inside a container.

The host-side ``ADD`` knows how the container end of an interface has to be
configured but cannot apply it: the container-side agent does that later, in
a separate process that has no idea which container it runs for.  The host
therefore stages two files in the container's directory::

    {base_dir}/{container_id}/addData-{ifname}.json
    {base_dir}/{container_id}/remote-{ifname}.json

and the agent claims whatever it finds.  The container directory is usually
mounted into the container at the shared data path, so pending records are
looked for both directly under the queue root and one level below it.

Claiming is read-then-delete.  Several agents may race for the same file; the
one whose unlink succeeds owns the record and the others move on to the next
match.  The order in which matches are tried is unspecified unless the queue
is created with :attr:`ClaimOrder.MTIME`.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Iterator, List, Optional

from . import codec
from .config import NetConf
from .exceptions import MissingCompanionRecord
from .files import DIR_MODE, FILE_MODE, ensure_directory, read_optional, write_atomic
from .naming import (
    RecordKind,
    aux_data_path,
    container_dir,
    interface_name_from_path,
    remote_config_path,
    validate_component,
)
from .reaper import reap_directory, remove_file, remove_tree
from .records import AdditionalData, PendingConfig

LOG = logging.getLogger(__name__)


class ClaimOrder(Enum):
    """Order in which pending records are tried."""

    LISTING = "listing"  # whatever the filesystem returns
    MTIME = "mtime"  # oldest first


class RemoteHandoffQueue:
    """Stage, claim and discard remote configuration records."""

    def __init__(
        self,
        base_dir: Path,
        *,
        order: ClaimOrder = ClaimOrder.LISTING,
        dir_mode: int = DIR_MODE,
        file_mode: int = FILE_MODE,
    ) -> None:
        self._base_dir = Path(base_dir)
        self._order = order
        self._dir_mode = dir_mode
        self._file_mode = file_mode

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def container_dir(self, container_id: str) -> Path:
        return container_dir(self._base_dir, container_id)

    # ------------------------------------------------------------------
    # Host side
    # ------------------------------------------------------------------
    def stage(self, ifname: str, config: NetConf, additional: AdditionalData) -> Path:
        """Stage ``config`` and ``additional`` for the container-side agent.

        The additional data is written first so that a visible remote record
        always has its companion.  If the second write fails the first file
        stays behind; it is invisible to consumers and goes away with
        :meth:`discard`.
        """

        validate_component(ifname, "interface name")
        directory = self.container_dir(additional.container_id)
        remote_data = codec.encode(config)
        aux_data = codec.encode(additional)

        ensure_directory(directory, self._dir_mode)
        write_atomic(aux_data_path(directory, ifname), aux_data, self._file_mode)
        path = remote_config_path(directory, ifname)
        write_atomic(path, remote_data, self._file_mode)
        LOG.info("staged remote configuration for %s at %s", ifname, path)
        return path

    def discard(self, container_id: str) -> bool:
        """Drop everything staged for ``container_id``.

        Returns ``False`` if there was nothing to drop.
        """

        directory = self.container_dir(container_id)
        removed = remove_tree(directory)
        if removed:
            LOG.info("discarded staged state in %s", directory)
        else:
            LOG.debug("no staged state for container %s", container_id)
        return removed

    # ------------------------------------------------------------------
    # Container side
    # ------------------------------------------------------------------
    def pending(self) -> List[Path]:
        """Remote records currently visible, in claim order."""

        matches = list(self._iter_matches())
        if self._order is ClaimOrder.MTIME:
            stamped = []
            for path in matches:
                try:
                    stamped.append((path.stat().st_mtime_ns, str(path), path))
                except FileNotFoundError:
                    continue
            matches = [path for _, _, path in sorted(stamped)]
        return matches

    def find_pending(self, *, consume: bool = True) -> Optional[PendingConfig]:
        """Claim one pending configuration, or return ``None`` if none exists.

        With ``consume`` both files are deleted once decoded.  A remote record
        without its additional data raises :class:`MissingCompanionRecord`
        after the remote record has been claimed; it is not put back.  A
        record whose file name or contents do not decode raises and is left
        in place.
        """

        for path in self.pending():
            ifname = interface_name_from_path(path, RecordKind.REMOTE)
            raw = read_optional(path)
            if raw is None:
                LOG.debug("pending record %s vanished before it was read", path)
                continue

            config = codec.decode(raw, RecordKind.REMOTE, path)
            if consume and not remove_file(path):
                LOG.debug("lost the claim on %s to another invocation", path)
                continue

            additional = self._take_companion(path.parent, ifname, consume)
            if consume:
                self._reap_container_dir(path.parent)
            LOG.info(
                "claimed remote configuration for %s (container %s) from %s",
                ifname,
                additional.container_id,
                path,
            )
            return PendingConfig(config=config, additional=additional, path=path)

        LOG.debug("no pending remote configuration under %s", self._base_dir)
        return None

    def _iter_matches(self) -> Iterator[Path]:
        pattern = RecordKind.REMOTE.pattern
        try:
            yield from self._base_dir.glob(pattern)
            yield from self._base_dir.glob(f"*/{pattern}")
        except FileNotFoundError:
            return

    def _take_companion(self, directory: Path, ifname: str, consume: bool) -> AdditionalData:
        path = aux_data_path(directory, ifname)
        raw = read_optional(path)
        if raw is None:
            raise MissingCompanionRecord("additional data missing for claimed configuration", path)
        additional = codec.decode(raw, RecordKind.AUXILIARY, path)
        if consume:
            remove_file(path)
        return additional

    def _reap_container_dir(self, directory: Path) -> None:
        # The queue root itself may be a mount point; only reap below it.
        if directory != self._base_dir:
            reap_directory(directory)
