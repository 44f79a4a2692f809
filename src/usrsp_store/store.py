"""Facade bundling the local state store and the remote handoff queue."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .config import NetConf
from .local import LocalStateStore
from .records import AdditionalData, InterfaceRecord, PendingConfig
from .remote import ClaimOrder, RemoteHandoffQueue

LOG = logging.getLogger(__name__)

DEFAULT_BASE_DIR = Path("/var/run/vpp/cni")
DEFAULT_SHARED_DIR = DEFAULT_BASE_DIR / "data"


@dataclass(frozen=True)
class StoreSettings:
    """Where records live and how they are claimed."""

    base_dir: Path = DEFAULT_BASE_DIR
    shared_dir: Path = DEFAULT_SHARED_DIR
    claim_order: ClaimOrder = ClaimOrder.LISTING
    scope_by_container: bool = True


class UserspaceStore:
    """The operations the dispatcher relies on, backed by the filesystem.

    All paths come from ``settings``, so tests can point a store at a
    temporary directory.
    """

    def __init__(self, settings: Optional[StoreSettings] = None) -> None:
        self._settings = settings or StoreSettings()
        self._local = LocalStateStore(
            self._settings.shared_dir,
            scope_by_container=self._settings.scope_by_container,
        )
        self._queue = RemoteHandoffQueue(
            self._settings.base_dir, order=self._settings.claim_order
        )

    @property
    def settings(self) -> StoreSettings:
        return self._settings

    @property
    def local(self) -> LocalStateStore:
        return self._local

    @property
    def queue(self) -> RemoteHandoffQueue:
        return self._queue

    def save_interface_state(
        self, container_id: str, ifname: str, record: InterfaceRecord
    ) -> None:
        self._local.save(container_id, ifname, record)

    def load_interface_state(
        self, container_id: str, ifname: str, *, consume: bool = True
    ) -> Optional[InterfaceRecord]:
        return self._local.load(container_id, ifname, consume=consume)

    def stage_remote_config(
        self, ifname: str, config: NetConf, additional: AdditionalData
    ) -> None:
        self._queue.stage(ifname, config, additional)

    def claim_pending_remote_config(self, *, consume: bool = True) -> Optional[PendingConfig]:
        return self._queue.find_pending(consume=consume)

    def discard_container_state(self, container_id: str) -> None:
        self._queue.discard(container_id)
