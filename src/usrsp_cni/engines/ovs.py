"""OVS-DPDK engine: vhost-user ports on a local Open vSwitch."""

from __future__ import annotations

import logging
from pathlib import Path

from usrsp_store.config import NetConf, UserSpaceConf
from usrsp_store.files import ensure_directory
from usrsp_store.naming import container_dir, container_prefix
from usrsp_store.reaper import reap_directory, remove_file
from usrsp_store.records import IPData
from usrsp_store.store import UserspaceStore

from .base import StoreBackedEngine
from .provisioner import ProvisionRequest, Provisioner

LOG = logging.getLogger(__name__)

DEFAULT_SOCKET_DIR = Path("/var/lib/cni/vhostuser")


class OvsDpdkEngine(StoreBackedEngine):
    """Provision vhost-user ports on OVS-DPDK.

    Sockets live in ``{socket_dir}/{container_id}/{container12}-{ifname}``.
    The DPDK application in the container opens the socket itself, so there
    is nothing to stage for the container side.
    """

    name = "ovs-dpdk"
    supported_iftypes = ("vhostuser",)

    def __init__(
        self,
        store: UserspaceStore,
        provisioner: Provisioner,
        socket_dir: Path = DEFAULT_SOCKET_DIR,
    ) -> None:
        super().__init__(store, provisioner)
        self._socket_dir = Path(socket_dir)

    @property
    def socket_dir(self) -> Path:
        return self._socket_dir

    def socket_file(self, conf: UserSpaceConf, container_id: str, ifname: str) -> str:
        configured = super().socket_file(conf, container_id, ifname)
        if configured:
            return configured
        directory = container_dir(self._socket_dir, container_id)
        return str(directory / f"{container_prefix(container_id)}-{ifname}")

    def prepare(self, request: ProvisionRequest) -> None:
        ensure_directory(Path(request.socket_file).parent)

    def cleanup(self, request: ProvisionRequest) -> None:
        directory = container_dir(self._socket_dir, request.container_id)
        base_name = f"{container_prefix(request.container_id)}-{request.ifname}"
        try:
            names = [p for p in directory.iterdir() if p.name.startswith(base_name)]
        except FileNotFoundError:
            return
        for path in names:
            if remove_file(path):
                LOG.debug("removed socket file %s", path)
        reap_directory(directory)

    def add_on_container(self, conf: NetConf, container_id: str, ip_data: IPData) -> None:
        LOG.debug("ovs-dpdk has no container side for %s", conf.if0name)

    def del_from_container(self, conf: NetConf, container_id: str) -> None:
        LOG.debug("ovs-dpdk has no container side for %s", conf.if0name)
