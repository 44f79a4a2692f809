"""VPP engine: memif and vhost-user interfaces on a local VPP."""

from __future__ import annotations

import logging
from pathlib import Path

from usrsp_store.config import UserSpaceConf
from usrsp_store.files import ensure_directory
from usrsp_store.naming import socket_path

from .base import StoreBackedEngine
from .provisioner import ProvisionRequest

LOG = logging.getLogger(__name__)


class VppEngine(StoreBackedEngine):
    """Provision interfaces on VPP.

    Socket files default to the container's directory under the store's base
    directory, which is the directory mounted into the container.
    """

    name = "vpp"
    supported_iftypes = ("memif", "vhostuser")

    def socket_file(self, conf: UserSpaceConf, container_id: str, ifname: str) -> str:
        configured = super().socket_file(conf, container_id, ifname)
        if configured:
            return configured
        return str(socket_path(self.store.settings.base_dir, container_id, ifname))

    def prepare(self, request: ProvisionRequest) -> None:
        ensure_directory(Path(request.socket_file).parent)
        LOG.debug("vpp socket for %s at %s", request.ifname, request.socket_file)
