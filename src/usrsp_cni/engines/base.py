"""Abstract interface for userspace dataplane engines."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from usrsp_store.config import MEMIF_MODES, MEMIF_ROLES, VHOST_MODES, NetConf, UserSpaceConf
from usrsp_store.records import AdditionalData, IPData
from usrsp_store.store import UserspaceStore

from ..errors import InvalidNetworkConfig
from ..transform import to_container_perspective
from .provisioner import ProvisionRequest, Provisioner

LOG = logging.getLogger(__name__)

NET_TYPES = ("", "interface", "bridge")


class UserspaceEngine(ABC):
    """Base class for engines managed by :class:`EngineRegistry`."""

    name: str = ""

    @abstractmethod
    def add_on_host(self, conf: NetConf, container_id: str, ip_data: IPData) -> None:
        """Create the host end of the interface described by ``conf.host_conf``."""

    @abstractmethod
    def add_on_container(self, conf: NetConf, container_id: str, ip_data: IPData) -> None:
        """Arrange for the container end described by ``conf.container_conf``."""

    @abstractmethod
    def del_from_host(self, conf: NetConf, container_id: str) -> None:
        """Tear down what :meth:`add_on_host` created.  Must be idempotent."""

    @abstractmethod
    def del_from_container(self, conf: NetConf, container_id: str) -> None:
        """Drop anything :meth:`add_on_container` left behind.  Must be idempotent."""


def validate_userspace_conf(conf: UserSpaceConf, supported_iftypes: Sequence[str]) -> None:
    """Reject configurations the dataplane would choke on."""

    if conf.iftype not in supported_iftypes:
        raise InvalidNetworkConfig(
            f"unsupported iftype '{conf.iftype}' for engine '{conf.engine}'",
            details=f"supported: {', '.join(supported_iftypes)}",
        )
    if conf.net_type not in NET_TYPES:
        raise InvalidNetworkConfig(f"unsupported netType '{conf.net_type}'")
    if conf.iftype == "memif":
        if conf.memif.role not in MEMIF_ROLES:
            raise InvalidNetworkConfig(f"invalid memif role '{conf.memif.role}'")
        if conf.memif.mode not in MEMIF_MODES:
            raise InvalidNetworkConfig(f"invalid memif mode '{conf.memif.mode}'")
    elif conf.iftype == "vhostuser":
        if conf.vhost.mode not in VHOST_MODES:
            raise InvalidNetworkConfig(f"invalid vhost-user mode '{conf.vhost.mode}'")


class StoreBackedEngine(UserspaceEngine):
    """Engine that provisions through a :class:`Provisioner`.

    The interface record returned by the dataplane is saved after a
    successful create and consumed before the matching delete.  Container
    configuration is staged on the handoff queue.
    """

    supported_iftypes: Sequence[str] = ()

    def __init__(self, store: UserspaceStore, provisioner: Provisioner) -> None:
        self._store = store
        self._provisioner = provisioner

    @property
    def store(self) -> UserspaceStore:
        return self._store

    def socket_file(self, conf: UserSpaceConf, container_id: str, ifname: str) -> str:
        """Socket path to hand to the dataplane; engines override this."""

        if conf.iftype == "memif":
            return conf.memif.socket_file
        return conf.vhost.socket_file

    def _request(
        self, conf: NetConf, container_id: str, ip_data: Optional[IPData] = None
    ) -> ProvisionRequest:
        side = conf.host_conf
        return ProvisionRequest(
            engine=self.name,
            container_id=container_id,
            ifname=conf.if0name,
            conf=side,
            socket_file=self.socket_file(side, container_id, conf.if0name),
            ip_data=ip_data or IPData(),
        )

    def add_on_host(self, conf: NetConf, container_id: str, ip_data: IPData) -> None:
        validate_userspace_conf(conf.host_conf, self.supported_iftypes)
        request = self._request(conf, container_id, ip_data)
        self.prepare(request)
        record = self._provisioner.create(request)
        LOG.info(
            "%s created %s interface %s (swIfIndex=%d) for container %s",
            self.name,
            conf.host_conf.iftype,
            conf.if0name,
            record.sw_if_index,
            container_id,
        )
        self._store.save_interface_state(container_id, conf.if0name, record)

    def del_from_host(self, conf: NetConf, container_id: str) -> None:
        record = self._store.load_interface_state(container_id, conf.if0name)
        if record is None:
            LOG.info(
                "%s has no saved state for %s in container %s, nothing to delete",
                self.name,
                conf.if0name,
                container_id,
            )
            return
        request = self._request(conf, container_id)
        self._provisioner.delete(request, record)
        LOG.info("%s deleted interface swIfIndex=%d", self.name, record.sw_if_index)
        self.cleanup(request)

    def add_on_container(self, conf: NetConf, container_id: str, ip_data: IPData) -> None:
        remote = to_container_perspective(conf)
        self._store.stage_remote_config(
            conf.if0name,
            remote,
            AdditionalData(container_id=container_id, ip_data=ip_data),
        )

    def del_from_container(self, conf: NetConf, container_id: str) -> None:
        self._store.discard_container_state(container_id)

    def prepare(self, request: ProvisionRequest) -> None:
        """Hook run before the dataplane is asked to create an interface."""

    def cleanup(self, request: ProvisionRequest) -> None:
        """Hook run after the dataplane deleted an interface."""
