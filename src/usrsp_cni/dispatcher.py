"""Route CNI commands to the configured engines.

The dispatcher is the only place that knows about both sides of an
interface.  On ``ADD`` it resolves the address through IPAM, asks the host
engine to create the host end and, when the configuration has a container
half, asks the container engine to stage it.  ``DEL`` runs the same steps in
reverse.  The container-side agent calls :meth:`Dispatcher.apply_pending` to
pick up whatever was staged for it.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from usrsp_store.config import NetConf
from usrsp_store.exceptions import StoreError
from usrsp_store.records import IPData, PendingConfig
from usrsp_store.store import UserspaceStore

from .errors import (
    CNI_INCOMPATIBLE_VERSION,
    CNI_IO_FAILURE,
    CniError,
    DecodeError,
    InvalidEnvironment,
    InvalidNetworkConfig,
    cni_error_from,
)
from .ipam import AddressAssigner, ip_data_from_result
from .registry import EngineRegistry
from .requests import CniRequest
from .transform import with_socket_in

LOG = logging.getLogger(__name__)

SUPPORTED_VERSIONS = ("0.1.0", "0.2.0", "0.3.0", "0.3.1", "0.4.0", "1.0.0")
DEFAULT_CNI_VERSION = "1.0.0"


@contextmanager
def store_errors() -> Iterator[None]:
    """Report store and filesystem failures as CNI errors."""

    try:
        yield
    except StoreError as exc:
        raise cni_error_from(exc) from exc
    except OSError as exc:
        raise CniError(
            f"I/O failure: {exc.strerror or exc}",
            details=str(exc.filename or ""),
            code=CNI_IO_FAILURE,
        ) from exc


def load_netconf(raw: bytes, ifname: str = "") -> NetConf:
    try:
        conf = NetConf.from_bytes(raw)
    except json.JSONDecodeError as exc:
        raise DecodeError("failed to load netconf", details=str(exc)) from exc
    except (TypeError, ValueError, KeyError) as exc:
        raise DecodeError("failed to load netconf", details=str(exc)) from exc

    if conf.cni_version and conf.cni_version not in SUPPORTED_VERSIONS:
        raise CniError(
            f"incompatible CNI version {conf.cni_version}",
            details=f"supported: {', '.join(SUPPORTED_VERSIONS)}",
            code=CNI_INCOMPATIBLE_VERSION,
        )
    conf = conf.with_ifname(ifname)
    if not conf.if0name:
        raise InvalidNetworkConfig("no interface name in if0name or CNI_IFNAME")
    if not conf.host_conf.engine:
        raise InvalidNetworkConfig("hostConf.engine is required")
    return conf


class Dispatcher:
    """Run CNI commands against registered engines."""

    def __init__(
        self,
        registry: EngineRegistry,
        store: UserspaceStore,
        ipam: Optional[AddressAssigner] = None,
    ) -> None:
        self._registry = registry
        self._store = store
        self._ipam = ipam

    def handle(self, request: CniRequest) -> Optional[Dict[str, Any]]:
        if request.command == "ADD":
            return self.cmd_add(request)
        if request.command == "DEL":
            self.cmd_del(request)
            return None
        if request.command == "VERSION":
            return self.version()
        raise InvalidEnvironment(f"unsupported CNI_COMMAND '{request.command}'")

    def version(self) -> Dict[str, Any]:
        return {
            "cniVersion": DEFAULT_CNI_VERSION,
            "supportedVersions": list(SUPPORTED_VERSIONS),
        }

    # ------------------------------------------------------------------
    # Host side
    # ------------------------------------------------------------------
    def cmd_add(self, request: CniRequest) -> Dict[str, Any]:
        conf = load_netconf(request.stdin, request.ifname)
        host_engine = self._registry.get(conf.host_conf.engine)
        container_engine = None
        if conf.container_conf.configured:
            container_engine = self._registry.get(conf.container_conf.engine)

        ipam_result: Dict[str, Any] = {}
        ip_data = IPData()
        if conf.ipam_type:
            ipam_result = self._ipam_add(conf, request)

        try:
            if conf.ipam_type:
                ip_data = ip_data_from_result(ipam_result)
                LOG.info("IPAM assigned %s to %s", ip_data.cidr, conf.if0name)
            with store_errors():
                host_engine.add_on_host(conf, request.container_id, ip_data)
                if container_engine is not None:
                    container_engine.add_on_container(conf, request.container_id, ip_data)
        except CniError:
            if conf.ipam_type and self._ipam is not None:
                self._release_ipam(conf, request)
            raise

        return self._result(conf, request, ipam_result)

    def cmd_del(self, request: CniRequest) -> None:
        conf = load_netconf(request.stdin, request.ifname)
        with store_errors():
            self._registry.get(conf.host_conf.engine).del_from_host(conf, request.container_id)
            if conf.container_conf.configured:
                engine = self._registry.get(conf.container_conf.engine)
                engine.del_from_container(conf, request.container_id)
        if conf.ipam_type:
            if self._ipam is None:
                raise InvalidNetworkConfig("IPAM configured but no address assigner available")
            self._ipam.delete(conf.ipam_type, request)

    # ------------------------------------------------------------------
    # Container side
    # ------------------------------------------------------------------
    def apply_pending(self) -> Optional[PendingConfig]:
        """Claim one staged configuration and create its interface here."""

        with store_errors():
            pending = self._store.claim_pending_remote_config()
        if pending is None:
            return None

        conf = pending.config
        if pending.path is not None:
            with store_errors():
                conf = with_socket_in(conf, pending.path.parent, pending.container_id)
        if not conf.host_conf.configured:
            raise InvalidNetworkConfig(
                "claimed configuration has no engine", details=str(pending.path or "")
            )
        engine = self._registry.get(conf.host_conf.engine)
        LOG.info(
            "applying staged %s configuration for %s (container %s, ip %s)",
            conf.host_conf.engine,
            conf.if0name,
            pending.container_id,
            pending.additional.ip_data.cidr or "none",
        )
        with store_errors():
            engine.add_on_host(conf, pending.container_id, pending.additional.ip_data)
        return pending

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _ipam_add(self, conf: NetConf, request: CniRequest) -> Dict[str, Any]:
        if self._ipam is None:
            raise InvalidNetworkConfig("IPAM configured but no address assigner available")
        return self._ipam.add(conf.ipam_type, request)

    def _release_ipam(self, conf: NetConf, request: CniRequest) -> None:
        try:
            self._ipam.delete(conf.ipam_type, request)
        except CniError as exc:
            LOG.error("failed to release IPAM allocation after failed ADD: %s", exc.msg)

    def _result(
        self, conf: NetConf, request: CniRequest, ipam_result: Dict[str, Any]
    ) -> Dict[str, Any]:
        result = dict(ipam_result)
        result["cniVersion"] = conf.cni_version or result.get("cniVersion") or DEFAULT_CNI_VERSION
        if "interfaces" not in result:
            interface: Dict[str, Any] = {"name": conf.if0name}
            if request.netns:
                interface["sandbox"] = request.netns
            result["interfaces"] = [interface]
        return result
