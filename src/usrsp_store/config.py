"""Network configuration data structures.

These dataclasses mirror the JSON network configuration handed to the plugin
on stdin.  The host and container halves of a configuration share the same
:class:`UserSpaceConf` shape; the container half is what gets staged for the
container-side agent once it has been flipped to the container's point of
view.

Unknown top-level keys are preserved in :attr:`NetConf.extra` so that a staged
configuration decodes back into exactly what was written.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional

MEMIF_ROLES = ("master", "slave")
MEMIF_MODES = ("ethernet", "ip", "inject-punt")
VHOST_MODES = ("client", "server")


def _mapping(value: Any, what: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise TypeError(f"{what} must be a JSON object, got {type(value).__name__}")
    return value


def _str(data: Mapping[str, Any], key: str, default: str = "") -> str:
    value = data.get(key, default)
    if value is None:
        return default
    if not isinstance(value, str):
        raise TypeError(f"'{key}' must be a string, got {type(value).__name__}")
    return value


def _int(data: Mapping[str, Any], key: str, default: int = 0) -> int:
    value = data.get(key, default)
    if value is None:
        return default
    # bool is an int subclass but never a valid index
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"'{key}' must be an integer, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"'{key}' must not be negative")
    return value


@dataclass(frozen=True)
class MemifConf:
    """memif parameters.

    Attributes
    ----------
    role:
        ``master`` or ``slave``.  Empty means "derive from the peer".
    mode:
        ``ethernet``, ``ip`` or ``inject-punt``.
    socket_id:
        Dataplane socket identifier the interface is attached to.
    socket_file:
        Path of the memif control socket.
    """

    role: str = ""
    mode: str = ""
    socket_id: int = 0
    socket_file: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "MemifConf":
        data = _mapping(data, "memif")
        return cls(
            role=_str(data, "role"),
            mode=_str(data, "mode"),
            socket_id=_int(data, "socketId"),
            socket_file=_str(data, "socketfile", _str(data, "socketFile")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "role": self.role,
            "mode": self.mode,
            "socketId": self.socket_id,
            "socketfile": self.socket_file,
        }


@dataclass(frozen=True)
class VhostConf:
    """vhost-user parameters; ``mode`` is ``client`` or ``server``."""

    mode: str = ""
    socket_file: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "VhostConf":
        data = _mapping(data, "vhost")
        return cls(
            mode=_str(data, "mode"),
            socket_file=_str(data, "socketfile", _str(data, "socketFile")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"mode": self.mode, "socketfile": self.socket_file}


@dataclass(frozen=True)
class BridgeConf:
    bridge_id: int = 0
    vlan_id: int = 0

    @classmethod
    def from_dict(cls, data: Any) -> "BridgeConf":
        data = _mapping(data, "bridge")
        return cls(bridge_id=_int(data, "bridgeId"), vlan_id=_int(data, "vlanId"))

    def to_dict(self) -> Dict[str, Any]:
        return {"bridgeId": self.bridge_id, "vlanId": self.vlan_id}


@dataclass(frozen=True)
class UserSpaceConf:
    """One side (host or container) of a userspace interface definition.

    Attributes
    ----------
    engine:
        Dataplane that provisions this side: ``vpp`` or ``ovs-dpdk``.  An
        empty engine means the side is not configured.
    iftype:
        ``memif`` or ``vhostuser``.
    net_type:
        How the interface is attached: ``interface`` or ``bridge``.
    """

    engine: str = ""
    iftype: str = ""
    net_type: str = ""
    memif: MemifConf = field(default_factory=MemifConf)
    vhost: VhostConf = field(default_factory=VhostConf)
    bridge: BridgeConf = field(default_factory=BridgeConf)

    @property
    def configured(self) -> bool:
        return bool(self.engine)

    @classmethod
    def from_dict(cls, data: Any) -> "UserSpaceConf":
        data = _mapping(data, "userspace configuration")
        return cls(
            engine=_str(data, "engine"),
            iftype=_str(data, "iftype"),
            net_type=_str(data, "netType"),
            memif=MemifConf.from_dict(data.get("memif")),
            vhost=VhostConf.from_dict(data.get("vhost")),
            bridge=BridgeConf.from_dict(data.get("bridge")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "engine": self.engine,
            "iftype": self.iftype,
            "netType": self.net_type,
            "memif": self.memif.to_dict(),
            "vhost": self.vhost.to_dict(),
            "bridge": self.bridge.to_dict(),
        }


_NETCONF_KEYS = (
    "cniVersion",
    "name",
    "type",
    "ipam",
    "hostConf",
    "containerConf",
    "if0name",
)


@dataclass(frozen=True)
class NetConf:
    """Network configuration as received from the container runtime."""

    cni_version: str = ""
    name: str = ""
    type: str = ""
    ipam: Dict[str, Any] = field(default_factory=dict)
    host_conf: UserSpaceConf = field(default_factory=UserSpaceConf)
    container_conf: UserSpaceConf = field(default_factory=UserSpaceConf)
    if0name: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def ipam_type(self) -> str:
        value = self.ipam.get("type", "")
        return value if isinstance(value, str) else ""

    def with_ifname(self, ifname: Optional[str]) -> "NetConf":
        """Return a copy with ``if0name`` defaulted to ``ifname``."""

        if self.if0name or not ifname:
            return self
        return replace(self, if0name=ifname)

    @classmethod
    def from_dict(cls, data: Any) -> "NetConf":
        data = _mapping(data, "network configuration")
        return cls(
            cni_version=_str(data, "cniVersion"),
            name=_str(data, "name"),
            type=_str(data, "type"),
            ipam=dict(_mapping(data.get("ipam"), "ipam")),
            host_conf=UserSpaceConf.from_dict(data.get("hostConf")),
            container_conf=UserSpaceConf.from_dict(data.get("containerConf")),
            if0name=_str(data, "if0name"),
            extra={k: v for k, v in data.items() if k not in _NETCONF_KEYS},
        )

    @classmethod
    def from_bytes(cls, raw: bytes) -> "NetConf":
        return cls.from_dict(json.loads(raw))

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = dict(self.extra)
        data.update(
            {
                "cniVersion": self.cni_version,
                "name": self.name,
                "type": self.type,
                "ipam": dict(self.ipam),
                "hostConf": self.host_conf.to_dict(),
                "containerConf": self.container_conf.to_dict(),
                "if0name": self.if0name,
            }
        )
        return data
