"""Records persisted between plugin invocations."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from .config import NetConf, _int, _mapping, _str


@dataclass(frozen=True)
class IPData:
    """Address assignment resolved by IPAM on the host side."""

    address: str = ""
    prefix_length: int = 0
    is_ipv6: bool = False

    @classmethod
    def from_cidr(cls, value: str) -> "IPData":
        iface = ipaddress.ip_interface(value)
        return cls(
            address=str(iface.ip),
            prefix_length=iface.network.prefixlen,
            is_ipv6=iface.version == 6,
        )

    @property
    def cidr(self) -> str:
        if not self.address:
            return ""
        return f"{self.address}/{self.prefix_length}"

    @classmethod
    def from_dict(cls, data: Any) -> "IPData":
        data = _mapping(data, "ipData")
        is_ipv6 = data.get("isIpv6", False)
        if isinstance(is_ipv6, int):
            is_ipv6 = bool(is_ipv6)
        if not isinstance(is_ipv6, bool):
            raise TypeError("'isIpv6' must be a boolean")
        ip = cls(
            address=_str(data, "address"),
            prefix_length=_int(data, "addressLength"),
            is_ipv6=is_ipv6,
        )
        if ip.address:
            ipaddress.ip_interface(ip.cidr)
        return ip

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "addressLength": self.prefix_length,
            "isIpv6": self.is_ipv6,
        }


@dataclass(frozen=True)
class InterfaceRecord:
    """Dataplane handles needed to tear an interface down later.

    Attributes
    ----------
    sw_if_index:
        Interface handle assigned by the dataplane.
    memif_socket_id:
        Socket identifier the interface was created on, if any.
    socket_file:
        Socket path created for the interface, if any.
    """

    sw_if_index: int
    memif_socket_id: int = 0
    socket_file: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "InterfaceRecord":
        data = _mapping(data, "interface record")
        if "swIfIndex" not in data:
            raise KeyError("swIfIndex")
        return cls(
            sw_if_index=_int(data, "swIfIndex"),
            memif_socket_id=_int(data, "memifSocketId"),
            socket_file=_str(data, "socketFile"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "swIfIndex": self.sw_if_index,
            "memifSocketId": self.memif_socket_id,
            "socketFile": self.socket_file,
        }


@dataclass(frozen=True)
class AdditionalData:
    """Companion of a staged remote configuration."""

    container_id: str
    ip_data: IPData = field(default_factory=IPData)

    @classmethod
    def from_dict(cls, data: Any) -> "AdditionalData":
        data = _mapping(data, "additional data")
        container_id = _str(data, "containerId")
        if not container_id:
            raise ValueError("'containerId' is required")
        return cls(container_id=container_id, ip_data=IPData.from_dict(data.get("ipData")))

    def to_dict(self) -> Dict[str, Any]:
        return {"containerId": self.container_id, "ipData": self.ip_data.to_dict()}


@dataclass(frozen=True)
class PendingConfig:
    """A remote configuration claimed from the handoff queue."""

    config: NetConf
    additional: AdditionalData
    path: Optional[Path] = None

    @property
    def container_id(self) -> str:
        return self.additional.container_id
