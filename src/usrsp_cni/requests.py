"""Invocation context handed to the plugin by the container runtime."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

from .errors import InvalidEnvironment

SUPPORTED_COMMANDS = ("ADD", "DEL", "VERSION")


@dataclass(frozen=True)
class CniRequest:
    """One plugin invocation.

    The runtime passes everything except the network configuration through
    ``CNI_*`` environment variables; the configuration itself arrives on
    stdin and is kept undecoded in ``stdin`` so it can be forwarded to a
    delegated IPAM plugin byte for byte.
    """

    command: str
    container_id: str = ""
    netns: str = ""
    ifname: str = ""
    args: Tuple[Tuple[str, str], ...] = ()
    path: Tuple[str, ...] = ()
    stdin: bytes = b""
    environ: Mapping[str, str] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_environ(
        cls,
        stdin: bytes,
        environ: Optional[Mapping[str, str]] = None,
        command: Optional[str] = None,
    ) -> "CniRequest":
        env = dict(os.environ if environ is None else environ)
        cmd = (command or env.get("CNI_COMMAND", "")).upper()
        if not cmd:
            raise InvalidEnvironment("CNI_COMMAND is not set")
        if cmd not in SUPPORTED_COMMANDS:
            raise InvalidEnvironment(f"unsupported CNI_COMMAND '{cmd}'")

        request = cls(
            command=cmd,
            container_id=env.get("CNI_CONTAINERID", ""),
            netns=env.get("CNI_NETNS", ""),
            ifname=env.get("CNI_IFNAME", ""),
            args=parse_cni_args(env.get("CNI_ARGS", "")),
            path=tuple(p for p in env.get("CNI_PATH", "").split(os.pathsep) if p),
            stdin=stdin,
            environ=env,
        )
        if cmd in ("ADD", "DEL"):
            missing = [
                name
                for name, value in (
                    ("CNI_CONTAINERID", request.container_id),
                    ("CNI_IFNAME", request.ifname),
                )
                if not value
            ]
            if missing:
                raise InvalidEnvironment(f"required environment variables missing: {', '.join(missing)}")
        return request

    def env_for_delegate(self, command: Optional[str] = None) -> Dict[str, str]:
        env = dict(self.environ)
        env["CNI_COMMAND"] = command or self.command
        return env


def parse_cni_args(value: str) -> Tuple[Tuple[str, str], ...]:
    """Parse ``CNI_ARGS`` (``K1=V1;K2=V2``) into key/value pairs."""

    pairs: List[Tuple[str, str]] = []
    for item in value.split(";"):
        if not item:
            continue
        key, sep, val = item.partition("=")
        if not sep:
            raise InvalidEnvironment(f"invalid CNI_ARGS element '{item}'")
        pairs.append((key, val))
    return tuple(pairs)
