"""Turn a host-side configuration into what the container has to apply."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

from usrsp_store.config import NetConf, UserSpaceConf
from usrsp_store.naming import container_prefix

_OPPOSITE_MEMIF_ROLE = {"master": "slave", "slave": "master"}
_OPPOSITE_VHOST_MODE = {"client": "server", "server": "client"}


def to_container_perspective(conf: NetConf) -> NetConf:
    """Return the configuration the container-side agent should process.

    The container half becomes the host half of the copy, seen from inside
    the container.  Anything the container half leaves empty is derived from
    the host half: engine and interface type are inherited, the memif role
    and vhost-user mode are the opposite of the host's so the two ends pair
    up.  IPAM has already run on the host, so its type is cleared.
    """

    host = conf.host_conf
    side = conf.container_conf

    engine = side.engine or host.engine
    iftype = side.iftype or host.iftype
    net_type = side.net_type or "interface"
    memif = side.memif
    vhost = side.vhost

    if iftype == "memif":
        if not memif.role:
            memif = replace(memif, role=_OPPOSITE_MEMIF_ROLE.get(host.memif.role, "master"))
        if not memif.mode:
            memif = replace(memif, mode=host.memif.mode)
    elif iftype == "vhostuser":
        if not vhost.mode:
            vhost = replace(vhost, mode=_OPPOSITE_VHOST_MODE.get(host.vhost.mode, "client"))

    flipped = replace(
        side,
        engine=engine,
        iftype=iftype,
        net_type=net_type,
        memif=memif,
        vhost=vhost,
    )

    ipam = dict(conf.ipam)
    if ipam:
        ipam["type"] = ""

    return replace(conf, host_conf=flipped, container_conf=UserSpaceConf(), ipam=ipam)


def with_socket_in(conf: NetConf, directory: Path, container_id: str) -> NetConf:
    """Point an unset socket file at ``directory``.

    The container-side agent sees the host's per-container directory at
    whatever path it is mounted on, so the socket the host created is
    found next to the claimed record rather than under the configured
    base directory.
    """

    side = conf.host_conf
    socket_file = str(directory / f"{container_prefix(container_id)}-{conf.if0name}")
    if side.iftype == "memif" and not side.memif.socket_file:
        side = replace(side, memif=replace(side.memif, socket_file=socket_file))
    elif side.iftype == "vhostuser" and not side.vhost.socket_file:
        side = replace(side, vhost=replace(side.vhost, socket_file=socket_file))
    else:
        return conf
    return replace(conf, host_conf=side)
