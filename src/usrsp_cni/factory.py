"""Wire a dispatcher from store and engine settings."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from usrsp_store.store import StoreSettings, UserspaceStore

from .dispatcher import Dispatcher
from .engines import CommandProvisioner, MissingProvisioner, OvsDpdkEngine, Provisioner, VppEngine
from .engines.ovs import DEFAULT_SOCKET_DIR
from .ipam import AddressAssigner, ExecIpam
from .registry import EngineRegistry


@dataclass(frozen=True)
class EngineSettings:
    vpp_command: Optional[str] = None
    ovs_command: Optional[str] = None
    ovs_socket_dir: Path = DEFAULT_SOCKET_DIR
    command_timeout: float = 30.0


def _provisioner(engine: str, command: Optional[str], timeout: float) -> Provisioner:
    if command:
        return CommandProvisioner(command, timeout=timeout)
    return MissingProvisioner(engine)


def build_registry(store: UserspaceStore, settings: EngineSettings) -> EngineRegistry:
    registry = EngineRegistry()
    registry.register(
        VppEngine.name,
        VppEngine(store, _provisioner(VppEngine.name, settings.vpp_command, settings.command_timeout)),
    )
    registry.register(
        OvsDpdkEngine.name,
        OvsDpdkEngine(
            store,
            _provisioner(OvsDpdkEngine.name, settings.ovs_command, settings.command_timeout),
            socket_dir=settings.ovs_socket_dir,
        ),
    )
    return registry


def build_dispatcher(
    store_settings: StoreSettings,
    engine_settings: EngineSettings,
    ipam: Optional[AddressAssigner] = None,
) -> Dispatcher:
    store = UserspaceStore(store_settings)
    registry = build_registry(store, engine_settings)
    return Dispatcher(registry, store, ipam or ExecIpam(timeout=engine_settings.command_timeout))
