"""YAML configuration loader for the CNI plugin."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from usrsp_cni.factory import EngineSettings
from usrsp_store.remote import ClaimOrder
from usrsp_store.store import DEFAULT_BASE_DIR, DEFAULT_SHARED_DIR, StoreSettings

DEFAULT_CONFIG_PATH = Path("/etc/userspace-cni/plugin.yaml")
CONFIG_ENV = "USERSPACE_CNI_CONFIG"


@dataclass
class LogSettings:
    level: str = "INFO"
    file: Optional[Path] = None


@dataclass
class PluginConfig:
    store: StoreSettings = field(default_factory=StoreSettings)
    engines: EngineSettings = field(default_factory=EngineSettings)
    log: LogSettings = field(default_factory=LogSettings)


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"'{name}' section must be a mapping")
    return section


def _parse_store(section: Mapping[str, Any]) -> StoreSettings:
    order = str(section.get("claim_order", ClaimOrder.LISTING.value))
    try:
        claim_order = ClaimOrder(order)
    except ValueError:
        raise ValueError(f"Unsupported claim_order '{order}'") from None
    return StoreSettings(
        base_dir=Path(section.get("base_dir", DEFAULT_BASE_DIR)),
        shared_dir=Path(section.get("shared_dir", DEFAULT_SHARED_DIR)),
        claim_order=claim_order,
        scope_by_container=bool(section.get("scope_by_container", True)),
    )


def _parse_engines(section: Mapping[str, Any]) -> EngineSettings:
    vpp = section.get("vpp") or {}
    ovs = section.get("ovs-dpdk") or section.get("ovs") or {}
    if not isinstance(vpp, dict) or not isinstance(ovs, dict):
        raise ValueError("engine entries must be mappings")
    defaults = EngineSettings()
    return EngineSettings(
        vpp_command=vpp.get("command"),
        ovs_command=ovs.get("command"),
        ovs_socket_dir=Path(ovs.get("socket_dir", defaults.ovs_socket_dir)),
        command_timeout=float(section.get("command_timeout", defaults.command_timeout)),
    )


def _parse_log(section: Mapping[str, Any]) -> LogSettings:
    log_file = section.get("file")
    return LogSettings(
        level=str(section.get("level", "INFO")).upper(),
        file=Path(log_file) if log_file else None,
    )


def config_path(explicit: Optional[Path] = None) -> Path:
    if explicit is not None:
        return explicit
    from_env = os.environ.get(CONFIG_ENV)
    return Path(from_env) if from_env else DEFAULT_CONFIG_PATH


def load_config(path: Path) -> PluginConfig:
    """Load ``path``; a missing file means all defaults."""

    if not path.exists():
        return PluginConfig()

    data = yaml.safe_load(path.read_text())
    if data is None:
        return PluginConfig()
    if not isinstance(data, dict):
        raise ValueError("Plugin configuration must be a mapping")

    return PluginConfig(
        store=_parse_store(_section(data, "store")),
        engines=_parse_engines(_section(data, "engines")),
        log=_parse_log(_section(data, "log")),
    )
