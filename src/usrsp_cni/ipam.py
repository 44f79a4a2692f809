"""IPAM delegation.

Address management is not done by this plugin: the configured IPAM plugin is
executed with the same environment and configuration, and its result is
reduced to the single address the container-side agent needs.
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence

from usrsp_store.records import IPData

from .errors import IpamError
from .requests import CniRequest

LOG = logging.getLogger(__name__)


class AddressAssigner(ABC):
    """Interface to whatever hands out container addresses."""

    @abstractmethod
    def add(self, plugin: str, request: CniRequest) -> Dict[str, Any]:
        """Allocate an address and return the CNI result object."""

    @abstractmethod
    def delete(self, plugin: str, request: CniRequest) -> None:
        """Release whatever ``add`` allocated for ``request``."""


class ExecIpam(AddressAssigner):
    """Run an IPAM plugin binary found on ``CNI_PATH``."""

    def __init__(self, timeout: float = 30.0) -> None:
        self._timeout = timeout

    def add(self, plugin: str, request: CniRequest) -> Dict[str, Any]:
        result = self._exec(plugin, request, "ADD")
        if not isinstance(result, dict):
            raise IpamError(f"IPAM plugin '{plugin}' returned a non-object result")
        return result

    def delete(self, plugin: str, request: CniRequest) -> None:
        self._exec(plugin, request, "DEL")

    def find_plugin(self, plugin: str, search_path: Sequence[str]) -> Path:
        if not plugin or os.sep in plugin:
            raise IpamError(f"invalid IPAM plugin name '{plugin}'")
        for directory in search_path:
            candidate = Path(directory) / plugin
            if candidate.is_file() and os.access(candidate, os.X_OK):
                return candidate
        raise IpamError(
            f"IPAM plugin '{plugin}' not found",
            details=f"searched: {os.pathsep.join(search_path)}",
        )

    def _exec(self, plugin: str, request: CniRequest, command: str) -> Optional[Any]:
        binary = self.find_plugin(plugin, request.path)
        LOG.debug("delegating %s to IPAM plugin %s", command, binary)
        try:
            proc = subprocess.run(
                [str(binary)],
                input=request.stdin,
                env=request.env_for_delegate(command),
                capture_output=True,
                timeout=self._timeout,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise IpamError(f"failed to run IPAM plugin '{plugin}'", details=str(exc)) from exc

        output = proc.stdout.strip()
        payload = None
        if output:
            try:
                payload = json.loads(output)
            except json.JSONDecodeError as exc:
                raise IpamError(
                    f"IPAM plugin '{plugin}' returned invalid JSON", details=str(exc)
                ) from exc

        if proc.returncode != 0:
            msg = f"IPAM plugin '{plugin}' failed with exit code {proc.returncode}"
            details = proc.stderr.decode("utf-8", "replace").strip()
            if isinstance(payload, Mapping) and payload.get("msg"):
                msg = f"IPAM plugin '{plugin}': {payload['msg']}"
                details = str(payload.get("details", details))
            raise IpamError(msg, details=details)
        return payload


def ip_data_from_result(result: Mapping[str, Any]) -> IPData:
    """Return the first address of a CNI result as :class:`IPData`.

    Both the current ``ips`` list and the 0.2 ``ip4``/``ip6`` layout are
    understood.
    """

    candidates = []
    ips = result.get("ips")
    if isinstance(ips, list):
        candidates.extend(entry.get("address") for entry in ips if isinstance(entry, Mapping))
    for key in ("ip4", "ip6"):
        legacy = result.get(key)
        if isinstance(legacy, Mapping):
            candidates.append(legacy.get("ip"))

    for value in candidates:
        if not value:
            continue
        try:
            return IPData.from_cidr(str(value))
        except ValueError as exc:
            raise IpamError(f"IPAM plugin returned invalid address '{value}'") from exc

    raise IpamError("IPAM plugin returned missing IP config")
