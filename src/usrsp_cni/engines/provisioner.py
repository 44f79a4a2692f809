"""Interface to the dataplane that actually creates interfaces."""

from __future__ import annotations

import json
import logging
import shlex
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Sequence, Union

from usrsp_store.config import UserSpaceConf
from usrsp_store.records import InterfaceRecord, IPData

from ..errors import ProvisionError

LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProvisionRequest:
    """Everything a dataplane needs to create or delete one interface."""

    engine: str
    container_id: str
    ifname: str
    conf: UserSpaceConf
    socket_file: str = ""
    ip_data: IPData = field(default_factory=IPData)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "engine": self.engine,
            "containerId": self.container_id,
            "ifname": self.ifname,
            "conf": self.conf.to_dict(),
            "socketFile": self.socket_file,
            "ipData": self.ip_data.to_dict(),
        }


class Provisioner(ABC):
    """Creates and deletes interfaces on a dataplane."""

    @abstractmethod
    def create(self, request: ProvisionRequest) -> InterfaceRecord:
        """Create the interface and return the handles needed to delete it."""

    @abstractmethod
    def delete(self, request: ProvisionRequest, record: InterfaceRecord) -> None:
        """Delete the interface identified by ``record``."""


class CommandProvisioner(Provisioner):
    """Delegate to a helper executable.

    The helper is invoked as ``<command> create`` or ``<command> delete``
    with a JSON document on stdin.  ``create`` must print the interface
    record (``{"swIfIndex": ..., ...}``) on stdout.
    """

    def __init__(self, command: Union[str, Sequence[str]], timeout: float = 30.0) -> None:
        self._command = shlex.split(command) if isinstance(command, str) else list(command)
        if not self._command:
            raise ValueError("provisioner command must not be empty")
        self._timeout = timeout

    @property
    def command(self) -> Sequence[str]:
        return tuple(self._command)

    def create(self, request: ProvisionRequest) -> InterfaceRecord:
        output = self._run("create", {"request": request.to_dict()})
        try:
            return InterfaceRecord.from_dict(json.loads(output))
        except (ValueError, KeyError, TypeError) as exc:
            raise ProvisionError(
                f"{request.engine} helper returned an invalid interface record",
                details=str(exc),
            ) from exc

    def delete(self, request: ProvisionRequest, record: InterfaceRecord) -> None:
        self._run("delete", {"request": request.to_dict(), "record": record.to_dict()})

    def _run(self, action: str, payload: Dict[str, Any]) -> bytes:
        argv = [*self._command, action]
        LOG.debug("EXEC: %s", " ".join(argv))
        try:
            proc = subprocess.run(
                argv,
                input=json.dumps(payload).encode("utf-8"),
                capture_output=True,
                timeout=self._timeout,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise ProvisionError(f"failed to run {argv[0]}", details=str(exc)) from exc
        if proc.returncode != 0:
            raise ProvisionError(
                f"{argv[0]} {action} failed with exit code {proc.returncode}",
                details=proc.stderr.decode("utf-8", "replace").strip(),
            )
        return proc.stdout


class MissingProvisioner(Provisioner):
    """Stand-in for an engine whose helper was not configured."""

    def __init__(self, engine: str) -> None:
        self._engine = engine

    def create(self, request: ProvisionRequest) -> InterfaceRecord:
        raise ProvisionError(f"no provisioning helper configured for engine '{self._engine}'")

    def delete(self, request: ProvisionRequest, record: InterfaceRecord) -> None:
        raise ProvisionError(f"no provisioning helper configured for engine '{self._engine}'")
