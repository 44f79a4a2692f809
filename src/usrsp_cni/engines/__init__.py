"""Dataplane engines exposed to the engine registry."""

from .base import StoreBackedEngine, UserspaceEngine, validate_userspace_conf  # noqa: F401
from .ovs import OvsDpdkEngine  # noqa: F401
from .provisioner import (  # noqa: F401
    CommandProvisioner,
    MissingProvisioner,
    ProvisionRequest,
    Provisioner,
)
from .vpp import VppEngine  # noqa: F401

__all__ = [
    "CommandProvisioner",
    "MissingProvisioner",
    "OvsDpdkEngine",
    "ProvisionRequest",
    "Provisioner",
    "StoreBackedEngine",
    "UserspaceEngine",
    "VppEngine",
    "validate_userspace_conf",
]
