"""Inter-invocation state for the userspace CNI plugin.

Each plugin invocation is a separate, short-lived process, so anything an
``ADD`` learns that a later invocation needs has to go through the
filesystem.  This package owns that handoff:

* :class:`~usrsp_store.local.LocalStateStore` keeps the dataplane handles of
  a created interface until the matching ``DEL`` consumes them;
* :class:`~usrsp_store.remote.RemoteHandoffQueue` stages configuration for the
  container-side agent, which claims it exactly once; and
* :class:`~usrsp_store.store.UserspaceStore` bundles both behind the
  operations the dispatcher calls.

Reads that succeed are destructive: a record is delivered at most once.
"""

from .config import BridgeConf, MemifConf, NetConf, UserSpaceConf, VhostConf  # noqa: F401
from .exceptions import (  # noqa: F401
    InvalidRecordName,
    MalformedRecord,
    MissingCompanionRecord,
    StoreError,
    StoreIOError,
)
from .records import AdditionalData, InterfaceRecord, IPData, PendingConfig  # noqa: F401
from .remote import ClaimOrder  # noqa: F401
from .store import StoreSettings, UserspaceStore  # noqa: F401

__all__ = [
    "AdditionalData",
    "BridgeConf",
    "ClaimOrder",
    "IPData",
    "InterfaceRecord",
    "InvalidRecordName",
    "MalformedRecord",
    "MemifConf",
    "MissingCompanionRecord",
    "NetConf",
    "PendingConfig",
    "StoreError",
    "StoreIOError",
    "StoreSettings",
    "UserSpaceConf",
    "UserspaceStore",
    "VhostConf",
]
