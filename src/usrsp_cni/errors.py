"""CNI error objects and the mapping from store failures to CNI codes."""

from __future__ import annotations

from typing import Any, Dict

from usrsp_store.exceptions import (
    InvalidRecordName,
    MalformedRecord,
    MissingCompanionRecord,
    StoreError,
    StoreIOError,
)

# Well-known codes from the CNI specification
CNI_INCOMPATIBLE_VERSION = 1
CNI_INVALID_ENVIRONMENT = 4
CNI_IO_FAILURE = 5
CNI_DECODE_FAILURE = 6
CNI_INVALID_NETWORK_CONFIG = 7

# Plugin specific codes (100 and above)
CNI_ENGINE_FAILURE = 100
CNI_PROVISION_FAILURE = 101
CNI_IPAM_FAILURE = 102
CNI_MISSING_COMPANION = 103


class CniError(Exception):
    """Failure reported back to the container runtime."""

    code = CNI_ENGINE_FAILURE

    def __init__(self, msg: str, details: str = "", code: int | None = None) -> None:
        super().__init__(msg)
        self.msg = msg
        self.details = details
        if code is not None:
            self.code = code

    def to_dict(self, cni_version: str) -> Dict[str, Any]:
        return {
            "cniVersion": cni_version,
            "code": self.code,
            "msg": self.msg,
            "details": self.details,
        }


class InvalidEnvironment(CniError):
    code = CNI_INVALID_ENVIRONMENT


class DecodeError(CniError):
    code = CNI_DECODE_FAILURE


class InvalidNetworkConfig(CniError):
    code = CNI_INVALID_NETWORK_CONFIG


class UnknownEngineError(InvalidNetworkConfig):
    """No engine is registered under the requested name."""


class EngineError(CniError):
    code = CNI_ENGINE_FAILURE


class ProvisionError(EngineError):
    code = CNI_PROVISION_FAILURE


class IpamError(CniError):
    code = CNI_IPAM_FAILURE


_STORE_CODES = (
    (MissingCompanionRecord, CNI_MISSING_COMPANION),
    (MalformedRecord, CNI_DECODE_FAILURE),
    (InvalidRecordName, CNI_INVALID_NETWORK_CONFIG),
    (StoreIOError, CNI_IO_FAILURE),
)


def cni_error_from(exc: StoreError) -> CniError:
    """Wrap a store failure so the kind of error and the path survive."""

    for exc_type, code in _STORE_CODES:
        if isinstance(exc, exc_type):
            break
    else:
        code = CNI_IO_FAILURE
    details = str(exc.path) if exc.path is not None else ""
    return CniError(f"{type(exc).__name__}: {exc.message}", details=details, code=code)
