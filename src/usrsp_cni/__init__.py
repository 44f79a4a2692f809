"""Dispatcher side of the userspace CNI plugin.

Everything here is short-lived and stateless: a :class:`Dispatcher` is built
for one invocation, picks the engine named in the network configuration and
lets it provision the interface, saving or staging whatever a later
invocation will need through :mod:`usrsp_store`.
"""

from .dispatcher import Dispatcher  # noqa: F401
from .errors import CniError  # noqa: F401
from .factory import EngineSettings, build_dispatcher  # noqa: F401
from .registry import EngineRegistry  # noqa: F401
from .requests import CniRequest  # noqa: F401

__all__ = [
    "CniError",
    "CniRequest",
    "Dispatcher",
    "EngineRegistry",
    "EngineSettings",
    "build_dispatcher",
]
