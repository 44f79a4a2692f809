"""Registry mapping engine names to engine instances."""

from __future__ import annotations

from typing import Dict, Iterable

from .engines import UserspaceEngine
from .errors import UnknownEngineError


class EngineRegistry:
    """Look up the engine named in a configuration."""

    def __init__(self) -> None:
        self._engines: Dict[str, UserspaceEngine] = {}

    def register(self, name: str, engine: UserspaceEngine) -> None:
        if name in self._engines:
            raise ValueError(f"engine '{name}' already registered")
        self._engines[name] = engine

    def unregister(self, name: str) -> None:
        self._engines.pop(name, None)

    def get(self, name: str) -> UserspaceEngine:
        try:
            return self._engines[name]
        except KeyError:
            known = ", ".join(sorted(self._engines)) or "none"
            raise UnknownEngineError(
                f"unknown userspace engine '{name}'", details=f"registered: {known}"
            ) from None

    def names(self) -> Iterable[str]:
        return list(self._engines)

    def __contains__(self, name: object) -> bool:
        return name in self._engines
