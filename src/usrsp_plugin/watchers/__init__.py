"""Watcher implementations used by the container-side agent."""

from .pending import PendingConfigWatcher  # noqa: F401

__all__ = ["PendingConfigWatcher"]
