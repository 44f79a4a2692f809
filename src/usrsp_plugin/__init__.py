"""Runnable entry points: the CNI plugin and the container-side agent."""

from .config import PluginConfig, load_config  # noqa: F401

__all__ = [
    "PluginConfig",
    "load_config",
]
