"""Configuration management for relnote."""

from __future__ import annotations

from relnote.config.loader import load_config
from relnote.config.models import EngineConfig, ReleaseSettings

__all__ = [
    "EngineConfig",
    "ReleaseSettings",
    "load_config",
]
