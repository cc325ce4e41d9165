"""Core abstractions for questkit."""

from .config import EngineConfig, default_config

__all__ = ["EngineConfig", "default_config"]
