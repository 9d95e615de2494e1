# shapequery/config/__init__.py
"""Configuration management for shapequery."""

from .config_manager import ClientConfig, ConfigError, get_config

__all__ = ["ClientConfig", "ConfigError", "get_config"]
