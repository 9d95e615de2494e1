# shapequery/config/config_manager.py
"""Environment backed configuration for the command line and scripts."""

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Mapping, Optional, Tuple

from ..llm.client import (
    DEFAULT_ANTHROPIC_VERSION,
    DEFAULT_BASE_URL,
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL,
    DEFAULT_TEMPERATURE,
    DEFAULT_TEMPERATURE_RANGE,
)

logger = logging.getLogger(__name__)

API_KEY_ENV_VARS = ("ANTHROPIC_KEY", "ANTHROPIC_API_KEY")


class ConfigError(Exception):
    """Raised when required configuration is missing or malformed."""
    pass


@dataclass
class ClientConfig:
    """Settings used to build a MessageAPI client."""
    api_key: str = field(repr=False)
    base_url: str = DEFAULT_BASE_URL
    anthropic_version: str = DEFAULT_ANTHROPIC_VERSION
    model: str = DEFAULT_MODEL
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: Optional[float] = DEFAULT_TEMPERATURE
    temperature_range: Tuple[float, float] = DEFAULT_TEMPERATURE_RANGE
    timeout: float = 60.0

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ClientConfig":
        """
        Read configuration from environment variables.

        The API key comes from ANTHROPIC_KEY or ANTHROPIC_API_KEY; every other
        setting falls back to the client defaults.

        Raises:
            ConfigError: If no API key is set or a numeric value does not parse
        """
        env = os.environ if environ is None else environ

        api_key = next((env[name] for name in API_KEY_ENV_VARS if env.get(name)), None)
        if not api_key:
            raise ConfigError(
                f"You must specify the {API_KEY_ENV_VARS[0]} environment variable"
            )

        try:
            max_tokens = int(env.get("SHAPEQUERY_MAX_TOKENS", DEFAULT_MAX_TOKENS))
            timeout = float(env.get("SHAPEQUERY_TIMEOUT", 60.0))
        except ValueError as e:
            raise ConfigError(f"Invalid numeric setting: {e}") from e

        config = cls(
            api_key=api_key,
            base_url=env.get("SHAPEQUERY_BASE_URL", DEFAULT_BASE_URL),
            anthropic_version=env.get("SHAPEQUERY_ANTHROPIC_VERSION", DEFAULT_ANTHROPIC_VERSION),
            model=env.get("SHAPEQUERY_MODEL", DEFAULT_MODEL),
            max_tokens=max_tokens,
            timeout=timeout,
        )
        logger.debug(f"Loaded config: {config}")
        return config


@lru_cache(maxsize=1)
def get_config() -> ClientConfig:
    """Get the process wide configuration, read once from the environment."""
    return ClientConfig.from_env()
