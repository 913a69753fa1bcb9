"""Application configuration helpers."""

from __future__ import annotations

from .env import env_flag, optional_env_var
from .errors import ConfigurationError
from .generator import (
    DEFAULT_LOG_LEVEL,
    DEFAULT_MODEL_FILENAME,
    GeneratorConfig,
    get_generator_config,
)
from .logging import configure_logging

__all__ = [
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_MODEL_FILENAME",
    "ConfigurationError",
    "GeneratorConfig",
    "configure_logging",
    "env_flag",
    "get_generator_config",
    "optional_env_var",
]
