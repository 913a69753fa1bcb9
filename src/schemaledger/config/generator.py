"""Generator run configuration: which model file to reconcile and how."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Final

from .env import env_flag, optional_env_var
from .errors import ConfigurationError

DEFAULT_MODEL_FILENAME: Final[str] = "objectbox-model.json"
DEFAULT_LOG_LEVEL: Final[str] = "INFO"


@dataclass(frozen=True, slots=True)
class GeneratorConfig:
    model_path: Path
    log_level: str = DEFAULT_LOG_LEVEL
    prune_entities: bool = False

    @property
    def log_level_number(self) -> int:
        level = logging.getLevelName(self.log_level.upper())
        if not isinstance(level, int):
            raise ConfigurationError(f"Unknown log level: {self.log_level}")
        return level

    def with_overrides(
        self,
        *,
        model_path: Path | None = None,
        log_level: str | None = None,
        prune_entities: bool | None = None,
    ) -> GeneratorConfig:
        return replace(
            self,
            model_path=model_path if model_path is not None else self.model_path,
            log_level=log_level if log_level is not None else self.log_level,
            prune_entities=prune_entities if prune_entities is not None else self.prune_entities,
        )


def get_generator_config() -> GeneratorConfig:
    model_file = optional_env_var("SCHEMALEDGER_MODEL_FILE")
    return GeneratorConfig(
        model_path=Path(model_file) if model_file else Path.cwd() / DEFAULT_MODEL_FILENAME,
        log_level=optional_env_var("SCHEMALEDGER_LOG_LEVEL") or DEFAULT_LOG_LEVEL,
        prune_entities=env_flag("SCHEMALEDGER_PRUNE_ENTITIES"),
    )
