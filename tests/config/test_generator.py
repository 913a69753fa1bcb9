from __future__ import annotations

import logging
from pathlib import Path

import pytest

from schemaledger.config import (
    DEFAULT_MODEL_FILENAME,
    ConfigurationError,
    GeneratorConfig,
    env_flag,
    get_generator_config,
    optional_env_var,
)

ENV_VARS = ("SCHEMALEDGER_MODEL_FILE", "SCHEMALEDGER_LOG_LEVEL", "SCHEMALEDGER_PRUNE_ENTITIES")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults_point_at_working_directory(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.chdir(tmp_path)

    config = get_generator_config()

    assert config.model_path == tmp_path / DEFAULT_MODEL_FILENAME
    assert config.log_level == "INFO"
    assert config.prune_entities is False


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SCHEMALEDGER_MODEL_FILE", " /tmp/model.json ")
    monkeypatch.setenv("SCHEMALEDGER_LOG_LEVEL", "debug")
    monkeypatch.setenv("SCHEMALEDGER_PRUNE_ENTITIES", "yes")

    config = get_generator_config()

    assert config.model_path == Path("/tmp/model.json")
    assert config.log_level_number == logging.DEBUG
    assert config.prune_entities is True


def test_invalid_flag_is_a_configuration_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SCHEMALEDGER_PRUNE_ENTITIES", "maybe")

    with pytest.raises(ConfigurationError) as exc:
        get_generator_config()

    assert "SCHEMALEDGER_PRUNE_ENTITIES" in str(exc.value)


def test_unknown_log_level() -> None:
    config = GeneratorConfig(model_path=Path("model.json"), log_level="LOUD")

    with pytest.raises(ConfigurationError):
        _ = config.log_level_number


def test_overrides_keep_unset_values() -> None:
    config = GeneratorConfig(model_path=Path("a.json"), prune_entities=True)

    updated = config.with_overrides(model_path=Path("b.json"))

    assert updated.model_path == Path("b.json")
    assert updated.prune_entities is True
    assert updated.log_level == config.log_level


def test_blank_values_count_as_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "   ")

    assert optional_env_var("EXAMPLE_VAR") is None
    assert env_flag("EXAMPLE_VAR", default=True) is True
