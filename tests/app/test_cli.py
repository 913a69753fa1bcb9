from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from schemaledger.adapters.json_file import dump_model_file
from schemaledger.ui import cli
from tests.helpers.models import make_task_document

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture(autouse=True)
def no_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "SCHEMALEDGER_MODEL_FILE",
        "SCHEMALEDGER_LOG_LEVEL",
        "SCHEMALEDGER_PRUNE_ENTITIES",
    ):
        monkeypatch.delenv(name, raising=False)


def _write_binding(path: Path, *properties: dict[str, object]) -> Path:
    path.write_text(
        json.dumps(
            {
                "entities": [
                    {
                        "name": "Task",
                        "properties": [
                            {"name": "Id", "type": 6, "flags": 1},
                            *properties,
                        ],
                    }
                ]
            }
        )
    )
    return path


def test_sync_writes_model_and_annotated_binding(tmp_path: Path, model_path: Path) -> None:
    binding_path = _write_binding(tmp_path / "binding.json", {"name": "Name", "type": 9})
    output = tmp_path / "annotated.json"

    cli.main(
        [
            "sync",
            "--binding",
            str(binding_path),
            "--model",
            str(model_path),
            "--output",
            str(output),
        ]
    )

    model = json.loads(model_path.read_bytes())
    annotated = json.loads(output.read_text())
    assert model["entities"][0]["id"] == annotated["entities"][0]["id"]
    assert model["entities"][0]["lastPropertyId"] == annotated["entities"][0]["lastPropertyId"]


def test_sync_model_path_from_environment(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, model_path: Path
) -> None:
    binding_path = _write_binding(tmp_path / "binding.json")
    monkeypatch.setenv("SCHEMALEDGER_MODEL_FILE", str(model_path))

    cli.main(["sync", "--binding", str(binding_path)])

    assert model_path.exists()


def test_uid_request_prints_remediation(
    tmp_path: Path, model_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    model_path.write_bytes(dump_model_file(make_task_document()))
    before = model_path.read_bytes()
    binding_path = _write_binding(
        tmp_path / "binding.json", {"name": "Name", "type": 9, "uidRequest": True}
    )

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["sync", "--binding", str(binding_path), "--model", str(model_path)])

    assert excinfo.value.code == 1
    err = capsys.readouterr().err
    assert "[rename] apply the current UID 101" in err
    assert "[change/reset] apply a new UID" in err
    assert model_path.read_bytes() == before


def test_show_prints_summary(model_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    model_path.write_bytes(dump_model_file(make_task_document()))

    cli.main(["show", "--model", str(model_path)])

    summary = json.loads(capsys.readouterr().out)
    assert summary["entities"]["Task"]["id"] == "1:10"


def test_show_missing_model_is_a_configuration_error(model_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["show", "--model", str(model_path)])

    assert excinfo.value.code == 2
    assert not model_path.exists()


def test_invalid_log_level_exits_with_usage_code(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["show", "--model", str(tmp_path / "m.json"), "--log-level", "LOUD"])

    assert excinfo.value.code == 2
