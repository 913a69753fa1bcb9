from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from schemaledger.domain.model import ModelDocument
from tests.helpers.models import make_task_document

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def task_document() -> ModelDocument:
    return make_task_document()


@pytest.fixture
def model_path(tmp_path: Path) -> Path:
    return tmp_path / "objectbox-model.json"
