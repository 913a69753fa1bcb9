"""JSON file adapters: the persisted model file and the binding file."""

from __future__ import annotations

from .binding import read_binding_file, write_binding_file
from .store import JsonModelStore
from .translator import dump_model_file, load_model_file

__all__ = [
    "JsonModelStore",
    "dump_model_file",
    "load_model_file",
    "read_binding_file",
    "write_binding_file",
]
