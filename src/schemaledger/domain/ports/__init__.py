"""Ports implemented by adapters."""

from __future__ import annotations

from .model_store import ModelStore, ModelStoreFactory

__all__ = ["ModelStore", "ModelStoreFactory"]
