"""Destination collaborators: entity, alias and asset stores."""

from .base import AliasStore, AssetStore, EntityStore
from .duckdb_store import DuckDBAliasStore, DuckDBEntityStore, UnknownFieldError
from .file_store import LocalAssetStore

__all__ = [
    "AliasStore",
    "AssetStore",
    "EntityStore",
    "DuckDBAliasStore",
    "DuckDBEntityStore",
    "UnknownFieldError",
    "LocalAssetStore",
]
