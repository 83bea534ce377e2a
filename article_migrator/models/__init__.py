"""Data models shared by the readers, resolvers and stores."""

from .content import (
    AliasEntry,
    CollisionPolicy,
    DestinationArticle,
    DestinationAsset,
    DestinationTerm,
    EntityKind,
    MappingEntry,
    SourceAlias,
    SourceArticle,
    SourceFile,
    SourceTerm,
)
from .run import ArticleOutcome, ClearReport, MigrationReport, RunCache
from .settings import MigrationSettings, ReferencePolicy, SchemaVersion

__all__ = [
    "AliasEntry",
    "CollisionPolicy",
    "DestinationArticle",
    "DestinationAsset",
    "DestinationTerm",
    "EntityKind",
    "MappingEntry",
    "SourceAlias",
    "SourceArticle",
    "SourceFile",
    "SourceTerm",
    "ArticleOutcome",
    "ClearReport",
    "MigrationReport",
    "RunCache",
    "MigrationSettings",
    "ReferencePolicy",
    "SchemaVersion",
]
