"""
Migration engine components.

The mapping ledger, asset transfer, term/file resolution, alias migration,
the article migrator itself and the reversal of a scope.
"""

from .aliases import AliasMigrator, canonical_path
from .asset_transfer import AssetFetchError, AssetTransfer, RateLimiter
from .entity_migrator import ArticleMigrator
from .file_resolver import FileResolver
from .mapping_store import DuplicateMappingError, MappingStore
from .reversal import MigrationReverser
from .term_resolver import TermResolver

__all__ = [
    "AliasMigrator",
    "canonical_path",
    "AssetFetchError",
    "AssetTransfer",
    "RateLimiter",
    "ArticleMigrator",
    "FileResolver",
    "DuplicateMappingError",
    "MappingStore",
    "MigrationReverser",
    "TermResolver",
]
