"""Carrying URL aliases of migrated entities over to the destination."""

from __future__ import annotations

import logging
from typing import Optional

from ..extractors.base import SourceArticleReader
from ..models.content import AliasEntry, EntityKind
from ..models.settings import MigrationSettings
from ..stores.base import AliasStore

logger = logging.getLogger(__name__)


def canonical_path(kind, entity_id) -> str:
    """``/node/12`` or ``/taxonomy/term/7``."""
    if EntityKind(kind) == EntityKind.NODE:
        return f"/node/{entity_id}"
    if EntityKind(kind) == EntityKind.TERM:
        return f"/taxonomy/term/{entity_id}"
    raise ValueError(f"{kind} entities have no canonical path")


class AliasMigrator:
    """
    Copies the alias of a source entity onto its destination entity.

    Aliases are unique across the destination: when the alias text is
    already in use (by this entity from an earlier run, or by anything else)
    nothing is written.
    """

    def __init__(self, reader: SourceArticleReader, alias_store: AliasStore, settings: MigrationSettings):
        self.reader = reader
        self.alias_store = alias_store
        self.settings = settings

    def migrate(self, kind, source_id, dest_id) -> Optional[AliasEntry]:
        source_alias = self.reader.read_alias(canonical_path(kind, source_id))
        if source_alias is None or not source_alias.alias.strip():
            return None

        alias = "/" + source_alias.alias.strip().lstrip("/")
        if self.alias_store.find_by_alias(alias) is not None:
            logger.info("Alias %s already exists, skipping", alias)
            return None

        entry = self.alias_store.create(
            canonical_path(kind, dest_id),
            alias,
            source_alias.language or self.settings.default_language,
        )
        logger.info("Migrated alias %s for %s %s", alias, EntityKind(kind).value, dest_id)
        return entry
