"""
Resolution of source taxonomy terms to destination terms.

Terms are shared between articles, so the resolver collapses them: a source
term whose name already exists in the destination vocabulary is mapped onto
that term instead of creating a twin.  Names are compared after label
normalization and case-insensitively, the way tag labels are deduplicated
elsewhere in the tool.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

from ..extractors.base import SourceArticleReader
from ..models.content import DestinationTerm, EntityKind, SourceTerm
from ..stores.base import EntityStore
from ..utils.errors import report_error
from ..utils.labels import normalize_label
from .aliases import AliasMigrator
from .mapping_store import MappingStore

logger = logging.getLogger(__name__)


class TermResolver:
    def __init__(
        self,
        reader: SourceArticleReader,
        mapping: MappingStore,
        entity_store: EntityStore,
        aliases: AliasMigrator,
    ):
        self.reader = reader
        self.mapping = mapping
        self.entity_store = entity_store
        self.aliases = aliases

    def _find_existing(self, name: str, vocabulary: str) -> Optional[Dict]:
        key = normalize_label(name).lower()
        for term in self.entity_store.find("term", vocabulary=vocabulary):
            if normalize_label(term.get("name", "")).lower() == key:
                return term
        return None

    def _create(self, source_term: SourceTerm, name: str, vocabulary: str) -> str:
        term = DestinationTerm(
            name=name,
            vocabulary=vocabulary,
            description=source_term.description,
            weight=source_term.weight,
            language=source_term.language,
        )
        return self.entity_store.create("term", term.to_fields())

    def resolve(self, source_term_id: str) -> Optional[str]:
        """
        Destination id of a source term, creating the term if needed.

        Returns ``None`` when the term does not exist in the source, is not
        eligible for migration or has a blank name.
        """
        existing = self.mapping.lookup(EntityKind.TERM, source_term_id)
        if existing:
            return existing

        source_term = self.reader.read_term(source_term_id)
        if source_term is None:
            report_error("TERM_MISSING", {"kind": "term", "source_id": str(source_term_id)})
            return None

        reason = self.reader.term_ineligibility(source_term)
        if reason:
            logger.info("Skipping term %s: %s", source_term.id, reason)
            return None

        name = normalize_label(source_term.name)
        if not name:
            logger.warning("Skipping term %s: blank name", source_term.id)
            return None

        vocabulary = self.reader.destination_vocabulary(source_term)
        found = self._find_existing(name, vocabulary)
        if found:
            dest_id = found["id"]
            logger.info("Reusing term '%s' (%s) for source term %s", name, dest_id, source_term.id)
        else:
            dest_id = self._create(source_term, name, vocabulary)
            logger.info("Created term '%s' in %s: %s -> %s", name, vocabulary, source_term.id, dest_id)

        self.mapping.record(EntityKind.TERM, source_term.id, dest_id)

        try:
            self.aliases.migrate(EntityKind.TERM, source_term.id, dest_id)
        except Exception as e:
            report_error("ALIAS_FAILED", {"kind": "term", "source_id": source_term.id, "title": name}, e)
        return dest_id
