"""Removal of everything a source scope created in the destination."""

from __future__ import annotations

import logging

from ..models.content import EntityKind
from ..models.run import ClearReport
from ..stores.base import AliasStore, AssetStore, EntityStore
from .aliases import canonical_path
from .mapping_store import MappingStore

logger = logging.getLogger(__name__)


class MigrationReverser:
    """
    Deletes the destination entities recorded in one mapping scope.

    Terms that were reused rather than created are mapped like created ones
    and are deleted too, unless the ledger of another scope in the same
    destination still points at them; shared terms and files are left in
    place and counted as retained.  Entities that are already gone are
    counted as nothing and do not stop the reversal.

    Args:
        mapping: Mapping ledger of the scope
        entity_store: Destination entity store
        alias_store: Destination alias store
        asset_store: Destination asset store
        body_image_directory: Callable returning the body image directory
            of a source article id
    """

    def __init__(
        self,
        mapping: MappingStore,
        entity_store: EntityStore,
        alias_store: AliasStore,
        asset_store: AssetStore,
        body_image_directory,
    ):
        self.mapping = mapping
        self.entity_store = entity_store
        self.alias_store = alias_store
        self.asset_store = asset_store
        self.body_image_directory = body_image_directory

    def _delete_aliases(self, path: str) -> int:
        entries = self.alias_store.find_by_path(path)
        for entry in entries:
            self.alias_store.delete(entry)
        return len(entries)

    def _shared(self, kind: EntityKind, dest_id: str, report: ClearReport) -> bool:
        if not self.mapping.used_elsewhere(kind, dest_id):
            return False
        logger.info("Keeping %s %s, another scope still maps to it", kind.value, dest_id)
        report.retained += 1
        return True

    def _delete_asset(self, asset_id: str, report: ClearReport) -> None:
        if not self._shared(EntityKind.FILE, asset_id, report) and self.asset_store.delete(asset_id):
            report.files += 1

    def clear(self) -> ClearReport:
        report = ClearReport(scope=self.mapping.scope)
        logger.info("Clearing migrated content of scope '%s'...", self.mapping.scope)

        seen_files = set()
        for entry in self.mapping.entries(EntityKind.NODE):
            article = self.entity_store.load("node", entry.dest_id)
            if article is None:
                logger.info("Article %s is already gone", entry.dest_id)
            else:
                for asset_id in article.get("image_refs") or []:
                    if asset_id not in seen_files:
                        self._delete_asset(asset_id, report)
                        seen_files.add(asset_id)
            report.files += self.asset_store.delete_directory(
                self.body_image_directory(self.mapping.scope, entry.source_id)
            )
            report.aliases += self._delete_aliases(canonical_path(EntityKind.NODE, entry.dest_id))
            if article is not None and self.entity_store.delete("node", entry.dest_id):
                report.nodes += 1
                logger.info("Deleted article %s", entry.dest_id)

        seen_terms = set()
        for entry in self.mapping.entries(EntityKind.TERM):
            # Collapsed source terms share one destination term.
            if entry.dest_id in seen_terms:
                continue
            seen_terms.add(entry.dest_id)
            if self._shared(EntityKind.TERM, entry.dest_id, report):
                continue
            report.aliases += self._delete_aliases(canonical_path(EntityKind.TERM, entry.dest_id))
            if self.entity_store.delete("term", entry.dest_id):
                report.terms += 1

        for entry in self.mapping.entries(EntityKind.FILE):
            if entry.dest_id not in seen_files:
                self._delete_asset(entry.dest_id, report)

        report.mappings = self.mapping.delete_all()
        logger.info(report.summary())
        return report
