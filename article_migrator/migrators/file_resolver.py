"""Resolution of source file ids to destination file ids."""

from __future__ import annotations

import logging
from typing import Optional

from ..extractors.base import SourceArticleReader
from ..models.content import EntityKind
from ..utils.errors import report_error
from .asset_transfer import AssetTransfer
from .mapping_store import MappingStore

logger = logging.getLogger(__name__)


class FileResolver:
    """
    Maps source files (image field items) to destination file entities.

    A file is transferred at most once per scope: the mapping ledger is
    consulted first and the stable field destination path is written with
    the replace policy, so an interrupted run re-uses what it already stored.
    """

    def __init__(self, reader: SourceArticleReader, mapping: MappingStore, transfer: AssetTransfer):
        self.reader = reader
        self.mapping = mapping
        self.transfer = transfer

    def resolve(self, source_file_id: str) -> Optional[str]:
        existing = self.mapping.lookup(EntityKind.FILE, source_file_id)
        if existing:
            return existing

        source_file = self.reader.read_file(source_file_id)
        if source_file is None or not source_file.uri:
            # A row without a uri has nothing to transfer.
            report_error("FILE_MISSING", {"kind": "file", "source_id": str(source_file_id)})
            return None

        asset = self.transfer.transfer_field_file(source_file.uri, source_file.mime_type)
        if asset is None:
            report_error("FILE_FETCH", {"kind": "file", "source_id": source_file.id, "title": source_file.uri})
            return None

        self.mapping.record(EntityKind.FILE, source_file.id, asset.id)
        logger.info("Migrated file %s -> %s", source_file.id, asset.id)
        return asset.id
