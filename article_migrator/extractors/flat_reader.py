"""
Reader for the legacy flat-table layout.

In this layout every field is stored in a shared ``field_data_<field>`` table
keyed by ``(entity_type, entity_id, delta)``, terms live in
``taxonomy_term_data`` with a numeric vocabulary id, and aliases in
``url_alias`` with slash-less source paths (``node/12``).  Bodies written in
this generation carry presentational markup, so they are normalized.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, Optional

from ..models.content import SourceAlias, SourceArticle, SourceFile, SourceTerm
from .base import SourceArticleReader

logger = logging.getLogger(__name__)


class FlatTableReader(SourceArticleReader):
    schema_version = "flat"
    supports_markup_normalization = True
    default_exclusion_table = "parser_map"

    def iter_candidates(self, limit: Optional[int] = None) -> Iterator[Dict[str, Any]]:
        sql = (
            "SELECT nid, title, created, changed, uid FROM node "
            "WHERE type = 'article' AND status = 1 ORDER BY nid ASC"
        ) + self._limit_clause(limit)
        yield from self.source.query(sql)

    def _body(self, nid: str) -> Optional[str]:
        # Some exports only kept the revision table populated.
        for table in ("field_data_body", "field_revision_body"):
            if not self.source.table_exists(table):
                continue
            row = self.source.query_one(
                f"SELECT body_value FROM {table} "
                "WHERE entity_type = 'node' AND CAST(entity_id AS VARCHAR) = ? ORDER BY delta LIMIT 1",
                [nid],
            )
            if row:
                return row["body_value"]
        return None

    def _field_ids(self, table: str, column: str, nid: str) -> list:
        if not self.source.table_exists(table):
            return []
        rows = self.source.query(
            f"SELECT {column} AS ref FROM {table} "
            "WHERE entity_type = 'node' AND CAST(entity_id AS VARCHAR) = ? ORDER BY delta",
            [nid],
        )
        return [r["ref"] for r in rows]

    def read_article(self, row: Dict[str, Any]) -> SourceArticle:
        nid = str(row["nid"])
        return SourceArticle(
            id=nid,
            title=row.get("title") or "",
            created_at=row.get("created") or 0,
            updated_at=row.get("changed") or 0,
            author_id=row.get("uid"),
            body_html=self._body(nid) or "",
            # Formats of this generation do not exist at the destination.
            body_format=self.settings.body_format,
            tag_ids=self._field_ids("field_data_field_tags", "field_tags_tid", nid),
            image_ids=self._field_ids("field_data_field_image", "field_image_fid", nid),
        )

    def read_term(self, term_id: str) -> Optional[SourceTerm]:
        row = self.source.query_one(
            "SELECT tid, name, vid, description, weight FROM taxonomy_term_data WHERE CAST(tid AS VARCHAR) = ?",
            [str(term_id)],
        )
        if not row:
            return None
        return SourceTerm(
            id=row["tid"],
            name=row["name"] or "",
            vocabulary=row["vid"],
            description=row.get("description"),
            weight=row.get("weight"),
        )

    def term_ineligibility(self, term: SourceTerm) -> Optional[str]:
        if str(term.vocabulary) != str(self.settings.source_vocabulary_id):
            return f"vid {term.vocabulary} != {self.settings.source_vocabulary_id}"
        return super().term_ineligibility(term)

    def read_file(self, file_id: str) -> Optional[SourceFile]:
        row = self.source.query_one(
            "SELECT fid, filename, uri, filemime FROM file_managed WHERE CAST(fid AS VARCHAR) = ?",
            [str(file_id)],
        )
        if not row:
            return None
        return SourceFile(id=row["fid"], filename=row["filename"] or "", uri=row["uri"], mime_type=row["filemime"])

    def read_alias(self, path: str) -> Optional[SourceAlias]:
        if not self.source.table_exists("url_alias"):
            return None
        legacy_path = path.lstrip("/")
        row = self.source.query_one(
            "SELECT source, alias, language FROM url_alias WHERE source = ? LIMIT 1",
            [legacy_path],
        )
        if not row:
            return None
        language = row.get("language")
        return SourceAlias(path=path, alias=row["alias"], language=language or None)
