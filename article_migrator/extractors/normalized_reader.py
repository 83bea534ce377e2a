"""
Reader for the normalized (per-field table) layout.

Base properties live in ``node_field_data``; each field has its own
``node__<field>`` table.  Terms come from ``taxonomy_term_field_data`` and
their vocabulary is taken from the ``taxonomy_term__parent`` bundle, so terms
keep the vocabulary they had in the source.  Aliases live in ``path_alias``
with slash-prefixed paths.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, Optional

from ..models.content import SourceAlias, SourceArticle, SourceFile, SourceTerm
from .base import SourceArticleReader

logger = logging.getLogger(__name__)


class NormalizedReader(SourceArticleReader):
    schema_version = "normalized"

    def iter_candidates(self, limit: Optional[int] = None) -> Iterator[Dict[str, Any]]:
        sql = (
            "SELECT nid, title, created, changed, uid FROM node_field_data "
            "WHERE type = 'article' AND status = 1 ORDER BY nid ASC"
        ) + self._limit_clause(limit)
        yield from self.source.query(sql)

    def _refs(self, table: str, column: str, nid: str) -> list:
        if not self.source.table_exists(table):
            return []
        rows = self.source.query(
            f"SELECT {column} AS ref FROM {table} WHERE CAST(entity_id AS VARCHAR) = ? ORDER BY delta",
            [nid],
        )
        return [r["ref"] for r in rows]

    def read_article(self, row: Dict[str, Any]) -> SourceArticle:
        nid = str(row["nid"])

        body = None
        if self.source.table_exists("node__body"):
            body = self.source.query_one(
                "SELECT body_value, body_format FROM node__body WHERE CAST(entity_id AS VARCHAR) = ? LIMIT 1",
                [nid],
            )

        video_url = None
        if self.source.table_exists("node__field_video"):
            video = self.source.query_one(
                "SELECT field_video_value FROM node__field_video WHERE CAST(entity_id AS VARCHAR) = ? LIMIT 1",
                [nid],
            )
            if video and video["field_video_value"]:
                video_url = str(video["field_video_value"]).strip() or None

        return SourceArticle(
            id=nid,
            title=row.get("title") or "",
            created_at=row.get("created") or 0,
            updated_at=row.get("changed") or 0,
            author_id=row.get("uid"),
            body_html=body["body_value"] if body else "",
            body_format=(body or {}).get("body_format") or self.settings.body_format,
            tag_ids=self._refs("node__field_tags", "field_tags_target_id", nid),
            image_ids=self._refs("node__field_image", "field_image_target_id", nid),
            video_url=video_url,
        )

    def read_term(self, term_id: str) -> Optional[SourceTerm]:
        if self.source.table_exists("taxonomy_term__parent"):
            vocabulary, join = "p.bundle", "LEFT JOIN taxonomy_term__parent p ON p.entity_id = t.tid"
        else:
            vocabulary, join = "NULL", ""
        # A term may appear once per translation; the lowest langcode row wins.
        row = self.source.query_one(
            f"""
            SELECT t.tid, t.name, t.description__value AS description, t.weight, t.langcode,
                   {vocabulary} AS vocabulary
            FROM taxonomy_term_field_data t
            {join}
            WHERE CAST(t.tid AS VARCHAR) = ?
            ORDER BY t.langcode
            LIMIT 1
            """,
            [str(term_id)],
        )
        if not row:
            return None
        return SourceTerm(
            id=row["tid"],
            name=row["name"] or "",
            vocabulary=row["vocabulary"],
            description=row["description"],
            weight=row["weight"],
            language=row["langcode"],
        )

    def term_ineligibility(self, term: SourceTerm) -> Optional[str]:
        allowed = self.settings.source_vocabularies
        if allowed and term.vocabulary not in allowed:
            return f"vocabulary '{term.vocabulary}' is not migrated"
        return super().term_ineligibility(term)

    def destination_vocabulary(self, term: SourceTerm) -> str:
        return term.vocabulary or self.settings.target_vocabulary

    def read_file(self, file_id: str) -> Optional[SourceFile]:
        row = self.source.query_one(
            "SELECT fid, filename, uri, filemime FROM file_managed WHERE CAST(fid AS VARCHAR) = ?",
            [str(file_id)],
        )
        if not row:
            return None
        return SourceFile(id=row["fid"], filename=row["filename"] or "", uri=row["uri"], mime_type=row["filemime"])

    def read_alias(self, path: str) -> Optional[SourceAlias]:
        if not self.source.table_exists("path_alias"):
            return None
        row = self.source.query_one(
            "SELECT path, alias, langcode FROM path_alias WHERE path = ? ORDER BY id DESC LIMIT 1",
            [path],
        )
        if not row:
            return None
        return SourceAlias(path=path, alias=row["alias"], language=row["langcode"] or None)
