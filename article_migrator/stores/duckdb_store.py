"""
DuckDB implementations of the destination entity and alias stores.

Entities are kept in a single ``dest_entities`` table with their fields
serialized as JSON; aliases live in ``dest_aliases``.  Both tables sit in the
same database file as the mapping ledger so one file holds the whole
destination state of a migration.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Optional

import duckdb

from ..models.content import AliasEntry
from .base import AliasStore, EntityStore

logger = logging.getLogger(__name__)

# Fields every deployment supports, per entity kind.
BASE_FIELDS: Dict[str, set] = {
    "node": {
        "title",
        "body_html",
        "body_format",
        "status",
        "author_id",
        "created_at",
        "updated_at",
        "tag_refs",
        "image_refs",
    },
    "term": {"name", "vocabulary", "description", "weight", "language"},
    "file": {"uri", "filename", "mime_type", "permanent"},
    "user": {"name", "mail", "status"},
}


class UnknownFieldError(ValueError):
    """Raised when an entity is written with a field its kind does not have."""
    pass


def _as_int(entity_id: Any) -> Optional[int]:
    try:
        return int(entity_id)
    except (TypeError, ValueError):
        return None


class DuckDBEntityStore(EntityStore):
    """
    Entity store backed by a DuckDB connection.

    ``capabilities`` lists optional fields per kind (for example the domain
    fields of multi-site deployments); writing a field that is neither a base
    field nor a declared capability raises :class:`UnknownFieldError`.
    """

    def __init__(
        self,
        con: duckdb.DuckDBPyConnection,
        capabilities: Optional[Dict[str, Iterable[str]]] = None,
    ):
        self.con = con
        self.capabilities = {kind: set(fields) for kind, fields in (capabilities or {}).items()}
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        self.con.execute("CREATE SEQUENCE IF NOT EXISTS dest_entity_seq START 1")
        self.con.execute(
            """
            CREATE TABLE IF NOT EXISTS dest_entities (
                id BIGINT PRIMARY KEY DEFAULT nextval('dest_entity_seq'),
                kind VARCHAR NOT NULL,
                fields VARCHAR NOT NULL
            )
            """
        )

    def _check_fields(self, kind: str, fields: Dict[str, Any]) -> None:
        if kind not in BASE_FIELDS:
            raise UnknownFieldError(f"Unknown entity kind: {kind}")
        unknown = [name for name in fields if not self.has_field(kind, name)]
        if unknown:
            raise UnknownFieldError(f"{kind} has no field(s): {', '.join(sorted(unknown))}")

    def has_field(self, kind: str, field_name: str) -> bool:
        return field_name in BASE_FIELDS.get(kind, set()) or field_name in self.capabilities.get(kind, set())

    def create(self, kind: str, fields: Dict[str, Any]) -> str:
        self._check_fields(kind, fields)
        row = self.con.execute(
            "INSERT INTO dest_entities (kind, fields) VALUES (?, ?) RETURNING id",
            [kind, json.dumps(fields, default=str)],
        ).fetchone()
        return str(row[0])

    def load(self, kind: str, entity_id: str) -> Optional[Dict[str, Any]]:
        key = _as_int(entity_id)
        if key is None:
            return None
        row = self.con.execute(
            "SELECT id, fields FROM dest_entities WHERE kind = ? AND id = ?", [kind, key]
        ).fetchone()
        if row is None:
            return None
        return {**json.loads(row[1]), "id": str(row[0])}

    def update(self, kind: str, entity_id: str, fields: Dict[str, Any]) -> None:
        self._check_fields(kind, fields)
        current = self.load(kind, entity_id)
        if current is None:
            raise KeyError(f"{kind} {entity_id} does not exist")
        current.pop("id")
        current.update(fields)
        self.con.execute(
            "UPDATE dest_entities SET fields = ? WHERE kind = ? AND id = ?",
            [json.dumps(current, default=str), kind, int(entity_id)],
        )

    def delete(self, kind: str, entity_id: str) -> bool:
        if self.load(kind, entity_id) is None:
            return False
        self.con.execute("DELETE FROM dest_entities WHERE kind = ? AND id = ?", [kind, int(entity_id)])
        return True

    def find(self, kind: str, **properties: Any) -> List[Dict[str, Any]]:
        rows = self.con.execute(
            "SELECT id, fields FROM dest_entities WHERE kind = ? ORDER BY id", [kind]
        ).fetchall()
        found = []
        for entity_id, raw in rows:
            fields = json.loads(raw)
            if all(fields.get(name) == value for name, value in properties.items()):
                found.append({**fields, "id": str(entity_id)})
        return found

    def all_ids(self, kind: str) -> List[str]:
        rows = self.con.execute(
            "SELECT id FROM dest_entities WHERE kind = ? ORDER BY id", [kind]
        ).fetchall()
        return [str(r[0]) for r in rows]


class DuckDBAliasStore(AliasStore):
    """Alias store backed by a DuckDB ``dest_aliases`` table."""

    def __init__(self, con: duckdb.DuckDBPyConnection):
        self.con = con
        self.con.execute("CREATE SEQUENCE IF NOT EXISTS dest_alias_seq START 1")
        self.con.execute(
            """
            CREATE TABLE IF NOT EXISTS dest_aliases (
                id BIGINT PRIMARY KEY DEFAULT nextval('dest_alias_seq'),
                path VARCHAR NOT NULL,
                alias VARCHAR NOT NULL,
                language VARCHAR NOT NULL
            )
            """
        )

    @staticmethod
    def _to_entry(row) -> AliasEntry:
        return AliasEntry(id=row[0], path=row[1], alias=row[2], language=row[3])

    def find_by_path(self, path: str) -> List[AliasEntry]:
        rows = self.con.execute(
            "SELECT id, path, alias, language FROM dest_aliases WHERE path = ? ORDER BY id", [path]
        ).fetchall()
        return [self._to_entry(r) for r in rows]

    def find_by_alias(self, alias: str) -> Optional[AliasEntry]:
        row = self.con.execute(
            "SELECT id, path, alias, language FROM dest_aliases WHERE alias = ? ORDER BY id LIMIT 1",
            [alias],
        ).fetchone()
        return self._to_entry(row) if row else None

    def create(self, path: str, alias: str, language: str) -> AliasEntry:
        row = self.con.execute(
            "INSERT INTO dest_aliases (path, alias, language) VALUES (?, ?, ?) RETURNING id",
            [path, alias, language],
        ).fetchone()
        return AliasEntry(id=row[0], path=path, alias=alias, language=language)

    def delete(self, alias: AliasEntry) -> None:
        self.con.execute("DELETE FROM dest_aliases WHERE id = ?", [int(alias.id)])

    def all(self) -> List[AliasEntry]:
        rows = self.con.execute("SELECT id, path, alias, language FROM dest_aliases ORDER BY id").fetchall()
        return [self._to_entry(r) for r in rows]
