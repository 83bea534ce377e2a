"""
Persistent source → destination id ledger.

Every entity the engine creates (or reuses) is recorded here as
``(kind, source_id) → dest_id``.  The ledger is the only thing consulted to
decide whether something was already migrated, which is what makes runs
repeatable.  Each source connection gets its own table so that two legacy
systems migrated into the same destination never share entries.

Two runs against the same scope at the same time are not supported: the
"lookup, then record" sequence is not locked, and the second insert of a
racing pair fails with :class:`DuplicateMappingError`.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Union

import duckdb

from ..models.content import EntityKind, MappingEntry

logger = logging.getLogger(__name__)

_SCOPE_RE = re.compile(r"^[A-Za-z0-9_]+$")
TABLE_PREFIX = "article_migrate_map__"

KindLike = Union[EntityKind, str]


class DuplicateMappingError(RuntimeError):
    """A second mapping was recorded for the same (kind, source_id)."""
    pass


def _kind(kind: KindLike) -> str:
    return EntityKind(kind).value


class MappingStore:
    """
    Mapping ledger for one source scope.

    Args:
        con: DuckDB connection of the destination database
        scope: Source connection key; selects the ledger table
    """

    def __init__(self, con: duckdb.DuckDBPyConnection, scope: str):
        if not _SCOPE_RE.match(scope or ""):
            raise ValueError(f"Invalid mapping scope {scope!r}: use letters, digits and underscores")
        self.con = con
        self.scope = scope
        self.table = f"{TABLE_PREFIX}{scope}"
        self.con.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {self.table} (
                kind VARCHAR NOT NULL,
                source_id VARCHAR NOT NULL,
                dest_id VARCHAR NOT NULL,
                PRIMARY KEY (kind, source_id)
            )
            """
        )

    def lookup(self, kind: KindLike, source_id) -> Optional[str]:
        row = self.con.execute(
            f"SELECT dest_id FROM {self.table} WHERE kind = ? AND source_id = ?",
            [_kind(kind), str(source_id)],
        ).fetchone()
        return row[0] if row else None

    def record(self, kind: KindLike, source_id, dest_id) -> MappingEntry:
        entry = MappingEntry(kind=EntityKind(kind), source_id=source_id, dest_id=dest_id)
        try:
            self.con.execute(
                f"INSERT INTO {self.table} (kind, source_id, dest_id) VALUES (?, ?, ?)",
                [entry.kind.value, entry.source_id, entry.dest_id],
            )
        except duckdb.ConstraintException as e:
            raise DuplicateMappingError(
                f"{entry.kind.value} {entry.source_id} is already mapped in scope '{self.scope}'"
            ) from e
        logger.debug("Recorded %s %s -> %s", entry.kind.value, entry.source_id, entry.dest_id)
        return entry

    def entries(self, kind: KindLike) -> List[MappingEntry]:
        rows = self.con.execute(
            f"SELECT kind, source_id, dest_id FROM {self.table} WHERE kind = ? ORDER BY rowid",
            [_kind(kind)],
        ).fetchall()
        return [MappingEntry(kind=r[0], source_id=r[1], dest_id=r[2]) for r in rows]

    def all_dest_ids(self, kind: KindLike) -> List[str]:
        return [entry.dest_id for entry in self.entries(kind)]

    def count(self, kind: Optional[KindLike] = None) -> int:
        if kind is None:
            row = self.con.execute(f"SELECT COUNT(*) FROM {self.table}").fetchone()
        else:
            row = self.con.execute(
                f"SELECT COUNT(*) FROM {self.table} WHERE kind = ?", [_kind(kind)]
            ).fetchone()
        return int(row[0])

    def other_scopes(self) -> List[str]:
        """Ledger tables of every other scope in this database."""
        rows = self.con.execute("SELECT table_name FROM information_schema.tables").fetchall()
        return sorted(
            r[0] for r in rows
            if r[0].startswith(TABLE_PREFIX) and r[0] != self.table and _SCOPE_RE.match(r[0])
        )

    def used_elsewhere(self, kind: KindLike, dest_id) -> bool:
        """Whether another scope's ledger also points at ``dest_id``."""
        for table in self.other_scopes():
            row = self.con.execute(
                f"SELECT 1 FROM {table} WHERE kind = ? AND dest_id = ? LIMIT 1",
                [_kind(kind), str(dest_id)],
            ).fetchone()
            if row:
                return True
        return False

    def delete_all(self) -> int:
        removed = self.count()
        self.con.execute(f"DELETE FROM {self.table}")
        return removed
