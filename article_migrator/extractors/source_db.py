"""
Read-only access to a legacy source database.

Legacy databases are exported into DuckDB files (one table per legacy table)
and opened read-only through :class:`SourceConnection`.  Readers express their
predicates, ordering and LEFT JOIN enrichment directly in SQL and receive rows
as dictionaries.
"""

from __future__ import annotations

import glob
import logging
import os
from typing import Any, Dict, List, Optional, Sequence

import duckdb
import pandas as pd

logger = logging.getLogger(__name__)


class SourceConnection:
    """
    Query wrapper around a DuckDB connection to one legacy source.

    Args:
        con: Open DuckDB connection
        key: Connection key the source is known by (also the mapping scope)
    """

    def __init__(self, con: duckdb.DuckDBPyConnection, key: str):
        self.con = con
        self.key = key

    @classmethod
    def open(cls, database: str, key: str) -> "SourceConnection":
        """Open ``database`` read-only under connection ``key``."""
        read_only = database != ":memory:"
        return cls(duckdb.connect(database=database, read_only=read_only), key)

    def query(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        cursor = self.con.execute(sql, list(params))
        columns = [col[0] for col in cursor.description]
        return [dict(zip(columns, row)) for row in cursor.fetchall()]

    def query_one(self, sql: str, params: Sequence[Any] = ()) -> Optional[Dict[str, Any]]:
        rows = self.query(sql, params)
        return rows[0] if rows else None

    def table_exists(self, table: str) -> bool:
        row = self.con.execute(
            "SELECT COUNT(*) FROM information_schema.tables WHERE table_name = ?", [table]
        ).fetchone()
        return bool(row and row[0])

    def close(self) -> None:
        self.con.close()


def import_csv_dump(csv_dir: str, database: str, *, replace: bool = False) -> Dict[str, int]:
    """
    Load a directory of per-table CSV exports into a DuckDB source file.

    Every ``<table>.csv`` becomes table ``<table>``.  Column names are cleaned
    to be SQL compatible.  Existing tables are left alone unless ``replace``
    is set.

    Returns:
        Row counts per imported table
    """
    csv_files = sorted(glob.glob(os.path.join(csv_dir, "*.csv")))
    if not csv_files:
        raise FileNotFoundError(f"No CSV table exports found in '{csv_dir}'")

    if os.path.dirname(database):
        os.makedirs(os.path.dirname(database), exist_ok=True)
    con = duckdb.connect(database=database, read_only=False)
    imported: Dict[str, int] = {}
    try:
        existing = {row[0] for row in con.execute("SHOW TABLES").fetchall()}
        for csv_path in csv_files:
            table = os.path.splitext(os.path.basename(csv_path))[0]
            if table in existing and not replace:
                logger.info("Table '%s' already exists, leaving it untouched", table)
                continue

            df = pd.read_csv(csv_path)
            df.columns = [col.strip().replace(" ", "_").replace("-", "_").lower() for col in df.columns]

            con.register("df_temp", df)
            con.execute(f'CREATE OR REPLACE TABLE "{table}" AS SELECT * FROM df_temp')
            con.unregister("df_temp")
            imported[table] = len(df)
            logger.info("Imported %d rows into '%s'", len(df), table)
    finally:
        con.close()
    return imported
