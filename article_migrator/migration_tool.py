"""
High-level orchestration of an article migration.

This module defines :class:`ArticleMigrationTool`, which reads the JSON
configuration, runs the pre-flight checks, opens the source and destination
databases, wires the engine components together and runs either a migration
or a reversal of one source scope.

Configuration is supplied via a JSON file path or directly as a dictionary.
The ``source`` section names the legacy databases (``connections``), the one
to migrate (``connection_key``), its layout (``schema_version``) and where
its files live (``files_base_path``).  The ``destination`` section holds the
destination database, the public files directory and its URL.  Run options
go under ``migration`` and report locations under ``reports``.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Optional

import duckdb
import requests

from article_migrator.extractors import SourceConnection, build_reader, import_csv_dump
from article_migrator.migrators import (
    AliasMigrator,
    ArticleMigrator,
    AssetTransfer,
    FileResolver,
    MappingStore,
    MigrationReverser,
    TermResolver,
)
from article_migrator.migrators.asset_transfer import body_image_directory
from article_migrator.models import ClearReport, MigrationReport, MigrationSettings, RunCache
from article_migrator.stores import DuckDBAliasStore, DuckDBEntityStore, LocalAssetStore
from article_migrator.utils.errors import configure_reports
from article_migrator.utils.pre_flight_checks import (
    run_clear_pre_flight_checks,
    run_migrate_pre_flight_checks,
)
from article_migrator.utils.redirects import generate_redirects_csv

logger = logging.getLogger(__name__)


class ArticleMigrationTool:
    """
    Encapsulates the configuration of a migration and the two operations
    run against it: :meth:`migrate` and :meth:`clear`.  Per-item results are
    recorded with the :mod:`article_migrator.utils.errors` module.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        *,
        config_file: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        if config_file and os.path.exists(config_file):
            with open(config_file, "r", encoding="utf-8") as f:
                config = json.load(f)
        elif config is None:
            config = {}

        # Ensure essential keys exist to prevent KeyErrors
        config.setdefault("source", {})
        config["source"].setdefault("connections", {})
        config["source"].setdefault("connection_key", os.getenv("ARTICLE_MIGRATE_SOURCE_KEY", ""))
        config["source"].setdefault("schema_version", "flat")
        config["source"].setdefault("files_base_path", os.getenv("ARTICLE_MIGRATE_FILES_BASE", ""))

        config.setdefault("destination", {})
        config["destination"].setdefault("database", "data/destination.duckdb")
        config["destination"].setdefault("public_files_path", "data/public")
        config["destination"].setdefault("public_base_url", "/sites/default/files")
        config["destination"].setdefault("site_base_url", "")
        config["destination"].setdefault("capabilities", {})

        config.setdefault("migration", {})
        config["migration"].setdefault("limit", None)
        config["migration"].setdefault("update_existing", False)
        config["migration"].setdefault("domains", [])
        config["migration"].setdefault("skip_canonical_domain", False)

        config.setdefault("reports", {})
        config["reports"].setdefault("directory", os.path.join("reports", "migration"))
        config["reports"].setdefault("redirect_csv", os.path.join("reports", "redirect_map.csv"))

        self.config = config
        self.session = session
        configure_reports(config["reports"]["directory"])

    @property
    def connection_key(self) -> str:
        return self.config["source"]["connection_key"]

    def settings(self) -> MigrationSettings:
        """Validated run settings built from the current configuration."""
        options = {k: v for k, v in self.config["migration"].items() if v is not None}
        source = self.config["source"]
        return MigrationSettings(
            connection_key=source["connection_key"],
            schema_version=source["schema_version"],
            files_base_path=source["files_base_path"] or "",
            **options,
        )

    def _open_destination(self) -> duckdb.DuckDBPyConnection:
        database = self.config["destination"]["database"]
        if database != ":memory:" and os.path.dirname(database):
            os.makedirs(os.path.dirname(database), exist_ok=True)
        return duckdb.connect(database=database)

    def _stores(self, con: duckdb.DuckDBPyConnection):
        destination = self.config["destination"]
        entity_store = DuckDBEntityStore(con, capabilities=destination["capabilities"])
        alias_store = DuckDBAliasStore(con)
        asset_store = LocalAssetStore(
            destination["public_files_path"], destination["public_base_url"], entity_store
        )
        return entity_store, alias_store, asset_store

    def migrate(
        self,
        *,
        limit: Optional[int] = None,
        update_existing: Optional[bool] = None,
        domains: Optional[Any] = None,
        files_base_path: Optional[str] = None,
        skip_canonical_domain: Optional[bool] = None,
    ) -> MigrationReport:
        """
        Migrate the published articles of the configured source.

        Keyword arguments override the matching configuration values for
        this run.  Articles already recorded in the mapping are skipped
        unless ``update_existing`` is set.

        Raises:
            PreFlightCheckError: If the configuration cannot support a run.
        """
        if files_base_path:
            self.config["source"]["files_base_path"] = files_base_path
        overrides = {
            "limit": limit,
            "update_existing": update_existing,
            "domains": domains,
            "skip_canonical_domain": skip_canonical_domain,
        }
        self.config["migration"].update({k: v for k, v in overrides.items() if v is not None})

        run_migrate_pre_flight_checks(self.config)
        settings = self.settings()
        logger.info(
            "Migrating articles from '%s' (%s layout), files from %s",
            settings.connection_key,
            settings.schema_version.value,
            settings.files_base_path,
        )

        source = SourceConnection.open(self.config["source"]["connections"][settings.connection_key], settings.connection_key)
        con = self._open_destination()
        try:
            entity_store, alias_store, asset_store = self._stores(con)
            mapping = MappingStore(con, settings.connection_key)
            reader = build_reader(source, settings)
            transfer = AssetTransfer(
                settings.files_base_path,
                asset_store,
                session=self.session,
                timeout=settings.request_timeout,
                strip_prefixes=settings.strip_prefixes,
                requests_per_minute=settings.requests_per_minute,
                field_destination=settings.field_file_destination,
                body_image_destination=settings.body_image_destination,
            )
            aliases = AliasMigrator(reader, alias_store, settings)
            migrator = ArticleMigrator(
                reader,
                mapping,
                entity_store,
                alias_store,
                TermResolver(reader, mapping, entity_store, aliases),
                FileResolver(reader, mapping, transfer),
                transfer,
                aliases,
                settings,
            )
            cache = RunCache.build(entity_store, settings.default_author_id)
            report = migrator.run(cache, settings.limit)
        finally:
            con.close()
            source.close()

        generate_redirects_csv(
            report.redirects,
            new_base=self.config["destination"]["site_base_url"],
            out_path=self.config["reports"]["redirect_csv"],
        )
        return report

    def clear(self) -> ClearReport:
        """
        Delete everything migrated from the configured source scope.

        Raises:
            PreFlightCheckError: If the scope or destination is not configured.
        """
        run_clear_pre_flight_checks(self.config)
        settings = self.settings()
        con = self._open_destination()
        try:
            entity_store, alias_store, asset_store = self._stores(con)
            reverser = MigrationReverser(
                MappingStore(con, settings.connection_key),
                entity_store,
                alias_store,
                asset_store,
                lambda scope, article_id: body_image_directory(settings.body_image_destination, scope, article_id),
            )
            return reverser.clear()
        finally:
            con.close()

    @staticmethod
    def load_source(csv_dir: str, database: str, *, replace: bool = False) -> Dict[str, int]:
        """Build a source database from a directory of CSV table exports."""
        return import_csv_dump(csv_dir, database, replace=replace)
