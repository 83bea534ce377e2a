import logging
import os

from article_migrator.models.settings import SchemaVersion

logger = logging.getLogger(__name__)


class PreFlightCheckError(Exception):
    """Raised when the configuration cannot support a run at all."""
    pass


def _source_database(config: dict) -> str:
    source = config.get("source", {})
    key = source.get("connection_key")
    if not key:
        raise PreFlightCheckError("Source connection key is not set (source.connection_key).")

    connections = source.get("connections") or {}
    if key not in connections:
        raise PreFlightCheckError(
            f"Source connection '{key}' is not declared under source.connections."
        )
    return connections[key]


def run_clear_pre_flight_checks(config: dict):
    """
    Verifies that a reversal can identify its mapping scope.

    Args:
        config: The application configuration dictionary.

    Raises:
        PreFlightCheckError: If any check fails.
    """
    _source_database(config)
    if not config.get("destination", {}).get("database"):
        raise PreFlightCheckError("Destination database path is not set (destination.database).")


def run_migrate_pre_flight_checks(config: dict):
    """
    Verifies that the source, files location and destination are configured.

    Args:
        config: The application configuration dictionary.

    Raises:
        PreFlightCheckError: If any check fails.
    """
    logger.info("Running pre-flight checks...")

    run_clear_pre_flight_checks(config)

    database = _source_database(config)
    if database != ":memory:" and not os.path.exists(database):
        raise PreFlightCheckError(f"Source database not found: {database}")

    schema = config["source"].get("schema_version", SchemaVersion.FLAT.value)
    if schema not in {s.value for s in SchemaVersion}:
        raise PreFlightCheckError(
            f"Unknown source schema '{schema}'. Expected one of: "
            + ", ".join(s.value for s in SchemaVersion)
        )

    files_base = config["source"].get("files_base_path")
    if not files_base:
        raise PreFlightCheckError("You must provide a files base path (source.files_base_path).")
    if not files_base.lower().startswith(("http://", "https://")) and not os.path.isdir(files_base):
        raise PreFlightCheckError(f"Files base path is not a directory: {files_base}")

    destination = config.get("destination", {})
    if not destination.get("public_files_path"):
        raise PreFlightCheckError("Destination public files path is not set (destination.public_files_path).")

    logger.info("Pre-flight checks passed successfully.")
