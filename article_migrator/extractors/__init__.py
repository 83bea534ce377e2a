"""
Readers of the legacy source database.

The layout of the source is chosen once per run through :func:`build_reader`;
everything downstream only talks to :class:`SourceArticleReader`.
"""

from ..models.settings import MigrationSettings, SchemaVersion
from .base import SourceArticleReader
from .flat_reader import FlatTableReader
from .normalized_reader import NormalizedReader
from .source_db import SourceConnection, import_csv_dump

READERS = {
    SchemaVersion.FLAT: FlatTableReader,
    SchemaVersion.NORMALIZED: NormalizedReader,
}


def build_reader(source: SourceConnection, settings: MigrationSettings) -> SourceArticleReader:
    """Instantiate the reader matching ``settings.schema_version``."""
    return READERS[SchemaVersion(settings.schema_version)](source, settings)


__all__ = [
    "SourceArticleReader",
    "FlatTableReader",
    "NormalizedReader",
    "SourceConnection",
    "import_csv_dump",
    "build_reader",
    "READERS",
]
