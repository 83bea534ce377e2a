"""Base interface for legacy article readers."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterator, List, Optional
import logging

from ..models.content import SourceAlias, SourceArticle, SourceFile, SourceTerm
from ..models.settings import MigrationSettings
from ..utils.labels import normalize_label
from .source_db import SourceConnection

logger = logging.getLogger(__name__)


class SourceArticleReader(ABC):
    """
    Base class for the readers of each legacy schema layout.

    A reader turns rows of its layout into the projections the migrator
    works with (:class:`SourceArticle`, :class:`SourceTerm`,
    :class:`SourceFile`, :class:`SourceAlias`) and carries the layout
    specific rules: which rows are candidates, the exclusion list, term
    eligibility and the destination vocabulary of a term.
    """

    #: Short name of the layout, as used in configuration.
    schema_version: str = ""
    #: Whether bodies of this layout go through the markup normalize pass.
    supports_markup_normalization: bool = False
    #: Default exclusion list table; ``None`` when the layout has none.
    default_exclusion_table: Optional[str] = None

    def __init__(self, source: SourceConnection, settings: MigrationSettings):
        """
        Initialize the reader.

        Args:
            source: Read-only connection to the legacy database
            settings: Run settings
        """
        self.source = source
        self.settings = settings
        self._warnings: List[str] = []

        table = settings.exclusion_table or self.default_exclusion_table
        self.exclusion_table: Optional[str] = None
        if table:
            if source.table_exists(table):
                self.exclusion_table = table
            else:
                self.add_warning(f"Could not find source table '{table}'. Skipping the exclusion filter.")

    @abstractmethod
    def iter_candidates(self, limit: Optional[int] = None) -> Iterator[Dict[str, Any]]:
        """
        Published article rows ordered by source id ascending.

        Args:
            limit: Maximum number of rows, ``None`` for all

        Yields:
            Row dictionaries with at least ``nid`` and ``title``
        """
        pass

    @abstractmethod
    def read_article(self, row: Dict[str, Any]) -> SourceArticle:
        """Build the full projection of one candidate row."""
        pass

    @abstractmethod
    def read_term(self, term_id: str) -> Optional[SourceTerm]:
        pass

    @abstractmethod
    def read_file(self, file_id: str) -> Optional[SourceFile]:
        pass

    @abstractmethod
    def read_alias(self, path: str) -> Optional[SourceAlias]:
        """Alias of a canonical source path such as ``/node/12``."""
        pass

    def is_excluded(self, article_id: str) -> bool:
        if not self.exclusion_table:
            return False
        row = self.source.query_one(
            f'SELECT COUNT(*) AS n FROM "{self.exclusion_table}" WHERE CAST(entity_id AS VARCHAR) = ?',
            [str(article_id)],
        )
        return bool(row and row["n"])

    def term_ineligibility(self, term: SourceTerm) -> Optional[str]:
        """
        Reason why ``term`` must not be migrated, or ``None`` if it may.

        The base rule rejects names listed in ``excluded_term_names``.
        """
        excluded = {normalize_label(name).lower() for name in self.settings.excluded_term_names}
        if normalize_label(term.name).lower() in excluded:
            return f"term name '{term.name}' is excluded by configuration"
        return None

    def destination_vocabulary(self, term: SourceTerm) -> str:
        return self.settings.target_vocabulary

    def add_warning(self, message: str) -> None:
        self._warnings.append(message)
        logger.warning(message)

    @property
    def warnings(self) -> List[str]:
        return list(self._warnings)

    def _limit_clause(self, limit: Optional[int]) -> str:
        return f" LIMIT {int(limit)}" if limit else ""
