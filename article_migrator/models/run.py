"""Run-scoped state and outcome reporting for a migration run."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Set


class ArticleOutcome(str, Enum):
    """Terminal outcome of one source article within a run."""
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED_DUPLICATE = "skipped-duplicate"
    SKIPPED_EXCLUDED = "skipped-excluded"
    SKIPPED_NOT_ELIGIBLE = "skipped-not-eligible"
    FAILED = "failed"


@dataclass
class RunCache:
    """
    Lookups computed once at the start of a run and shared by every article.

    The cache is built explicitly by the caller and handed to the migrator;
    nothing in it is filled lazily.
    """
    valid_author_ids: Set[str] = field(default_factory=set)
    default_author_id: Optional[str] = None

    @classmethod
    def build(cls, entity_store, default_author_id: Optional[str] = None) -> "RunCache":
        return cls(
            valid_author_ids={str(uid) for uid in entity_store.all_ids("user")},
            default_author_id=default_author_id,
        )

    def resolve_author(self, author_id: Optional[str]) -> Optional[str]:
        if author_id is not None and str(author_id) in self.valid_author_ids:
            return str(author_id)
        return self.default_author_id


@dataclass
class MigrationReport:
    """Aggregate result of one ``migrate`` run."""
    scope: str
    outcomes: Dict[str, str] = field(default_factory=dict)  # source id -> outcome
    errors: List[Dict[str, Any]] = field(default_factory=list)
    redirects: List[Dict[str, str]] = field(default_factory=list)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def record(self, source_id: str, outcome: ArticleOutcome) -> None:
        self.outcomes[str(source_id)] = outcome.value

    def count(self, outcome: ArticleOutcome) -> int:
        return sum(1 for value in self.outcomes.values() if value == outcome.value)

    @property
    def migrated(self) -> int:
        return self.count(ArticleOutcome.CREATED)

    @property
    def updated(self) -> int:
        return self.count(ArticleOutcome.UPDATED)

    @property
    def skipped(self) -> int:
        return (
            self.count(ArticleOutcome.SKIPPED_DUPLICATE)
            + self.count(ArticleOutcome.SKIPPED_EXCLUDED)
            + self.count(ArticleOutcome.SKIPPED_NOT_ELIGIBLE)
        )

    @property
    def failed(self) -> int:
        return self.count(ArticleOutcome.FAILED)

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def summary(self) -> str:
        return (
            f"migrated={self.migrated} updated={self.updated} "
            f"skipped={self.skipped} failed={self.failed}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scope": self.scope,
            "migrated": self.migrated,
            "updated": self.updated,
            "skipped": self.skipped,
            "failed": self.failed,
            "outcomes": dict(self.outcomes),
            "errors": list(self.errors),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
        }


@dataclass
class ClearReport:
    """Counts of what a reversal removed."""
    scope: str
    nodes: int = 0
    terms: int = 0
    files: int = 0
    aliases: int = 0
    mappings: int = 0
    retained: int = 0  # shared with another scope, left in place

    def summary(self) -> str:
        return (
            f"Deleted: {self.nodes} nodes, {self.terms} terms, {self.files} files, "
            f"{self.aliases} aliases, {self.mappings} mapping entries; "
            f"retained {self.retained} shared entities"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scope": self.scope,
            "nodes": self.nodes,
            "terms": self.terms,
            "files": self.files,
            "aliases": self.aliases,
            "mappings": self.mappings,
            "retained": self.retained,
        }
