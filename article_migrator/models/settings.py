from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_STRIP_PREFIXES = ["public://", "private://", "sites/default/files/"]


class SchemaVersion(str, Enum):
    """Storage layout of the legacy source database."""

    FLAT = "flat"
    NORMALIZED = "normalized"


class ReferencePolicy(str, Enum):
    """How update mode treats tag/image references already on the article."""

    REPLACE = "replace"
    MERGE = "merge"


class MigrationSettings(BaseModel):
    """
    Validated run settings.

    Built by :class:`article_migrator.migration_tool.ArticleMigrationTool` from
    the ``source`` and ``migration`` sections of the JSON configuration once
    the pre-flight checks have passed.  Components receive this object
    through their constructors.
    """

    model_config = ConfigDict(extra="ignore", use_enum_values=False)

    connection_key: str = Field(..., min_length=1)
    schema_version: SchemaVersion = SchemaVersion.FLAT
    files_base_path: str = ""

    limit: Optional[int] = None
    update_existing: bool = False
    reference_policy: ReferencePolicy = ReferencePolicy.REPLACE

    domains: list[str] = Field(default_factory=list)
    skip_canonical_domain: bool = False

    target_vocabulary: str = "tags"
    source_vocabulary_id: str = "3"
    source_vocabularies: list[str] = Field(default_factory=list)
    excluded_term_names: list[str] = Field(default_factory=list)
    exclusion_table: Optional[str] = None

    normalize_markup: bool = True
    body_format: str = "full_html"
    default_language: str = "und"
    default_author_id: Optional[str] = None

    field_file_destination: str = "{relative}"
    body_image_destination: str = "body_images/{scope}/{article_id}/{basename}"
    strip_prefixes: list[str] = Field(default_factory=lambda: list(DEFAULT_STRIP_PREFIXES))
    request_timeout: float = 30.0
    requests_per_minute: Optional[int] = None

    @field_validator("limit", mode="before")
    @classmethod
    def _zero_means_unbounded(cls, v: Any) -> Optional[int]:
        if v in (None, "", 0, "0"):
            return None
        return int(v)

    @field_validator("domains", mode="before")
    @classmethod
    def _split_domains(cls, v: Any) -> list[str]:
        if not v:
            return []
        if isinstance(v, str):
            v = v.split(",")
        return [d.strip() for d in v if d and str(d).strip()]

    @field_validator("source_vocabulary_id", "default_author_id", mode="before")
    @classmethod
    def _as_str(cls, v: Any) -> Optional[str]:
        return None if v is None or v == "" else str(v)

    @property
    def files_base_is_url(self) -> bool:
        return self.files_base_path.lower().startswith(("http://", "https://"))
