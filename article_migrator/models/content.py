from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EntityKind(str, Enum):
    """Kinds of entity tracked in the mapping ledger."""

    NODE = "node"
    TERM = "term"
    FILE = "file"


class CollisionPolicy(str, Enum):
    """What the asset store does when the destination path is taken."""

    REPLACE = "replace"
    RENAME = "rename"


class MappingEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: EntityKind
    source_id: str
    dest_id: str

    @field_validator("source_id", "dest_id", mode="before")
    @classmethod
    def _as_str(cls, v: Any) -> str:
        return str(v)


###############################################################################
# Source projections (read-only, rebuilt on every run)
###############################################################################


class SourceArticle(BaseModel):
    id: str
    title: str = ""
    created_at: int = 0
    updated_at: int = 0
    author_id: Optional[str] = None
    body_html: str = ""
    body_format: str = "full_html"
    tag_ids: list[str] = Field(default_factory=list)
    image_ids: list[str] = Field(default_factory=list)
    video_url: Optional[str] = None

    @field_validator("id", "author_id", mode="before")
    @classmethod
    def _id_as_str(cls, v: Any) -> Optional[str]:
        return None if v is None else str(v)

    @field_validator("tag_ids", "image_ids", mode="before")
    @classmethod
    def _ids_as_str(cls, v: Optional[list[Any]]) -> list[str]:
        return [str(item) for item in (v or []) if item is not None]

    @field_validator("body_html", mode="before")
    @classmethod
    def _body_never_none(cls, v: Optional[str]) -> str:
        return v or ""


class SourceTerm(BaseModel):
    id: str
    name: str
    vocabulary: Optional[str] = None
    description: Optional[str] = None
    weight: int = 0
    language: Optional[str] = None

    @field_validator("id", "vocabulary", mode="before")
    @classmethod
    def _as_str(cls, v: Any) -> Optional[str]:
        return None if v is None else str(v)

    @field_validator("weight", mode="before")
    @classmethod
    def _weight_default(cls, v: Any) -> int:
        return int(v or 0)


class SourceFile(BaseModel):
    id: str
    filename: str = ""
    uri: str
    mime_type: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _as_str(cls, v: Any) -> str:
        return str(v)

    @field_validator("uri", mode="before")
    @classmethod
    def _blank_uri(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()


class SourceAlias(BaseModel):
    path: str
    alias: str
    language: Optional[str] = None


###############################################################################
# Destination entities
###############################################################################


class DestinationArticle(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    id: Optional[str] = None
    title: str = Field(..., min_length=1)
    body_html: str = ""
    body_format: str = "full_html"
    status: int = 1
    author_id: Optional[str] = None
    created_at: int = 0
    updated_at: int = 0
    tag_refs: list[str] = Field(default_factory=list)
    image_refs: list[str] = Field(default_factory=list)
    domain_refs: Optional[list[str]] = None
    canonical_domain: Optional[str] = None

    @field_validator("tag_refs", mode="before")
    @classmethod
    def _dedup_refs(cls, v: Optional[list[Any]]) -> list[str]:
        # tag references form a set; first-seen order is kept for stable output
        seen = set()
        deduped = []
        for item in v or []:
            item = str(item)
            if item not in seen:
                seen.add(item)
                deduped.append(item)
        return deduped

    @field_validator("image_refs", mode="before")
    @classmethod
    def _refs_as_str(cls, v: Optional[list[Any]]) -> list[str]:
        return [str(item) for item in (v or [])]

    def to_fields(self) -> dict[str, Any]:
        """Field payload for the entity store (no id, unset optionals dropped)."""
        return self.model_dump(exclude={"id"}, exclude_none=True)


class DestinationTerm(BaseModel):
    id: Optional[str] = None
    name: str = Field(..., min_length=1)
    vocabulary: str
    description: Optional[str] = None
    weight: int = 0
    language: Optional[str] = None

    def to_fields(self) -> dict[str, Any]:
        return self.model_dump(exclude={"id"}, exclude_none=True)


class DestinationAsset(BaseModel):
    id: str
    uri: str
    filename: str = ""
    mime_type: Optional[str] = None
    permanent: bool = True
    url: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _as_str(cls, v: Any) -> str:
        return str(v)


class AliasEntry(BaseModel):
    id: Optional[str] = None
    path: str
    alias: str
    language: str = "und"

    @field_validator("id", mode="before")
    @classmethod
    def _as_str(cls, v: Any) -> Optional[str]:
        return None if v is None else str(v)
