"""Interfaces of the destination collaborators the migration engine writes to."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..models.content import AliasEntry, CollisionPolicy, DestinationAsset


class EntityStore(ABC):
    """
    Persistence for destination entities (articles, terms, files, users).

    Entities are plain field dictionaries carrying their ``id``.  Which
    optional fields a deployment supports is probed with :meth:`has_field`.
    """

    @abstractmethod
    def create(self, kind: str, fields: Dict[str, Any]) -> str:
        """Create an entity and return its new id."""
        pass

    @abstractmethod
    def load(self, kind: str, entity_id: str) -> Optional[Dict[str, Any]]:
        """Load an entity, or ``None`` if it does not exist."""
        pass

    @abstractmethod
    def update(self, kind: str, entity_id: str, fields: Dict[str, Any]) -> None:
        """Overwrite the given fields of an existing entity."""
        pass

    @abstractmethod
    def delete(self, kind: str, entity_id: str) -> bool:
        """Delete an entity. Returns False if it was already gone."""
        pass

    @abstractmethod
    def find(self, kind: str, **properties: Any) -> List[Dict[str, Any]]:
        """Entities of ``kind`` whose fields equal every given property."""
        pass

    @abstractmethod
    def all_ids(self, kind: str) -> List[str]:
        pass

    @abstractmethod
    def has_field(self, kind: str, field_name: str) -> bool:
        pass


class AliasStore(ABC):
    """Path alias storage of the destination routing layer."""

    @abstractmethod
    def find_by_path(self, path: str) -> List[AliasEntry]:
        pass

    @abstractmethod
    def find_by_alias(self, alias: str) -> Optional[AliasEntry]:
        pass

    @abstractmethod
    def create(self, path: str, alias: str, language: str) -> AliasEntry:
        pass

    @abstractmethod
    def delete(self, alias: AliasEntry) -> None:
        pass


class AssetStore(ABC):
    """Binary file storage with a file entity per stored asset."""

    @abstractmethod
    def write(
        self,
        data: bytes,
        destination: str,
        *,
        policy: CollisionPolicy,
        mime_type: Optional[str] = None,
    ) -> DestinationAsset:
        """
        Persist ``data`` at ``destination`` (relative to the public root).

        Args:
            data: File contents
            destination: Relative destination path
            policy: ``REPLACE`` reuses the file entity already at that path,
                ``RENAME`` picks a free name next to it
            mime_type: Optional MIME type, guessed from the name if omitted

        Returns:
            The permanent asset that now holds the bytes
        """
        pass

    @abstractmethod
    def load(self, asset_id: str) -> Optional[DestinationAsset]:
        pass

    @abstractmethod
    def delete(self, asset_id: str) -> bool:
        pass

    @abstractmethod
    def list_directory(self, prefix: str) -> List[DestinationAsset]:
        pass

    @abstractmethod
    def delete_directory(self, prefix: str) -> int:
        """Delete every asset filed under ``prefix`` and the directory itself."""
        pass

    @abstractmethod
    def url_for(self, uri: str) -> str:
        pass
