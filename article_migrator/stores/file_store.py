"""
Local filesystem asset store.

Bytes are written under a public files root and every stored file gets a
``file`` entity in the entity store, so that assets can be referenced by id
from articles and removed again during a reversal.
"""

from __future__ import annotations

import logging
import mimetypes
import os
import shutil
from pathlib import Path
from typing import List, Optional
from urllib.parse import quote

from ..models.content import CollisionPolicy, DestinationAsset
from .base import AssetStore, EntityStore

logger = logging.getLogger(__name__)

SCHEME = "public://"


class LocalAssetStore(AssetStore):
    """
    Stores assets under ``root`` and serves them from ``base_url``.

    Args:
        root: Directory that backs the ``public://`` scheme
        base_url: Public URL of ``root`` (used to build asset URLs)
        entity_store: Store that receives one ``file`` entity per asset
    """

    def __init__(self, root: str, base_url: str, entity_store: EntityStore):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")
        self.entity_store = entity_store

    @staticmethod
    def relative(uri_or_path: str) -> str:
        value = uri_or_path
        if value.startswith(SCHEME):
            value = value[len(SCHEME):]
        return value.lstrip("/")

    def _path_for(self, relative: str) -> Path:
        path = (self.root / relative).resolve()
        root = self.root.resolve()
        if path != root and root not in path.parents:
            raise ValueError(f"Destination escapes the public files root: {relative}")
        return path

    def url_for(self, uri: str) -> str:
        return f"{self.base_url}/{quote(self.relative(uri))}"

    def _to_asset(self, entity: dict) -> DestinationAsset:
        return DestinationAsset(
            id=entity["id"],
            uri=entity["uri"],
            filename=entity.get("filename", ""),
            mime_type=entity.get("mime_type"),
            permanent=bool(entity.get("permanent", True)),
            url=self.url_for(entity["uri"]),
        )

    def _free_name(self, relative: str) -> str:
        """First ``name_N.ext`` next to ``relative`` that is not taken."""
        directory, filename = os.path.split(relative)
        stem, ext = os.path.splitext(filename)
        candidate = relative
        counter = 0
        while self._path_for(candidate).exists() or self.entity_store.find("file", uri=SCHEME + candidate):
            candidate = os.path.join(directory, f"{stem}_{counter}{ext}") if directory else f"{stem}_{counter}{ext}"
            counter += 1
        return candidate

    def write(
        self,
        data: bytes,
        destination: str,
        *,
        policy: CollisionPolicy,
        mime_type: Optional[str] = None,
    ) -> DestinationAsset:
        relative = self.relative(destination)
        if not relative or relative.endswith("/"):
            raise ValueError(f"Destination has no file name: {destination!r}")

        existing = None
        if policy == CollisionPolicy.RENAME:
            relative = self._free_name(relative)
        else:
            matches = self.entity_store.find("file", uri=SCHEME + relative)
            existing = matches[0] if matches else None

        path = self._path_for(relative)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

        filename = os.path.basename(relative)
        fields = {
            "uri": SCHEME + relative,
            "filename": filename,
            "mime_type": mime_type or mimetypes.guess_type(filename)[0] or "application/octet-stream",
            # Assets are never left temporary; orphan cleanup must not touch them.
            "permanent": True,
        }
        if existing:
            self.entity_store.update("file", existing["id"], fields)
            asset_id = existing["id"]
        else:
            asset_id = self.entity_store.create("file", fields)
        logger.debug("Stored %s as file %s", fields["uri"], asset_id)
        return self._to_asset({**fields, "id": asset_id})

    def load(self, asset_id: str) -> Optional[DestinationAsset]:
        entity = self.entity_store.load("file", asset_id)
        return self._to_asset(entity) if entity else None

    def delete(self, asset_id: str) -> bool:
        asset = self.load(asset_id)
        if asset is None:
            return False
        self._path_for(self.relative(asset.uri)).unlink(missing_ok=True)
        return self.entity_store.delete("file", asset_id)

    def list_directory(self, prefix: str) -> List[DestinationAsset]:
        wanted = SCHEME + self.relative(prefix).rstrip("/") + "/"
        return [
            self._to_asset(entity)
            for entity in self.entity_store.find("file")
            if entity.get("uri", "").startswith(wanted)
        ]

    def delete_directory(self, prefix: str) -> int:
        deleted = 0
        for asset in self.list_directory(prefix):
            if self.delete(asset.id):
                deleted += 1
        directory = self._path_for(self.relative(prefix))
        if directory.is_dir():
            shutil.rmtree(directory)
        return deleted
