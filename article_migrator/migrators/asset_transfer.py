"""
Transfer of binary assets from the legacy files location.

The files base is either a local directory (a copy of the old public files
folder) or an HTTP origin serving it.  Locators are source URIs such as
``public://2019/03/photo.jpg`` or ``src`` attributes found in bodies; known
scheme and directory prefixes are stripped to obtain the path relative to the
base.  Downloads are streamed with a fixed timeout and are never retried; a
failed transfer is reported to the caller, which skips the asset.
"""

from __future__ import annotations

import logging
import os
import re
import time
from pathlib import Path
from typing import Callable, Iterable, Optional
from urllib.parse import unquote, urlparse

import requests

from ..models.content import CollisionPolicy, DestinationAsset
from ..models.settings import DEFAULT_STRIP_PREFIXES
from ..stores.base import AssetStore

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class AssetFetchError(Exception):
    """The bytes of an asset could not be obtained."""
    pass


class RateLimiter:
    """
    Spaces download starts at least ``60 / rpm`` seconds apart, so a live
    legacy site serving the files sees a steady, bounded request rate.

    The clock and sleep functions are injectable for tests.
    """

    def __init__(
        self,
        rpm: int = 200,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.min_interval = 60.0 / max(1, rpm)
        self.clock = clock
        self.sleep = sleep
        self._next_slot: Optional[float] = None

    def wait(self) -> float:
        """Block until the next download may start; returns the time slept."""
        now = self.clock()
        delay = 0.0 if self._next_slot is None else max(0.0, self._next_slot - now)
        if delay:
            logger.debug("Rate limit reached, waiting %.2fs", delay)
            self.sleep(delay)
        self._next_slot = now + delay + self.min_interval
        return delay


def _is_http(value: str) -> bool:
    return value.lower().startswith(("http://", "https://"))


def body_image_directory(template: str, scope: str, article_id: str) -> str:
    """Directory holding the body images of one source article."""
    return os.path.dirname(template.format(scope=scope, article_id=article_id, basename="x"))


def stored_as(asset: DestinationAsset, basename: str) -> bool:
    """Whether ``asset`` was stored for ``basename``, possibly under a ``name_N`` rename."""
    stem, ext = os.path.splitext(basename)
    return re.match(rf"^{re.escape(stem)}(_\d+)?{re.escape(ext)}$", asset.filename or "") is not None


class AssetTransfer:
    """
    Fetches assets relative to ``files_base`` and stores them in the
    destination asset store.

    Args:
        files_base: Local directory or ``http(s)://`` origin of the legacy files
        asset_store: Destination asset store
        session: ``requests.Session`` used for downloads (one is created if omitted)
        timeout: Download timeout in seconds
        strip_prefixes: Prefixes removed from source URIs, in order
        requests_per_minute: Optional download rate limit
        field_destination: Template of field file destinations, with ``{relative}``
        body_image_destination: Template of body image destinations, with
            ``{scope}``, ``{article_id}`` and ``{basename}``
    """

    def __init__(
        self,
        files_base: str,
        asset_store: AssetStore,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
        strip_prefixes: Optional[Iterable[str]] = None,
        requests_per_minute: Optional[int] = None,
        field_destination: str = "{relative}",
        body_image_destination: str = "body_images/{scope}/{article_id}/{basename}",
    ):
        self.files_base = files_base or ""
        self.asset_store = asset_store
        self.session = session or requests.Session()
        self.timeout = timeout
        self.strip_prefixes = list(DEFAULT_STRIP_PREFIXES if strip_prefixes is None else strip_prefixes)
        self.rate_limiter = RateLimiter(requests_per_minute) if requests_per_minute else None
        self.field_destination = field_destination
        self.body_image_destination = body_image_destination

    @property
    def base_is_url(self) -> bool:
        return _is_http(self.files_base)

    def relative_path(self, uri: str) -> str:
        """``public://2019/a.jpg`` → ``2019/a.jpg``."""
        value = (uri or "").strip()
        for prefix in self.strip_prefixes:
            if value.lstrip("/").startswith(prefix):
                value = value.lstrip("/")[len(prefix):]
        return value.lstrip("/")

    def locate(self, locator: str) -> str:
        """Absolute URL or filesystem path of ``locator``."""
        if locator.startswith("//"):
            return "https:" + locator
        if _is_http(locator):
            return locator
        relative = self.relative_path(locator)
        if self.base_is_url:
            return f"{self.files_base.rstrip('/')}/{relative}"
        return os.path.join(self.files_base, relative)

    def fetch(self, locator: str) -> bytes:
        """
        Read the bytes of ``locator``.

        Raises:
            AssetFetchError: On a non-200 response, a transport error or a
                missing local file
        """
        location = self.locate(locator)
        if _is_http(location):
            return self._download(location)

        path = Path(location)
        if not path.is_file():
            raise AssetFetchError(f"File not found: {location}")
        try:
            return path.read_bytes()
        except OSError as e:
            raise AssetFetchError(f"Could not read {location}: {e}") from e

    def _download(self, url: str) -> bytes:
        if self.rate_limiter:
            self.rate_limiter.wait()
        try:
            resp = self.session.get(url, stream=True, timeout=self.timeout)
        except requests.RequestException as e:
            raise AssetFetchError(f"Request to {url} failed: {e}") from e
        try:
            if resp.status_code != 200:
                raise AssetFetchError(f"Bad status {resp.status_code} for {url}")
            return b"".join(resp.iter_content(chunk_size=65536))
        except requests.RequestException as e:
            raise AssetFetchError(f"Download of {url} failed: {e}") from e
        finally:
            resp.close()

    def transfer(
        self,
        locator: str,
        destination: str,
        policy: CollisionPolicy,
        *,
        mime_type: Optional[str] = None,
    ) -> Optional[DestinationAsset]:
        """
        Fetch ``locator`` and store it at ``destination``.

        Returns:
            The stored asset, or ``None`` when the transfer failed (already logged)
        """
        try:
            data = self.fetch(locator)
            return self.asset_store.write(data, destination, policy=policy, mime_type=mime_type)
        except (AssetFetchError, OSError, ValueError) as e:
            logger.warning("Failed to transfer %s: %s", locator, e)
            return None

    def transfer_field_file(self, uri: str, mime_type: Optional[str] = None) -> Optional[DestinationAsset]:
        relative = self.relative_path(uri)
        destination = self.field_destination.format(relative=relative)
        return self.transfer(uri, destination, CollisionPolicy.REPLACE, mime_type=mime_type)

    def body_image_directory(self, scope: str, article_id: str) -> str:
        return body_image_directory(self.body_image_destination, scope, article_id)

    def body_image_basename(self, src: str) -> str:
        location = self.locate(src)
        return os.path.basename(unquote(urlparse(location).path if _is_http(location) else location))

    def transfer_body_image(self, src: str, scope: str, article_id: str) -> Optional[DestinationAsset]:
        """
        Import one inline body image under the article's body image directory.

        Inline ``data:`` images are not imported.  Existing files are never
        overwritten; a free name is picked next to them.
        """
        if src.lower().startswith("data:"):
            logger.warning("Inline data image in article %s is not imported", article_id)
            return None
        basename = self.body_image_basename(src)
        if not basename:
            logger.warning("Image source %s has no file name", src)
            return None
        destination = self.body_image_destination.format(scope=scope, article_id=article_id, basename=basename)
        return self.transfer(src, destination, CollisionPolicy.RENAME)
