"""
Body HTML clean-up and inline image rewriting.

Two independent passes over an HTML fragment:

``normalize_markup``
    Strips presentational attributes, turns content ``<div>`` blocks into
    paragraphs and drops empty containers.  Running it on its own output
    changes nothing.

``rewrite_images``
    Sends every ``<img>`` source through an importer callable.  Images the
    importer resolves point at the new URL afterwards; the others are removed
    so the body never carries a broken reference.

Both passes take a snapshot of the matching tags before editing the tree and
never raise on malformed input; ``html.parser`` accepts anything.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

PRESENTATIONAL_ATTRIBUTES = ("class", "style", "id")
CONTAINER_TAGS = ["p", "div", "span"]

ImageImporter = Callable[[str], Optional[str]]


def _visible_text(tag) -> str:
    return tag.get_text().replace("\xa0", " ").strip()


def _is_empty_container(tag) -> bool:
    return tag.find(True) is None and not _visible_text(tag)


def normalize_markup(html: str) -> str:
    """
    Normalize legacy body markup.

    >>> normalize_markup('<div style="x" class="y"><b>hi</b></div>')
    '<p><b>hi</b></p>'
    >>> normalize_markup('<p>&nbsp;</p>')
    ''
    """
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")

    for tag in list(soup.find_all(True)):
        for attr in PRESENTATIONAL_ATTRIBUTES:
            if attr in tag.attrs:
                del tag[attr]

    for div in list(soup.find_all("div")):
        if div.find(True) is not None or _visible_text(div):
            div.name = "p"

    # Removing a container can empty its parent.
    removed = True
    while removed:
        removed = False
        for tag in list(soup.find_all(CONTAINER_TAGS)):
            if _is_empty_container(tag):
                tag.decompose()
                removed = True

    return str(soup).replace("\xa0", " ")


def rewrite_images(html: str, *, image_importer: ImageImporter) -> str:
    """
    Point every ``<img>`` at the URL returned by ``image_importer``.

    Args:
        html: Body fragment
        image_importer: Called with the original ``src``; returns the new
            URL, or ``None`` when the image could not be transferred

    Returns:
        The rewritten fragment.  Input without images is returned as is.
    """
    if not html or "<img" not in html.lower():
        return html or ""
    soup = BeautifulSoup(html, "html.parser")

    for img in list(soup.find_all("img")):
        src = (img.get("src") or "").strip()
        if not src:
            img.decompose()
            continue
        try:
            new_url = image_importer(src)
        except Exception as e:
            logger.warning("Image importer failed for %s: %s", src, e)
            new_url = None
        if new_url:
            img["src"] = new_url
        else:
            logger.info("Removing unresolvable image %s", src)
            img.decompose()

    return str(soup)


def image_sources(html: str) -> List[str]:
    """``src`` values of every ``<img>`` in the fragment, in document order."""
    if not html or "<img" not in html.lower():
        return []
    soup = BeautifulSoup(html, "html.parser")
    return [img["src"] for img in soup.find_all("img") if img.get("src")]
