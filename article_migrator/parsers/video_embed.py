from __future__ import annotations

import re
from typing import Optional

YOUTUBE_RE = re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/)([a-zA-Z0-9_-]+)")
VIMEO_RE = re.compile(r"vimeo\.com/(\d+)")

YOUTUBE_IFRAME = (
    '<p><iframe width="560" height="315" src="https://www.youtube.com/embed/{id}" frameborder="0" '
    'allow="accelerometer; autoplay; clipboard-write; encrypted-media; gyroscope; picture-in-picture" '
    "allowfullscreen></iframe></p>"
)
VIMEO_IFRAME = (
    '<p><iframe src="https://player.vimeo.com/video/{id}" width="560" height="315" frameborder="0" '
    'allow="autoplay; fullscreen; picture-in-picture" allowfullscreen></iframe></p>'
)


def video_to_iframe(url: Optional[str]) -> Optional[str]:
    """
    Translate a YouTube or Vimeo page URL into an embed fragment.

    Returns ``None`` for anything else; the caller decides whether that is
    worth a warning.
    """
    if not url:
        return None
    match = YOUTUBE_RE.search(url)
    if match:
        return YOUTUBE_IFRAME.format(id=match.group(1))
    match = VIMEO_RE.search(url)
    if match:
        return VIMEO_IFRAME.format(id=match.group(1))
    return None


def append_video(body_html: str, url: Optional[str]) -> tuple[str, bool]:
    """
    Append the embed for ``url`` to ``body_html``.

    Returns the new body and whether the URL was recognized.  An empty URL
    leaves the body untouched and counts as recognized.
    """
    if not url:
        return body_html, True
    fragment = video_to_iframe(url)
    if fragment is None:
        return body_html, False
    return (body_html + "\n\n" + fragment) if body_html else fragment, True
