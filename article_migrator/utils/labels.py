from __future__ import annotations

from html import unescape
import re


def normalize_label(value: str) -> str:
    """Unescape HTML entities and collapse inner whitespace.

    Preserves original casing but trims leading/trailing spaces
    and converts sequences of whitespace to a single space.  Term names
    are compared and stored in this form, so ``"Local&nbsp;news"`` and
    ``"Local news "`` name the same destination term.
    """
    if not value:
        return ""
    text = unescape(value).replace("\xa0", " ").strip()
    # Collapse multiple whitespace to single space
    text = re.sub(r"\s+", " ", text)
    return text


def split_list_option(value: str) -> list[str]:
    """Split a comma separated command line option, dropping empty items."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]
