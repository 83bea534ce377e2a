"""
Structured reporting helpers for migration errors and successes.

The :mod:`article_migrator.utils.errors` module centralizes the writing of
report entries for both failed and successful operations during a run.  Each
entry is appended to a JSON Lines file under ``reports/migration`` so that the
information can be reviewed or parsed after a run.

Two public functions are provided:

``report_error``
    Record a recoverable failure for one item (an article, a term, a file or
    a body image).  An optional exception can be supplied and will be
    serialized to the report.

``report_ok``
    Record a successful step for one item.  Additional key/value information
    can be attached to the entry via the ``extra`` parameter.

The ``ERRORS`` dictionary maps event codes to human readable messages.  Codes
not present in the dictionary fall back to the code itself.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

# Mapping of event codes used throughout the migration to descriptive messages.
# The keys include both error and success codes as the same lookup is used by
# :func:`report_error` and :func:`report_ok`.
ERRORS: Dict[str, str] = {
    "FILE_MISSING": "Source file row not found",
    "FILE_FETCH": "Failed to fetch file from the files base location",
    "BODY_IMAGE": "Inline body image could not be transferred and was removed",
    "TERM_MISSING": "Source term row not found",
    "VIDEO_UNRECOGNIZED": "Video URL not recognized, embed skipped",
    "DOMAIN_UNSUPPORTED": "Destination has no domain access field, assignment skipped",
    "ARTICLE_LOAD": "Mapped destination article could not be loaded for update",
    "ARTICLE_FAILED": "Unexpected error while migrating article",
    "ALIAS_FAILED": "Alias could not be migrated",
    "ARTICLE_CREATED": "Article created",
    "ARTICLE_UPDATED": "Article updated",
}

_REPORT_DIR = os.path.join("reports", "migration")


def configure_reports(report_dir: str) -> None:
    """Point the JSON Lines reports at ``report_dir``."""
    global _REPORT_DIR
    _REPORT_DIR = report_dir


def _write_jsonl(filename: str, data: Dict[str, Any]) -> None:
    """Append ``data`` as a JSON object followed by a newline to ``filename``."""
    os.makedirs(_REPORT_DIR, exist_ok=True)
    with open(os.path.join(_REPORT_DIR, filename), "a", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, default=str)
        f.write("\n")


def _entry(code: str, item: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "code": code,
        "message": ERRORS.get(code, code),
        "kind": item.get("kind"),
        "source_id": item.get("source_id"),
        "title": item.get("title"),
    }


def report_error(code: str, item: Dict[str, Any], exc: Optional[Exception] = None) -> Dict[str, Any]:
    """Record an error event for ``item``.

    Parameters
    ----------
    code:
        A key identifying the type of error.  If ``code`` is present in
        :data:`ERRORS` its value will be used as the message.
    item:
        Context for the failing item.  Only the ``kind``, ``source_id`` and
        ``title`` keys are referenced if present.
    exc:
        Optional exception instance that triggered the error.  The string
        representation of the exception will be included in the entry.

    Returns
    -------
    dict
        The entry that was written, so callers can keep it in a run report.
    """
    entry = _entry(code, item)
    if exc is not None:
        entry["error"] = str(exc)
    logger.warning("%s - %s %s", entry["message"], item.get("kind", ""), item.get("source_id", ""))
    _write_jsonl("errors.jsonl", entry)
    return entry


def report_ok(code: str, item: Dict[str, Any], extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Record a successful event for ``item``.

    Parameters
    ----------
    code:
        A key identifying the type of event.
    item:
        Context for the item, as for :func:`report_error`.
    extra:
        Optional dictionary of additional fields to merge into the entry.
    """
    entry = _entry(code, item)
    if extra:
        entry.update(extra)
    _write_jsonl("success.jsonl", entry)
    return entry
