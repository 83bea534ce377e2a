"""
Generation of redirect mapping CSV files.

The :func:`generate_redirects_csv` helper writes a CSV file containing the
mapping of legacy article paths to their new destination paths.  Aliases are
carried over by the migration, but internal links written against the old
``/node/<id>`` form still need 301 redirects so that they continue to work.
"""

from __future__ import annotations

import csv
import os
from typing import Dict, Iterable


def generate_redirects_csv(
    entries: Iterable[Dict[str, str]], *, new_base: str = "", out_path: str = "reports/redirect_map.csv"
) -> str:
    """Generate a CSV mapping old article paths to new article URLs.

    Parameters
    ----------
    entries:
        Iterable of dictionaries with at least ``OldPath`` and ``NewPath``
        keys.  ``Alias`` is written when the article carried one over.
    new_base:
        Base URL for the destination site.  When given, it is prefixed to
        ``NewPath`` so the CSV holds absolute targets.
    out_path:
        Location of the CSV file to be written.  The parent directory is
        created automatically.

    Returns
    -------
    str
        The path of the generated CSV file.
    """
    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    with open(out_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["OldPath", "NewURL", "Alias"])
        for entry in entries:
            new_path = entry.get("NewPath", "")
            new_url = f"{new_base.rstrip('/')}{new_path}" if new_base else new_path
            writer.writerow([entry.get("OldPath", ""), new_url, entry.get("Alias") or ""])
    return out_path
