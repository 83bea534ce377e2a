"""Console and file logging for command line runs."""

from __future__ import annotations

import logging
import os
from typing import Optional

CONSOLE_FORMAT = "[%(levelname)s] %(message)s"
FILE_FORMAT = "%(levelname)s: %(message)s"


def configure_logging(level: str = "INFO", log_file: Optional[str] = "reports/migration/migration.log") -> None:
    """Send records to stdout and append them to ``log_file``."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in list(root.handlers):
        root.removeHandler(handler)

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    root.addHandler(console)

    if log_file:
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        root.addHandler(file_handler)
