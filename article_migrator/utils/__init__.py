"""
Utility helpers used by the migration tool.

This subpackage exposes convenience functions for structured run reports,
redirect map generation, configuration pre-flight checks and logging setup.
"""

from .errors import ERRORS, configure_reports, report_error, report_ok
from .labels import normalize_label, split_list_option
from .logging_setup import configure_logging
from .pre_flight_checks import (
    PreFlightCheckError,
    run_clear_pre_flight_checks,
    run_migrate_pre_flight_checks,
)
from .redirects import generate_redirects_csv

__all__ = [
    "ERRORS",
    "configure_reports",
    "report_error",
    "report_ok",
    "normalize_label",
    "split_list_option",
    "configure_logging",
    "PreFlightCheckError",
    "run_clear_pre_flight_checks",
    "run_migrate_pre_flight_checks",
    "generate_redirects_csv",
]
