"""
UI layer for chbp.

Console output and progress reporting.
"""

from .console import console, err_console
from .progress import (
    RichProgressReporter,
    CIProgressReporter,
    NullProgressReporter,
    default_reporter,
)
from .reports import (
    report_structure,
    report_sql,
    report_internal_links,
    report_external_links,
)

__all__ = [
    "console",
    "err_console",
    "RichProgressReporter",
    "CIProgressReporter",
    "NullProgressReporter",
    "default_reporter",
    "report_structure",
    "report_sql",
    "report_internal_links",
    "report_external_links",
]
