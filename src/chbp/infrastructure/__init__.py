"""
Infrastructure layer for chbp.

Contains adapter implementations for external collaborators (SQL engine, HTTP).
"""

from .clickhouse import ClickHouseLocalEngine
from .http import UrllibProber

__all__ = [
    "ClickHouseLocalEngine",
    "UrllibProber",
]
