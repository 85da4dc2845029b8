"""
Teacup Persistence module.

This module contains the database implementation of the test reporter.
Currently supports SQLite, but can be extended to PostgreSQL, MySQL, etc.

The persistence layer depends on teacup_common for domain models and the
Reporter interface.
"""

from .config import ReporterSettings
from .sqlite_reporter import ReportStore

__all__ = ["ReportStore", "ReporterSettings"]
