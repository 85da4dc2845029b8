"""
Settings for the SQLite report store.

Values come from a property mapping (dotted names such as
``reporter.sqlite.path``), then environment variables, then defaults.

A networked database would also take a user and password. SQLite files have
no credentials, so reporter.sqlite.user and reporter.sqlite.password are
accepted and ignored.

Environment Variables:
    TEACUP_REPORT_DB_PATH: Database path (default: teacup_report.db)
    TEACUP_REPORT_DB_TIMEOUT: Seconds to wait on a locked database (default: 5.0)
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

logger = logging.getLogger(__name__)

PROPERTY_PREFIX = "reporter.sqlite."
IGNORED_PROPERTIES = ("user", "password")

DEFAULT_DB_PATH = "teacup_report.db"
DEFAULT_TIMEOUT = 5.0


def _lookup(properties: Mapping[str, str], name: str, env_var: str) -> str | None:
    value = properties.get(PROPERTY_PREFIX + name)
    if value is None:
        value = os.environ.get(env_var)
    return value


def get_db_path(properties: Mapping[str, str] | None = None) -> str:
    """
    Get the database path from properties, environment or default.

    Args:
        properties: Optional property mapping

    Returns:
        Path to the SQLite database file
    """
    value = _lookup(properties or {}, "path", "TEACUP_REPORT_DB_PATH")
    return value or DEFAULT_DB_PATH


def get_timeout(properties: Mapping[str, str] | None = None) -> float:
    """
    Get the lock timeout from properties, environment or default.

    Args:
        properties: Optional property mapping

    Returns:
        Seconds to wait for a locked database
    """
    value = _lookup(properties or {}, "timeout", "TEACUP_REPORT_DB_TIMEOUT")
    if value is None:
        return DEFAULT_TIMEOUT

    try:
        timeout = float(value)
    except ValueError:
        logger.warning(f"Invalid database timeout={value!r}, using default {DEFAULT_TIMEOUT}")
        return DEFAULT_TIMEOUT

    if timeout <= 0:
        logger.warning(f"Invalid database timeout={timeout}, using default {DEFAULT_TIMEOUT}")
        return DEFAULT_TIMEOUT
    return timeout


def ignore_credentials(properties: Mapping[str, str] | None = None) -> list[str]:
    """
    Log and drop credential properties a SQLite database cannot use.

    Args:
        properties: Optional property mapping

    Returns:
        Names of the properties that were ignored
    """
    ignored = [
        PROPERTY_PREFIX + name
        for name in IGNORED_PROPERTIES
        if (properties or {}).get(PROPERTY_PREFIX + name) is not None
    ]
    for name in ignored:
        logger.debug(f"Ignoring {name}: SQLite databases take no credentials")
    return ignored


@dataclass(frozen=True)
class ReporterSettings:
    """Resolved settings for a ReportStore."""

    db_path: str = DEFAULT_DB_PATH
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def load(cls, properties: Mapping[str, str] | None = None) -> "ReporterSettings":
        """Build settings from a property mapping and the environment."""
        ignore_credentials(properties)
        return cls(db_path=get_db_path(properties), timeout=get_timeout(properties))
