"""
Unit tests for teacup_persistence.config.

Tests the lookup order of report store settings: properties, environment,
then defaults.
"""

import logging

from teacup_persistence.config import (
    DEFAULT_DB_PATH,
    DEFAULT_TIMEOUT,
    ReporterSettings,
    get_db_path,
    get_timeout,
    ignore_credentials,
)
from teacup_persistence.sqlite_reporter import ReportStore


class TestDbPath:
    """Test suite for the database path setting."""

    def test_default(self, monkeypatch):
        """Test the default path when nothing is configured."""
        monkeypatch.delenv("TEACUP_REPORT_DB_PATH", raising=False)
        assert get_db_path() == DEFAULT_DB_PATH

    def test_environment(self, monkeypatch):
        """Test that the environment variable is used."""
        monkeypatch.setenv("TEACUP_REPORT_DB_PATH", "/tmp/env.db")
        assert get_db_path() == "/tmp/env.db"

    def test_property_overrides_environment(self, monkeypatch):
        """Test that properties win over the environment."""
        monkeypatch.setenv("TEACUP_REPORT_DB_PATH", "/tmp/env.db")
        properties = {"reporter.sqlite.path": "/tmp/prop.db"}
        assert get_db_path(properties) == "/tmp/prop.db"


class TestTimeout:
    """Test suite for the lock timeout setting."""

    def test_default(self, monkeypatch):
        """Test the default timeout."""
        monkeypatch.delenv("TEACUP_REPORT_DB_TIMEOUT", raising=False)
        assert get_timeout() == DEFAULT_TIMEOUT

    def test_property(self):
        """Test reading the timeout from properties."""
        assert get_timeout({"reporter.sqlite.timeout": "1.5"}) == 1.5

    def test_invalid_value_falls_back(self, caplog):
        """Test that a non-numeric timeout logs a warning and uses the default."""
        assert get_timeout({"reporter.sqlite.timeout": "soon"}) == DEFAULT_TIMEOUT
        assert "Invalid database timeout" in caplog.text

    def test_non_positive_value_falls_back(self, monkeypatch, caplog):
        """Test that zero or negative timeouts are rejected."""
        monkeypatch.setenv("TEACUP_REPORT_DB_TIMEOUT", "0")
        assert get_timeout() == DEFAULT_TIMEOUT
        assert "Invalid database timeout" in caplog.text


class TestReporterSettings:
    """Test suite for resolved settings."""

    def test_load_and_build_store(self, monkeypatch):
        """Test building a store from loaded settings."""
        monkeypatch.delenv("TEACUP_REPORT_DB_TIMEOUT", raising=False)
        settings = ReporterSettings.load({"reporter.sqlite.path": "/tmp/report.db"})

        assert settings == ReporterSettings(db_path="/tmp/report.db", timeout=DEFAULT_TIMEOUT)

        store = ReportStore.from_settings(settings)
        assert store.db_path == "/tmp/report.db"
        assert store.session_id is None

    def test_credentials_are_ignored(self, monkeypatch, caplog):
        """Test that user and password properties are accepted but unused."""
        monkeypatch.delenv("TEACUP_REPORT_DB_TIMEOUT", raising=False)
        caplog.set_level(logging.DEBUG, logger="teacup_persistence.config")
        properties = {
            "reporter.sqlite.path": "/tmp/report.db",
            "reporter.sqlite.user": "teacup",
            "reporter.sqlite.password": "secret",
        }

        settings = ReporterSettings.load(properties)

        assert settings == ReporterSettings(db_path="/tmp/report.db", timeout=DEFAULT_TIMEOUT)
        assert "Ignoring reporter.sqlite.user" in caplog.text
        assert "Ignoring reporter.sqlite.password" in caplog.text
        assert "secret" not in caplog.text

    def test_no_credentials_nothing_ignored(self):
        """Test that nothing is reported when no credentials are configured."""
        assert ignore_credentials({"reporter.sqlite.path": "/tmp/report.db"}) == []
        assert ignore_credentials(None) == []
