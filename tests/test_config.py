"""Tests for settings loading and backend selection."""

import pytest
from pydantic import ValidationError

from finance_tracker.config import (
    AppSettings,
    AuthSettings,
    DatabaseSettings,
    get_settings,
    validate_all_settings,
)
from finance_tracker.services.storage import InMemoryLedgerStorage, SQLiteLedgerStorage, create_storage


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    """Isolate from any .env file and ambient variables."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "DATABASE_BACKEND", "DATABASE_SQLITE_PATH", "AUTH_JWT_SECRET",
        "AUTH_OWNER_CLAIM", "LOG_LEVEL", "LOG_JSON",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestAppSettings:
    """Tests for application settings."""

    def test_defaults(self):
        settings = AppSettings()
        assert settings.app_environment == "development"
        assert settings.log_level == "INFO"
        assert settings.log_json is True

    def test_log_level_is_normalized(self):
        assert AppSettings(log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level_rejected(self):
        with pytest.raises(ValidationError):
            AppSettings(log_level="verbose")

    def test_color_lookup(self):
        settings = AppSettings(category_colors={"Pets": "#123456"}, default_category_color="#000000")
        assert settings.color_for("Pets") == "#123456"
        assert settings.color_for("Food & Dining") == "#000000"

    def test_default_palette(self):
        settings = AppSettings()
        assert settings.color_for("Food & Dining") == "#ef4444"
        assert settings.color_for("Unlisted") == "#6b7280"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "warning")
        monkeypatch.setenv("LOG_JSON", "false")
        settings = AppSettings()
        assert settings.log_level == "WARNING"
        assert settings.log_json is False


class TestDatabaseAndAuthSettings:
    """Tests for prefixed sub-settings."""

    def test_database_defaults(self):
        settings = DatabaseSettings()
        assert settings.backend == "memory"
        assert settings.connect_attempts == 3

    def test_database_prefix(self, monkeypatch):
        monkeypatch.setenv("DATABASE_BACKEND", "sqlite")
        monkeypatch.setenv("DATABASE_SQLITE_PATH", "/tmp/ledger.db")
        settings = DatabaseSettings()
        assert settings.backend == "sqlite"
        assert settings.sqlite_path == "/tmp/ledger.db"

    def test_unknown_backend_rejected(self):
        with pytest.raises(ValidationError):
            DatabaseSettings(backend="postgres")

    def test_jwt_secret_required(self):
        with pytest.raises(ValidationError):
            AuthSettings()

    def test_auth_prefix(self, monkeypatch):
        monkeypatch.setenv("AUTH_JWT_SECRET", "from-the-environment")
        monkeypatch.setenv("AUTH_OWNER_CLAIM", "sub")
        settings = AuthSettings()
        assert settings.jwt_secret == "from-the-environment"
        assert settings.owner_claim == "sub"
        assert settings.jwt_algorithm == "HS256"


class TestValidateAllSettings:
    """Tests for the startup check."""

    def test_reports_missing_secret(self):
        results = validate_all_settings()
        assert results["database"] is True
        assert results["app"] is True
        assert results["auth"] is False
        assert "jwt_secret" in results["auth_error"]

    def test_all_valid(self, monkeypatch):
        monkeypatch.setenv("AUTH_JWT_SECRET", "from-the-environment")
        results = validate_all_settings()
        assert results == {"database": True, "auth": True, "app": True}


class TestCreateStorage:
    """Tests for backend selection."""

    def test_memory_backend(self):
        assert isinstance(create_storage(DatabaseSettings()), InMemoryLedgerStorage)

    def test_sqlite_backend(self, tmp_path):
        settings = DatabaseSettings(backend="sqlite", sqlite_path=str(tmp_path / "finance.db"))
        assert isinstance(create_storage(settings), SQLiteLedgerStorage)

    def test_defaults_from_environment(self, monkeypatch):
        monkeypatch.setenv("DATABASE_BACKEND", "sqlite")
        assert isinstance(create_storage(), SQLiteLedgerStorage)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
