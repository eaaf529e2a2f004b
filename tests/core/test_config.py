"""Tests for application configuration."""
from pathlib import Path

import pytest
from pydantic import ValidationError

from core.config import Settings, get_settings


def _settings(**kwargs: object) -> Settings:
    return Settings(
        _env_file=None,
        database_url="postgresql+asyncpg://test",
        jwt_secret="secret",
        **kwargs,
    )


class TestCorsOriginsParsing:
    """Tests for CORS origins parsing from environment variables."""

    def test_parse_single_origin_string(self) -> None:
        """Single origin string is parsed correctly."""
        settings = _settings(CORS_ORIGINS="http://localhost:5173")
        assert settings.cors_origins == ["http://localhost:5173"]

    def test_parse_multiple_origins_with_whitespace(self) -> None:
        """Whitespace around comma-separated origins is stripped."""
        settings = _settings(CORS_ORIGINS="  http://localhost:5173 , https://poker.io  ")
        assert settings.cors_origins == ["http://localhost:5173", "https://poker.io"]

    def test_parse_trailing_comma(self) -> None:
        """Trailing comma is handled (empty entries filtered)."""
        settings = _settings(CORS_ORIGINS="http://localhost:5173,")
        assert settings.cors_origins == ["http://localhost:5173"]

    def test_parse_empty_string(self) -> None:
        """Empty string results in empty list."""
        settings = _settings(CORS_ORIGINS="")
        assert settings.cors_origins == []

    def test_default_cors_origins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Default CORS origins allow any origin."""
        monkeypatch.delenv("CORS_ORIGINS", raising=False)
        assert _settings().cors_origins == ["*"]


class TestDefaults:
    """Tests for default values."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Unset options fall back to their documented defaults."""
        for name in (
            "HOST", "PORT", "LOG_LEVEL", "DB_POOL_SIZE", "DB_MAX_OVERFLOW",
            "JWT_EXPIRY_DAYS", "BCRYPT_ROUNDS", "CREATE_SCHEMA_ON_STARTUP",
        ):
            monkeypatch.delenv(name, raising=False)
        settings = _settings()
        assert settings.host == "127.0.0.1"
        assert settings.port == 8080
        assert settings.log_level == "INFO"
        assert settings.db_pool_size == 10
        assert settings.db_max_overflow == 20
        assert settings.jwt_expiry_days == 7
        assert settings.bcrypt_rounds == 12
        assert settings.create_schema_on_startup is False


class TestRequiredAndBounds:
    """Tests for required fields and range checks."""

    def test_missing_jwt_secret_fails(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """The signing secret has no default."""
        monkeypatch.delenv("JWT_SECRET", raising=False)
        with pytest.raises(ValidationError):
            Settings(_env_file=None, database_url="postgresql+asyncpg://test")

    def test_empty_jwt_secret_fails(self) -> None:
        """An empty secret is rejected."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, database_url="postgresql+asyncpg://test", jwt_secret="")

    def test_missing_database_url_fails(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """DATABASE_URL is required."""
        monkeypatch.delenv("DATABASE_URL", raising=False)
        with pytest.raises(ValidationError):
            Settings(_env_file=None, jwt_secret="secret")

    @pytest.mark.parametrize("rounds", [3, 32])
    def test_bcrypt_rounds_out_of_range_fails(self, rounds: int) -> None:
        """bcrypt cost must be within 4-31."""
        with pytest.raises(ValidationError):
            _settings(bcrypt_rounds=rounds)


class TestSources:
    """Tests for where settings are read from."""

    def test_reads_environment_variables(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Settings are read from upper-case environment variables."""
        monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://env-host/db")
        monkeypatch.setenv("JWT_SECRET", "env-secret")
        monkeypatch.setenv("PORT", "9000")
        settings = Settings(_env_file=None)
        assert settings.database_url == "postgresql+asyncpg://env-host/db"
        assert settings.jwt_secret == "env-secret"
        assert settings.port == 9000

    def test_reads_toml_file_below_environment(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """poker-tracker.toml fills in values the environment doesn't set."""
        (tmp_path / "poker-tracker.toml").write_text(
            'DATABASE_URL = "postgresql+asyncpg://toml-host/db"\n'
            'JWT_SECRET = "toml-secret"\n'
            "PORT = 9100\n",
        )
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.delenv("JWT_SECRET", raising=False)
        monkeypatch.setenv("PORT", "9200")

        settings = Settings(_env_file=None)

        assert settings.database_url == "postgresql+asyncpg://toml-host/db"
        assert settings.jwt_secret == "toml-secret"
        assert settings.port == 9200


def test__get_settings__is_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    """get_settings returns the same instance until the cache is cleared."""
    monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://test")
    monkeypatch.setenv("JWT_SECRET", "secret")
    get_settings.cache_clear()
    try:
        assert get_settings() is get_settings()
    finally:
        get_settings.cache_clear()
