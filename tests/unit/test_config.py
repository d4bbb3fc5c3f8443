"""Unit tests for settings loading and validation."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from vehicle_cover.core.config import Settings, clear_settings_cache, get_settings


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings()

        assert settings.api_env == "development"
        assert settings.is_development
        assert not settings.is_production
        assert settings.depreciation_cap_percent == 50.0
        assert settings.claim_payout_cap_multiplier == 1.0
        assert settings.default_page_size == 10

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DEPRECIATION_CAP_PERCENT", "40")
        monkeypatch.setenv("EXPIRY_SWEEP_ENABLED", "false")

        settings = Settings()

        assert settings.depreciation_cap_percent == 40.0
        assert settings.expiry_sweep_enabled is False

    def test_reads_dotenv_in_working_directory(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        (tmp_path / ".env").write_text(
            "CLAIM_PAYOUT_CAP_MULTIPLIER=2.5\nPASSWORD_RESET_EXPIRY_MINUTES=15\n"
        )
        monkeypatch.chdir(tmp_path)

        settings = Settings()

        assert settings.claim_payout_cap_multiplier == 2.5
        assert settings.password_reset_expiry_minutes == 15

    def test_pool_max_below_min_rejected(self) -> None:
        with pytest.raises(ValidationError, match="database_pool_max"):
            Settings(database_pool_min=5, database_pool_max=2)

    def test_cors_origin_must_be_url(self) -> None:
        with pytest.raises(ValidationError, match="Invalid CORS origin"):
            Settings(api_cors_origins=["localhost:3000"])

    def test_test_secrets_refused_in_production(self) -> None:
        with pytest.raises(ValidationError, match="cannot be used in production"):
            Settings(api_env="production")

    def test_unknown_environment_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(api_env="qa")

    def test_frozen(self) -> None:
        settings = Settings()

        with pytest.raises(ValidationError):
            settings.api_port = 9000  # type: ignore[misc]


def test_get_settings_cached_until_cleared() -> None:
    first = get_settings()

    assert get_settings() is first
    clear_settings_cache()
    assert get_settings() is not first
