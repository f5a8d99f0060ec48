"""
Tests for application settings.
"""

import pytest
from pydantic import ValidationError

from library_api.config import Settings


class TestSettingsValidation:
    def test_levels_and_environment_are_normalized(self):
        settings = Settings(log_level="debug", environment="PRODUCTION")

        assert settings.log_level == "DEBUG"
        assert settings.environment == "production"
        assert settings.is_production

    @pytest.mark.parametrize(
        "overrides",
        [
            {"log_level": "LOUD"},
            {"environment": "qa"},
            {"session_same_site": "sometimes"},
            {"session_max_age": 0},
        ],
    )
    def test_rejects_unknown_values(self, overrides):
        with pytest.raises(ValidationError):
            Settings(**overrides)

    def test_same_site_none_needs_secure_cookie(self):
        with pytest.raises(ValidationError):
            Settings(session_same_site="none", session_https_only=False)

    @pytest.mark.parametrize(
        "raw, expected",
        [("", ""), ("api", "/api"), ("/api/", "/api"), (" /v1 ", "/v1")],
    )
    def test_api_prefix(self, raw, expected):
        assert Settings(api_prefix=raw).api_prefix == expected


class TestComputedSettings:
    def test_allowed_origins_list(self):
        settings = Settings(allowed_origins="https://a.example, ,https://b.example")

        assert settings.allowed_origins_list == ["https://a.example", "https://b.example"]

    @pytest.mark.parametrize(
        "overrides, secure",
        [
            ({"environment": "development"}, False),
            ({"environment": "production"}, True),
            ({"session_same_site": "none"}, True),
            ({"environment": "production", "session_https_only": False}, False),
            ({"session_https_only": True}, True),
        ],
    )
    def test_session_cookie_secure(self, overrides, secure):
        assert Settings(**overrides).session_cookie_secure is secure

    def test_google_configured(self):
        assert Settings(google_client_id="id", google_client_secret="s").google_configured
        assert not Settings(google_client_id="id", google_client_secret=None).google_configured
