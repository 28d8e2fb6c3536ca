"""Unit tests for Settings validation."""

import pytest
from pydantic import ValidationError

from gatekeeper.core.config import Settings
from gatekeeper.core.enums import Environment


@pytest.mark.unit
class TestSettings:
    def test_defaults(self):
        settings = Settings()

        assert settings.effective_permissions_ttl_seconds == 900
        assert settings.max_check_many_items == 50
        assert settings.bootstrap_role_name == "USER"

    @pytest.mark.parametrize("ttl", [0, 86401])
    def test_rejects_out_of_range_ttl(self, ttl):
        with pytest.raises(ValidationError):
            Settings(effective_permissions_ttl_seconds=ttl)

    def test_rejects_empty_batch_limit(self):
        with pytest.raises(ValidationError):
            Settings(max_check_many_items=0)

    def test_strips_trailing_slash_from_base_url(self):
        settings = Settings(api_base_url="https://authz.example.com/")

        assert settings.api_base_url == "https://authz.example.com"

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("EFFECTIVE_PERMISSIONS_TTL_SECONDS", "60")

        settings = Settings()

        assert settings.environment is Environment.PRODUCTION
        assert settings.is_production is True
        assert settings.effective_permissions_ttl_seconds == 60

    def test_environment_flags(self):
        settings = Settings(environment=Environment.CI)

        assert settings.is_ci is True
        assert settings.is_development is False
        assert settings.is_testing is False
