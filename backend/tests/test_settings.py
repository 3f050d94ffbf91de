"""
Tests for settings validation and CORS origin resolution.
"""

import importlib

import pytest

from shared.config.settings import Settings


STRONG_SECRET = "k" * 40


class TestProductionSecrets:

    def test_development_defaults_pass(self):
        assert Settings(environment="development").validate_production_secrets() == []

    def test_production_rejects_defaults(self):
        errors = Settings(environment="production").validate_production_secrets()

        assert any("JWT_SECRET" in e for e in errors)
        assert any("DEBUG" in e for e in errors)
        assert any("ALLOWED_ORIGINS" in e for e in errors)

    def test_production_with_real_values(self):
        configured = Settings(
            environment="production",
            jwt_secret=STRONG_SECRET,
            debug=False,
            allowed_origins="https://pos.example.com",
        )
        assert configured.validate_production_secrets() == []

    def test_tax_rates_are_bounded(self):
        errors = Settings(state_tax_bps=12_000).validate_production_secrets()
        assert errors == ["STATE_TAX_BPS must be between 0 and 10000 basis points"]

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("LOCAL_TAX_BPS", "225")
        monkeypatch.setenv("LOGIN_RATE_LIMIT", "3")

        loaded = Settings()

        assert loaded.local_tax_bps == 225
        assert loaded.login_rate_limit == 3


class TestCorsOrigins:

    def test_defaults_to_localhost(self, monkeypatch):
        from rest_api.core import cors

        monkeypatch.setattr(cors.settings, "allowed_origins", "")
        assert cors.get_cors_origins() == cors.DEFAULT_CORS_ORIGINS

    def test_parses_comma_list(self, monkeypatch):
        from rest_api.core import cors

        monkeypatch.setattr(cors.settings, "allowed_origins", "https://a.example, https://b.example,")
        assert cors.get_cors_origins() == ["https://a.example", "https://b.example"]


class TestStartupConfiguration:

    def test_production_refuses_insecure_settings(self, monkeypatch):
        lifespan = importlib.import_module("rest_api.core.lifespan")

        monkeypatch.setattr(lifespan.settings, "environment", "production")
        monkeypatch.setattr(lifespan.settings, "allowed_origins", "")

        with pytest.raises(RuntimeError, match="ALLOWED_ORIGINS"):
            lifespan.check_configuration()

    def test_development_only_logs(self, monkeypatch):
        lifespan = importlib.import_module("rest_api.core.lifespan")

        monkeypatch.setattr(lifespan.settings, "environment", "development")
        monkeypatch.setattr(lifespan.settings, "local_tax_bps", 20_000)

        lifespan.check_configuration()
