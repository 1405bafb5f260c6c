"""Tests for checkout settings and the storefront log configuration."""

import logging
import tomllib
from pathlib import Path
from types import SimpleNamespace

import pytest
import storefront.domain as storefront_module
import structlog
from storefront.config import CheckoutSettings
from storefront.domain import storefront
from storefront.utils.logging import add_context, clear_context, configure_logging, get_log_level


class TestCheckoutSettings:
    def test_reads_test_overlay(self):
        settings = CheckoutSettings.from_domain(storefront)
        assert settings.currency == "GBP"
        assert settings.payment_gateway == "fake"
        assert settings.payment_timeout == 1.0
        assert settings.lock_timeout == 5.0

    def test_env_overrides_gateway_url(self, monkeypatch):
        monkeypatch.setenv("PAYMENT_GATEWAY_URL", "https://pay.example")
        monkeypatch.setenv("PAYMENT_GATEWAY_API_KEY", "sk_test")
        settings = CheckoutSettings.from_domain(storefront)
        assert settings.payment_gateway_url == "https://pay.example"
        assert settings.payment_gateway_api_key == "sk_test"

    def test_lock_timeout_must_outlast_payment_and_commit(self):
        domain = SimpleNamespace(
            config={
                "custom": {
                    "payment_timeout_seconds": 10.0,
                    "commit_timeout_seconds": 5.0,
                    "lock_timeout_seconds": 5.0,
                }
            }
        )
        with pytest.raises(ValueError, match="lock_timeout_seconds"):
            CheckoutSettings.from_domain(domain)

    @pytest.mark.parametrize("section", ["custom", "test", "production"])
    def test_shipped_overlays_satisfy_lock_timeout(self, section):
        config = tomllib.loads((Path(storefront_module.__file__).parent / "domain.toml").read_text())
        custom = config["custom"] if section == "custom" else config[section]["custom"]

        CheckoutSettings.from_domain(SimpleNamespace(config={"custom": custom}))

    def test_defaults_satisfy_lock_timeout(self):
        settings = CheckoutSettings.from_domain(SimpleNamespace(config={}))
        assert settings.lock_timeout >= settings.payment_timeout + settings.commit_timeout


class TestLogging:
    def test_log_level_follows_environment(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.setenv("ENVIRONMENT", "production")
        assert get_log_level() == "INFO"
        monkeypatch.setenv("ENVIRONMENT", "test")
        assert get_log_level() == "WARNING"

    def test_explicit_level_wins(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        assert get_log_level() == "ERROR"

    def test_configure_creates_log_files(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "test")
        root = logging.getLogger()
        saved = root.handlers[:]
        try:
            configure_logging(tmp_path / "logs")
            assert (tmp_path / "logs").is_dir()
            assert len(root.handlers) == 3
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers = saved
            structlog.reset_defaults()

    def test_context_binding(self):
        add_context(request_id="req-1")
        try:
            assert structlog.contextvars.get_contextvars()["request_id"] == "req-1"
        finally:
            clear_context()
        assert "request_id" not in structlog.contextvars.get_contextvars()
