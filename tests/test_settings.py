"""Tests for environment-driven configuration."""

import pytest
from decimal import Decimal
from pathlib import Path

from pydantic import ValidationError

from pocketbank.config import (
    LedgerSettings,
    LoggingSettings,
    MarketSettings,
    get_settings,
)


class TestLedgerSettings:
    """Tests for LedgerSettings."""

    def test_defaults(self):
        settings = LedgerSettings()
        assert settings.data_file == Path("accounts.json")
        assert settings.legacy_data_file == Path("accounts.dat")
        assert settings.max_accounts == 100
        assert settings.max_name_length == 49
        assert settings.starting_balance == Decimal("1000.00")
        assert settings.interest_rate == Decimal("0.05")
        assert settings.loan_amount == Decimal("500.00")
        assert settings.asset_purchase_amount == Decimal("100.00")

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("POCKETBANK_STARTING_BALANCE", "2500.00")
        monkeypatch.setenv("POCKETBANK_MAX_ACCOUNTS", "5")
        settings = LedgerSettings()
        assert settings.starting_balance == Decimal("2500.00")
        assert settings.max_accounts == 5

    def test_invalid_override_rejected(self, monkeypatch):
        monkeypatch.setenv("POCKETBANK_LOAN_AMOUNT", "-1")
        with pytest.raises(ValidationError):
            LedgerSettings()


class TestMarketSettings:
    """Tests for MarketSettings."""

    def test_defaults(self):
        settings = MarketSettings()
        assert settings.crypto_price == Decimal("150.00")
        assert settings.eur_rate == Decimal("1.10")
        assert settings.seed is None

    def test_seed_from_environment(self, monkeypatch):
        monkeypatch.setenv("POCKETBANK_MARKET_SEED", "42")
        assert MarketSettings().seed == 42


class TestLoggingSettings:
    """Tests for LoggingSettings."""

    def test_level_is_normalized(self):
        assert LoggingSettings(level="debug").level == "DEBUG"

    def test_unknown_level_rejected(self):
        with pytest.raises(ValidationError):
            LoggingSettings(level="chatty")

    def test_json_output_from_environment(self, monkeypatch):
        monkeypatch.setenv("POCKETBANK_LOG_JSON_OUTPUT", "false")
        assert LoggingSettings().json_output is False


class TestGetSettings:
    """Tests for the cached settings root."""

    def test_cached(self):
        assert get_settings() is get_settings()

    def test_sub_settings_read_environment(self, monkeypatch):
        monkeypatch.setenv("POCKETBANK_INTEREST_RATE", "0.10")
        assert get_settings().ledger.interest_rate == Decimal("0.10")
