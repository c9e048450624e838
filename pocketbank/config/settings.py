"""
Configuration Management for Pocket Bank

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All business constants live here, not in the engine.
Starting balance, loan size, interest rate and the market's opening
prices are all overridable with POCKETBANK_* variables or a .env file.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """Business rules and persistence settings for the ledger."""

    model_config = SettingsConfigDict(
        env_prefix="POCKETBANK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Persistence
    data_file: Path = Field(
        default=Path("accounts.json"),
        description="Path of the versioned JSON snapshot"
    )
    legacy_data_file: Path = Field(
        default=Path("accounts.dat"),
        description="Path of a binary snapshot written by the old console program"
    )
    persist_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="How many times a failed snapshot write is attempted"
    )
    persist_retry_wait_seconds: float = Field(
        default=0.05,
        ge=0.0,
        le=5.0,
        description="Base wait between snapshot write attempts"
    )

    # Registry limits
    max_accounts: int = Field(
        default=100,
        ge=1,
        description="Maximum number of registered accounts"
    )
    max_name_length: int = Field(
        default=49,
        ge=1,
        le=200,
        description="Maximum length of an account holder name"
    )

    # Business rules
    starting_balance: Decimal = Field(
        default=Decimal("1000.00"),
        ge=0,
        description="Cash balance credited to every new account"
    )
    interest_rate: Decimal = Field(
        default=Decimal("0.05"),
        ge=0,
        le=1,
        description="Interest paid on the cash balance per accrual"
    )
    loan_amount: Decimal = Field(
        default=Decimal("500.00"),
        gt=0,
        description="Fixed size of a loan"
    )
    asset_purchase_amount: Decimal = Field(
        default=Decimal("100.00"),
        gt=0,
        description="Fixed cash amount spent per asset purchase"
    )
    currency_symbol: str = Field(
        default="$",
        max_length=3,
        description="Symbol of the base currency (USD)"
    )


class MarketSettings(BaseSettings):
    """Opening prices and exchange rates for the simulated market."""

    model_config = SettingsConfigDict(
        env_prefix="POCKETBANK_MARKET_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    crypto_price: Decimal = Field(default=Decimal("150.00"), gt=0)
    gold_price: Decimal = Field(default=Decimal("60.00"), gt=0)
    silver_price: Decimal = Field(default=Decimal("25.00"), gt=0)

    # Value of one foreign unit in USD
    eur_rate: Decimal = Field(default=Decimal("1.10"), gt=0)
    gbp_rate: Decimal = Field(default=Decimal("1.27"), gt=0)
    inr_rate: Decimal = Field(default=Decimal("0.012"), gt=0)

    seed: Optional[int] = Field(
        default=None,
        description="Seed for market fluctuations (None = nondeterministic)"
    )


class LoggingSettings(BaseSettings):
    """Structured logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="POCKETBANK_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    level: str = Field(
        default="INFO",
        description="Minimum log level"
    )
    json_output: bool = Field(
        default=True,
        description="Render log lines as JSON (False = human-readable console output)"
    )

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Only accept standard logging level names."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def market(self) -> MarketSettings:
        return MarketSettings()

    @property
    def logging(self) -> LoggingSettings:
        return LoggingSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()
