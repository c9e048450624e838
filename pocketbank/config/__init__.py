"""Configuration package."""

from pocketbank.config.settings import (
    LedgerSettings,
    LoggingSettings,
    MarketSettings,
    Settings,
    get_settings,
)

__all__ = [
    "LedgerSettings",
    "LoggingSettings",
    "MarketSettings",
    "Settings",
    "get_settings",
]
