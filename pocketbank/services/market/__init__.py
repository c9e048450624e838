"""Simulated market package."""

from pocketbank.services.market.price_feed import (
    PRICE_BANDS,
    PriceFeed,
    resolve_asset,
    resolve_currency,
)

__all__ = [
    "PRICE_BANDS",
    "PriceFeed",
    "resolve_asset",
    "resolve_currency",
]
