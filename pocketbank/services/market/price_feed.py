"""
Simulated Market Price Feed

Holds the current per-unit price of each asset and the exchange rate of
each foreign currency. The ledger reads prices at the moment of every
operation; only the driver moves the market (advance()).

DESIGN DECISION: No real market data. Prices move by a whole-percent
jitter drawn uniformly from a fixed band per asset:

    crypto  [-15%, +20%]
    gold    [ -5%, +10%]
    silver  [-10%, +15%]

The worst move is -15%, so a strictly positive price stays strictly
positive. Prices keep full Decimal precision; they are only rounded for
display. Exchange rates are static unless set_rate() is called.
"""

import random
from decimal import Decimal
from typing import Optional, Union

import structlog

from pocketbank.config import MarketSettings
from pocketbank.errors import InvalidInput
from pocketbank.models.market import (
    AssetKind,
    CurrencyKind,
    MarketUpdate,
    PriceChange,
    PriceSnapshot,
)
from pocketbank.validation.validator import validate_positive_quantity

logger = structlog.get_logger(__name__)

# Inclusive whole-percent bands for advance()
PRICE_BANDS: dict[AssetKind, tuple[int, int]] = {
    AssetKind.CRYPTO: (-15, 20),
    AssetKind.GOLD: (-5, 10),
    AssetKind.SILVER: (-10, 15),
}


def resolve_asset(kind: Union[AssetKind, str]) -> AssetKind:
    """Accept an AssetKind or its name ("gold", "GOLD")."""
    if isinstance(kind, AssetKind):
        return kind
    try:
        return AssetKind(str(kind).strip().lower())
    except ValueError:
        raise InvalidInput(f"Unknown asset: {kind!r}")


def resolve_currency(kind: Union[CurrencyKind, str]) -> CurrencyKind:
    """Accept a CurrencyKind or its code ("eur", "EUR")."""
    if isinstance(kind, CurrencyKind):
        return kind
    try:
        return CurrencyKind(str(kind).strip().upper())
    except ValueError:
        raise InvalidInput(f"Unknown currency: {kind!r}")


class PriceFeed:
    """
    Current asset prices and exchange rates.

    Usage:
        feed = PriceFeed(seed=7)
        feed.current_price("gold")      # Decimal("60.00")
        update = feed.advance()
        update.change_for(AssetKind.GOLD).change_percent
    """

    def __init__(
        self,
        settings: Optional[MarketSettings] = None,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ):
        settings = settings or MarketSettings()

        self._prices: dict[AssetKind, Decimal] = {
            AssetKind.CRYPTO: settings.crypto_price,
            AssetKind.GOLD: settings.gold_price,
            AssetKind.SILVER: settings.silver_price,
        }
        self._rates: dict[CurrencyKind, Decimal] = {
            CurrencyKind.EUR: settings.eur_rate,
            CurrencyKind.GBP: settings.gbp_rate,
            CurrencyKind.INR: settings.inr_rate,
        }

        if rng is None:
            rng = random.Random(seed if seed is not None else settings.seed)
        self._rng = rng

    def current_price(self, asset: Union[AssetKind, str]) -> Decimal:
        return self._prices[resolve_asset(asset)]

    def current_rate(self, currency: Union[CurrencyKind, str]) -> Decimal:
        """USD value of one unit of the currency."""
        return self._rates[resolve_currency(currency)]

    def set_rate(self, currency: Union[CurrencyKind, str], rate) -> None:
        self._rates[resolve_currency(currency)] = validate_positive_quantity(rate)

    def advance(self) -> MarketUpdate:
        """Move every asset price by a random whole percentage within its band."""
        changes = []
        for asset, (low, high) in PRICE_BANDS.items():
            percent = self._rng.randint(low, high)
            old_price = self._prices[asset]
            new_price = old_price * (Decimal(100 + percent) / Decimal(100))
            self._prices[asset] = new_price
            changes.append(
                PriceChange(
                    asset=asset,
                    old_price=old_price,
                    new_price=new_price,
                    change_percent=percent,
                )
            )

        logger.info(
            "market_advanced",
            changes={c.asset.value: c.change_percent for c in changes},
        )
        return MarketUpdate(changes=changes, snapshot=self.snapshot())

    def snapshot(self) -> PriceSnapshot:
        return PriceSnapshot(prices=dict(self._prices), rates=dict(self._rates))
