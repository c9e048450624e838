"""
Market Data Models

Instruments the ledger can hold, and the price/rate records the
price feed hands to the engine and the drivers.

Exchange rates are expressed as the value of ONE foreign unit in the
base currency (USD): EUR 1.10 means one euro is worth $1.10.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS - Finite set of instruments
# =============================================================================

class AssetKind(str, Enum):
    """Speculative assets an account can buy into."""
    CRYPTO = "crypto"
    GOLD = "gold"
    SILVER = "silver"


class CurrencyKind(str, Enum):
    """Foreign currencies held in the forex wallet."""
    EUR = "EUR"
    GBP = "GBP"
    INR = "INR"


# =============================================================================
# PRICE RECORDS
# =============================================================================

class PriceSnapshot(BaseModel):
    """
    Immutable view of the market at one moment.

    Every asset and every currency is always present.
    """
    model_config = ConfigDict(frozen=True)

    prices: dict[AssetKind, Decimal] = Field(
        ...,
        description="Per-unit USD price of each asset"
    )
    rates: dict[CurrencyKind, Decimal] = Field(
        ...,
        description="USD value of one unit of each foreign currency"
    )
    taken_at: datetime = Field(default_factory=utcnow)

    @field_validator('prices')
    @classmethod
    def validate_prices(cls, v: dict) -> dict:
        missing = set(AssetKind) - set(v)
        if missing:
            raise ValueError(f"Missing prices for: {sorted(k.value for k in missing)}")
        if any(price <= 0 for price in v.values()):
            raise ValueError("Asset prices must be strictly positive")
        return v

    @field_validator('rates')
    @classmethod
    def validate_rates(cls, v: dict) -> dict:
        missing = set(CurrencyKind) - set(v)
        if missing:
            raise ValueError(f"Missing rates for: {sorted(k.value for k in missing)}")
        if any(rate <= 0 for rate in v.values()):
            raise ValueError("Exchange rates must be strictly positive")
        return v


class PriceChange(BaseModel):
    """One asset's move during a market update."""

    asset: AssetKind
    old_price: Decimal = Field(..., gt=0)
    new_price: Decimal = Field(..., gt=0)
    change_percent: int = Field(
        ...,
        description="Whole-percent change applied to the old price"
    )


class MarketUpdate(BaseModel):
    """Result of advancing the price feed by one step."""

    changes: list[PriceChange] = Field(default_factory=list)
    snapshot: PriceSnapshot

    def change_for(self, asset: AssetKind) -> PriceChange:
        for change in self.changes:
            if change.asset == asset:
                return change
        raise KeyError(asset)
