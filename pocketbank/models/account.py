"""
Core Data Models for Pocket Bank

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce the account invariants at runtime (no negative funds)
2. Provide clear validation error messages
3. Be serializable for the snapshot file and for logging
4. Support the audit trail

DESIGN DECISION: Money is Decimal everywhere. Floats only appear when
importing the old binary snapshot, and are converted on the way in.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from pocketbank.models.market import AssetKind, CurrencyKind, utcnow


SNAPSHOT_SCHEMA_VERSION = 1


# =============================================================================
# ENUMS
# =============================================================================

class OperationType(str, Enum):
    """Every ledger operation that produces a receipt."""
    REGISTER = "register"
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    PURCHASE_ASSET = "purchase_asset"
    TAKE_LOAN = "take_loan"
    REPAY_LOAN = "repay_loan"
    ACCRUE_INTEREST = "accrue_interest"
    CONVERT_TO_FOREIGN = "convert_to_foreign"
    CONVERT_FROM_FOREIGN = "convert_from_foreign"


class TransactionStatus(str, Enum):
    """
    Outcome of a ledger operation that did not raise.

    CANCELLED and DECLINED receipts never change the account.
    """
    COMPLETED = "completed"
    CANCELLED = "cancelled"   # User declined the confirmation
    DECLINED = "declined"     # Informational refusal (e.g. cannot repay loan yet)


# =============================================================================
# ACCOUNT
# =============================================================================

def _zero_assets() -> dict[AssetKind, Decimal]:
    return {kind: Decimal("0") for kind in AssetKind}


def _zero_currencies() -> dict[CurrencyKind, Decimal]:
    return {kind: Decimal("0") for kind in CurrencyKind}


class AccountHandle(BaseModel):
    """
    Reference to a registered account.

    Returned by registration and login, passed into every engine call.
    Names are unique and immutable, so the name is the identity.
    """
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)

    def __str__(self) -> str:
        return self.name


class Account(BaseModel):
    """
    One registered customer.

    CRITICAL: Every monetary and unit field is non-negative.
    The engine checks funds BEFORE debiting, and the store re-validates
    every account before it is committed, so a negative value can never
    reach the snapshot.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    # Identity (immutable after registration)
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        pattern=r"^[A-Za-z]+$",
        description="Alphabetic account holder name"
    )
    pin: int = Field(
        ...,
        ge=1000,
        le=9999,
        description="4-digit PIN"
    )

    # Cash
    cash_balance: Decimal = Field(
        default=Decimal("0.00"),
        ge=0,
        description="Cash balance in USD"
    )
    loan_outstanding: Decimal = Field(
        default=Decimal("0.00"),
        ge=0,
        description="Outstanding loan in USD (0 = no loan)"
    )

    # Holdings
    asset_holdings: dict[AssetKind, Decimal] = Field(
        default_factory=_zero_assets,
        description="Units held per asset"
    )
    currency_holdings: dict[CurrencyKind, Decimal] = Field(
        default_factory=_zero_currencies,
        description="Units held per foreign currency"
    )

    @field_validator('asset_holdings')
    @classmethod
    def fill_assets(cls, v: dict) -> dict:
        """Every asset is present; missing ones are zero."""
        holdings = _zero_assets()
        holdings.update(v)
        if any(units < 0 for units in holdings.values()):
            raise ValueError("Asset holdings cannot be negative")
        return holdings

    @field_validator('currency_holdings')
    @classmethod
    def fill_currencies(cls, v: dict) -> dict:
        """Every currency is present; missing ones are zero."""
        holdings = _zero_currencies()
        holdings.update(v)
        if any(units < 0 for units in holdings.values()):
            raise ValueError("Currency holdings cannot be negative")
        return holdings

    @property
    def handle(self) -> AccountHandle:
        return AccountHandle(name=self.name)

    @property
    def has_loan(self) -> bool:
        return self.loan_outstanding > 0


# =============================================================================
# RESULTS
# =============================================================================

class TransactionReceipt(BaseModel):
    """
    Result of a ledger operation.

    Failed operations raise instead of returning a receipt; a receipt
    with a non-COMPLETED status means "nothing happened, and that is fine".
    """

    receipt_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(default_factory=utcnow)

    account_name: str
    operation: OperationType
    status: TransactionStatus = TransactionStatus.COMPLETED

    # What moved
    amount: Optional[Decimal] = Field(
        default=None,
        description="Cash amount involved (USD), or foreign units for sales of currency"
    )
    units: Optional[Decimal] = Field(
        default=None,
        description="Units of the instrument credited or debited"
    )
    instrument: Optional[str] = Field(
        default=None,
        description="Asset or currency involved"
    )
    price: Optional[Decimal] = Field(
        default=None,
        description="Price or exchange rate used"
    )

    # Account state afterwards
    cash_balance: Decimal
    loan_outstanding: Decimal

    message: str = ""

    @property
    def succeeded(self) -> bool:
        return self.status == TransactionStatus.COMPLETED


class HoldingLine(BaseModel):
    """One line of the statement: units held and their USD value."""

    instrument: str
    units: Decimal
    unit_value: Decimal = Field(..., description="Price or rate used for valuation")
    value: Decimal


class AccountStatement(BaseModel):
    """Full status report for one account."""

    account_name: str
    generated_at: datetime = Field(default_factory=utcnow)

    cash_balance: Decimal
    loan_outstanding: Decimal

    assets: list[HoldingLine] = Field(default_factory=list)
    currencies: list[HoldingLine] = Field(default_factory=list)

    total_assets: Decimal
    total_forex: Decimal
    net_worth: Decimal


class LoanStatus(BaseModel):
    """What the loan desk shows before asking for confirmation."""

    account_name: str
    loan_outstanding: Decimal
    cash_balance: Decimal
    loan_amount_offered: Decimal

    @property
    def has_loan(self) -> bool:
        return self.loan_outstanding > 0

    @property
    def can_repay(self) -> bool:
        return self.has_loan and self.cash_balance >= self.loan_outstanding


# =============================================================================
# PERSISTENCE
# =============================================================================

class LedgerSnapshot(BaseModel):
    """
    The on-disk registry document.

    account_count is written explicitly so a truncated or hand-edited
    file is detected instead of silently loading fewer accounts.
    """

    schema_version: int = Field(default=SNAPSHOT_SCHEMA_VERSION)
    saved_at: datetime = Field(default_factory=utcnow)
    account_count: int = Field(..., ge=0)
    accounts: list[Account] = Field(default_factory=list)

    @field_validator('schema_version')
    @classmethod
    def validate_version(cls, v: int) -> int:
        if v != SNAPSHOT_SCHEMA_VERSION:
            raise ValueError(f"Unsupported snapshot schema version: {v}")
        return v

    @model_validator(mode='after')
    def validate_count(self) -> 'LedgerSnapshot':
        """Declared count must match the records present."""
        if self.account_count != len(self.accounts):
            raise ValueError(
                f"Snapshot declares {self.account_count} accounts "
                f"but contains {len(self.accounts)}"
            )
        return self

    @classmethod
    def of(cls, accounts: list[Account]) -> 'LedgerSnapshot':
        return cls(account_count=len(accounts), accounts=list(accounts))
