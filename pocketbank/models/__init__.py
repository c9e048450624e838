"""
Data Models Package

This package contains all Pydantic models used in Pocket Bank.
All data flowing through the system must conform to these schemas.
"""

from pocketbank.models.account import (
    SNAPSHOT_SCHEMA_VERSION,
    Account,
    AccountHandle,
    AccountStatement,
    HoldingLine,
    LedgerSnapshot,
    LoanStatus,
    OperationType,
    TransactionReceipt,
    TransactionStatus,
)
from pocketbank.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from pocketbank.models.market import (
    AssetKind,
    CurrencyKind,
    MarketUpdate,
    PriceChange,
    PriceSnapshot,
)

__all__ = [
    # Account models
    "SNAPSHOT_SCHEMA_VERSION",
    "Account",
    "AccountHandle",
    "AccountStatement",
    "HoldingLine",
    "LedgerSnapshot",
    "LoanStatus",
    "OperationType",
    "TransactionReceipt",
    "TransactionStatus",
    # Market models
    "AssetKind",
    "CurrencyKind",
    "MarketUpdate",
    "PriceChange",
    "PriceSnapshot",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
