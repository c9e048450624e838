"""
Audit Models for Pocket Bank

Every ledger action, successful or rejected, is recorded as an event.
This provides:
1. Traceability of every balance change
2. Debugging information when an operation is refused
3. A "recent activity" view for the account holder

DESIGN DECISION: Audit events are append-only. We never modify them.
"""

import json
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from pocketbank.models.market import utcnow


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every ledger operation has its own event type.
    """
    # Registry
    ACCOUNT_REGISTERED = "account_registered"
    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"
    LOGGED_OUT = "logged_out"

    # Cash
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    INTEREST_ACCRUED = "interest_accrued"

    # Investments
    ASSET_PURCHASED = "asset_purchased"

    # Loans
    LOAN_TAKEN = "loan_taken"
    LOAN_REPAID = "loan_repaid"
    LOAN_REQUEST_CANCELLED = "loan_request_cancelled"
    LOAN_REPAYMENT_DECLINED = "loan_repayment_declined"

    # Forex
    CURRENCY_BOUGHT = "currency_bought"
    CURRENCY_SOLD = "currency_sold"

    # Market
    MARKET_UPDATED = "market_updated"

    # Persistence
    SNAPSHOT_LOADED = "snapshot_loaded"
    SNAPSHOT_MIGRATED = "snapshot_migrated"
    SAVE_FAILED = "save_failed"

    # Failures
    OPERATION_REJECTED = "operation_rejected"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - which account is this about?
    account_name: Optional[str] = Field(
        default=None,
        description="Account the event relates to"
    )
    amount: Optional[Decimal] = Field(
        default=None,
        description="Cash amount involved, if any"
    )

    # Event details
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "account_name": self.account_name,
            "amount": str(self.amount) if self.amount is not None else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }

    def to_activity_row(self) -> list:
        """
        Convert to a flat row for the recent-activity table.

        Returns columns in order:
        [timestamp, event_type, severity, account_name, amount, description, details_json]
        """
        return [
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.account_name or "",
            str(self.amount) if self.amount is not None else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.account_registered("alice")
        event = AuditEventBuilder.operation_rejected("alice", "withdraw", error)
    """

    @staticmethod
    def account_registered(account_name: str, starting_balance: Decimal) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_REGISTERED,
            account_name=account_name,
            amount=starting_balance,
            description=f"Account registered: {account_name}",
        )

    @staticmethod
    def login(account_name: str, succeeded: bool) -> AuditEvent:
        if succeeded:
            return AuditEvent(
                event_type=AuditEventType.LOGIN_SUCCEEDED,
                account_name=account_name,
                description=f"Login: {account_name}",
            )
        return AuditEvent(
            event_type=AuditEventType.LOGIN_FAILED,
            severity=AuditSeverity.WARNING,
            account_name=account_name,
            description="Login failed: invalid credentials",
        )

    @staticmethod
    def logged_out(account_name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGGED_OUT,
            account_name=account_name,
            description=f"Logout: {account_name}",
        )

    @staticmethod
    def ledger_operation(
        event_type: AuditEventType,
        account_name: str,
        amount: Optional[Decimal],
        description: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            account_name=account_name,
            amount=amount,
            description=description,
            details=details or {},
        )

    @staticmethod
    def operation_rejected(
        account_name: Optional[str],
        operation: str,
        error: Exception,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OPERATION_REJECTED,
            severity=AuditSeverity.WARNING,
            account_name=account_name,
            description=f"{operation} rejected",
            details={"operation": operation},
            error_code=getattr(error, "code", type(error).__name__),
            error_message=str(error),
        )

    @staticmethod
    def market_updated(changes: dict[str, int]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MARKET_UPDATED,
            description="Market prices updated",
            details={"change_percent": changes},
        )

    @staticmethod
    def snapshot_loaded(account_count: int, source: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_LOADED,
            description=f"Loaded {account_count} account(s)",
            details={"account_count": account_count, "source": source},
        )

    @staticmethod
    def snapshot_migrated(account_count: int, legacy_path: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_MIGRATED,
            severity=AuditSeverity.WARNING,
            description=f"Imported {account_count} account(s) from legacy binary snapshot",
            details={"account_count": account_count, "legacy_path": legacy_path},
        )

    @staticmethod
    def save_failed(account_name: Optional[str], error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            account_name=account_name,
            description="Snapshot write failed; change rolled back",
            error_code="storage_error",
            error_message=error_message,
        )
