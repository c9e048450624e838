"""
Audit Logger

Each registration, login, money movement, refusal and market move
becomes an AuditEvent. Events go to the structlog stream on stderr and,
when a backend is attached, into audit storage for the activity view.

A broken audit backend is reported in the log and otherwise ignored;
it never raises back into the ledger.
"""

import logging
import sys
from decimal import Decimal
from typing import Optional

import structlog

from pocketbank.config import LoggingSettings
from pocketbank.models.audit import AuditEvent, AuditEventBuilder, AuditEventType
from pocketbank.models.market import MarketUpdate
from pocketbank.services.storage import AuditStorageInterface


def configure_logging(settings: Optional[LoggingSettings] = None) -> None:
    """
    Configure structlog on top of the stdlib logging module.

    Call once at program start. JSON lines by default; set
    POCKETBANK_LOG_JSON_OUTPUT=false for human-readable console output.
    """
    settings = settings or LoggingSettings()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, settings.level),
    )
    logging.getLogger().setLevel(getattr(logging, settings.level))

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class AuditLogger:
    """
    Writes audit events to the structured log and, optionally, to an
    AuditStorageInterface backend that the drivers read activity from.
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Args:
            storage: Backend that keeps events for the activity view.
                    Without one, events only reach the log stream.
        """
        self._storage = storage
        self._logger = structlog.get_logger("pocketbank.audit")

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    def log(self, event: AuditEvent) -> bool:
        """
        Emit one event at the log level matching its severity.

        Returns False only when the storage backend failed to keep it.
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage is not None:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_account_registered(self, account_name: str, starting_balance: Decimal) -> None:
        self.log(AuditEventBuilder.account_registered(account_name, starting_balance))

    def log_login(self, account_name: str, succeeded: bool) -> None:
        self.log(AuditEventBuilder.login(account_name, succeeded))

    def log_logout(self, account_name: str) -> None:
        self.log(AuditEventBuilder.logged_out(account_name))

    def log_operation(
        self,
        event_type: AuditEventType,
        account_name: str,
        amount: Optional[Decimal],
        description: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log a successful (or informational) ledger operation."""
        self.log(
            AuditEventBuilder.ledger_operation(
                event_type=event_type,
                account_name=account_name,
                amount=amount,
                description=description,
                details=details,
            )
        )

    def log_rejected(
        self,
        account_name: Optional[str],
        operation: str,
        error: Exception,
    ) -> None:
        """Log a refused operation with its error code."""
        self.log(AuditEventBuilder.operation_rejected(account_name, operation, error))

    def log_market_update(self, update: MarketUpdate) -> None:
        self.log(
            AuditEventBuilder.market_updated(
                {c.asset.value: c.change_percent for c in update.changes}
            )
        )

    def log_snapshot_loaded(self, account_count: int, source: str) -> None:
        self.log(AuditEventBuilder.snapshot_loaded(account_count, source))

    def log_snapshot_migrated(self, account_count: int, legacy_path: str) -> None:
        self.log(AuditEventBuilder.snapshot_migrated(account_count, legacy_path))

    def log_save_failed(self, account_name: Optional[str], error_message: str) -> None:
        self.log(AuditEventBuilder.save_failed(account_name, error_message))

    def recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """Most recent stored events, newest first (empty without storage)."""
        if self._storage is None:
            return []
        return self._storage.get_recent_events(limit)

    def events_for(self, account_name: str, limit: Optional[int] = None) -> list[AuditEvent]:
        """Stored events for one account, oldest first (empty without storage)."""
        if self._storage is None:
            return []
        return self._storage.get_events_by_account(account_name, limit)
