"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap the JSON snapshot file for a database later
2. Use in-memory storage for testing
3. Import old snapshot formats behind the same contract
4. Keep the ledger decoupled from the storage implementation

The interface is intentionally small: the ledger always reads and writes
the WHOLE registry. There is no per-account update and no append log.
"""

from abc import ABC, abstractmethod
from typing import Optional

from pocketbank.errors import CorruptSnapshotError, StorageError
from pocketbank.models.account import Account
from pocketbank.models.audit import AuditEvent


class AccountStorageInterface(ABC):
    """
    Abstract interface for registry snapshot storage.

    Any storage implementation (JSON file, in-memory, a database)
    must implement these methods.
    """

    @property
    @abstractmethod
    def location(self) -> str:
        """Human-readable description of where the snapshot lives."""
        pass

    @abstractmethod
    def exists(self) -> bool:
        """Is there a snapshot to load?"""
        pass

    @abstractmethod
    def load(self) -> list[Account]:
        """
        Read the full registry.

        Returns:
            Accounts in creation order. An absent snapshot is an
            empty registry, not an error.

        Raises:
            CorruptSnapshotError: If the snapshot exists but is unreadable
            StorageError: If the snapshot cannot be read at all
        """
        pass

    @abstractmethod
    def save(self, accounts: list[Account]) -> None:
        """
        Overwrite the snapshot with the full registry.

        Args:
            accounts: Every account, in creation order

        Raises:
            StorageError: If the write fails
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit event storage.

    Audit events are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event.

        Returns:
            True if stored successfully
        """
        pass

    @abstractmethod
    def get_events_by_account(
        self,
        account_name: str,
        limit: Optional[int] = None,
    ) -> list[AuditEvent]:
        """
        Get events for one account, oldest first.

        Args:
            account_name: The account holder name
            limit: Keep only the most recent `limit` events
        """
        pass

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).
        """
        pass


__all__ = [
    "AccountStorageInterface",
    "AuditStorageInterface",
    "CorruptSnapshotError",
    "StorageError",
]
