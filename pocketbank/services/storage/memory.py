"""
In-Memory Storage

Used by the tests and by the web front-end's activity view.
Nothing here survives the process.
"""

from collections import deque
from typing import Optional

from pocketbank.models.account import Account
from pocketbank.models.audit import AuditEvent
from pocketbank.services.storage.interface import (
    AccountStorageInterface,
    AuditStorageInterface,
)


class InMemoryAccountStorage(AccountStorageInterface):
    """
    Registry snapshot held in memory.

    Stores deep copies, so mutating an account after save() does not
    change what load() returns.
    """

    def __init__(self, accounts: Optional[list[Account]] = None):
        self._accounts: Optional[list[Account]] = None
        self.save_count = 0
        if accounts is not None:
            self._accounts = [a.model_copy(deep=True) for a in accounts]

    @property
    def location(self) -> str:
        return "memory"

    def exists(self) -> bool:
        return self._accounts is not None

    def load(self) -> list[Account]:
        if self._accounts is None:
            return []
        return [a.model_copy(deep=True) for a in self._accounts]

    def save(self, accounts: list[Account]) -> None:
        self._accounts = [a.model_copy(deep=True) for a in accounts]
        self.save_count += 1


class InMemoryAuditStorage(AuditStorageInterface):
    """Bounded, append-only event buffer (oldest events fall off)."""

    def __init__(self, capacity: int = 1000):
        self._events: deque[AuditEvent] = deque(maxlen=capacity)

    def __len__(self) -> int:
        return len(self._events)

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    def get_events_by_account(
        self,
        account_name: str,
        limit: Optional[int] = None,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.account_name == account_name]
        if limit is not None:
            events = events[-limit:] if limit > 0 else []
        return events

    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
