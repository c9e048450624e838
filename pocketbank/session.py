"""
Session Context

Which account, if any, the console or web user is currently working as.
One session per driver; there is no global "current user".
"""

from typing import Optional

from pocketbank.audit import AuditLogger
from pocketbank.errors import NotLoggedIn
from pocketbank.ledger.store import AccountStore
from pocketbank.models.account import AccountHandle


class Session:
    """Login state for one driver."""

    def __init__(
        self,
        store: AccountStore,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit = audit_logger
        self._current: Optional[AccountHandle] = None

    @property
    def current(self) -> Optional[AccountHandle]:
        return self._current

    @property
    def is_authenticated(self) -> bool:
        return self._current is not None

    def login(self, name: str, pin) -> AccountHandle:
        """Authenticate and select the account. A failed login keeps the previous selection."""
        self._current = self._store.authenticate(name, pin)
        return self._current

    def logout(self) -> None:
        if self._current is not None and self._audit:
            self._audit.log_logout(self._current.name)
        self._current = None

    def require(self) -> AccountHandle:
        """The current account, or NotLoggedIn."""
        if self._current is None:
            raise NotLoggedIn("Please log in first")
        return self._current
