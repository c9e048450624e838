"""
Account Store

Owns the registry: the ordered list of accounts, in creation order.
Registration, login and every committed change go through here.

DESIGN DECISION: Persist before acknowledge. Every change is written to
the snapshot before the caller sees success. If the write fails, the
in-memory registry is put back the way it was and StorageError
propagates, so memory and disk never disagree.

The store hands out deep copies. Callers mutate a copy and give it back
through commit(); nothing outside the store can change the registry.
"""

from typing import Iterator, Optional, Union

from pydantic import ValidationError

from pocketbank.audit import AuditLogger
from pocketbank.config import LedgerSettings
from pocketbank.errors import (
    CapacityExceeded,
    CorruptSnapshotError,
    DuplicateIdentity,
    InvalidCredentials,
    InvalidInput,
    LedgerError,
    StorageError,
)
from pocketbank.models.account import Account, AccountHandle
from pocketbank.services.storage import AccountStorageInterface
from pocketbank.validation.validator import as_money, validate_name, validate_pin


class AccountStore:
    """
    The account registry.

    Usage:
        store = AccountStore(JsonSnapshotStorage("accounts.json"))
        store.load()
        handle = store.register("alice", 1234)
        handle = store.authenticate("alice", 1234)
    """

    def __init__(
        self,
        storage: AccountStorageInterface,
        settings: Optional[LedgerSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._settings = settings or LedgerSettings()
        self._audit = audit_logger
        self._accounts: list[Account] = []

    @property
    def storage(self) -> AccountStorageInterface:
        return self._storage

    @property
    def settings(self) -> LedgerSettings:
        return self._settings

    @property
    def capacity(self) -> int:
        return self._settings.max_accounts

    @property
    def is_full(self) -> bool:
        return len(self._accounts) >= self._settings.max_accounts

    @property
    def accounts(self) -> list[Account]:
        """Copies of every account, in creation order."""
        return [a.model_copy(deep=True) for a in self._accounts]

    def __len__(self) -> int:
        return len(self._accounts)

    def __iter__(self) -> Iterator[Account]:
        return iter(self.accounts)

    # =========================================================================
    # REGISTRATION AND LOGIN
    # =========================================================================

    def register(self, name: str, pin) -> AccountHandle:
        """
        Open a new account with the starting balance.

        Checks, in order:
        1. Name and PIN format (InvalidInput)
        2. Registry capacity (CapacityExceeded)
        3. Name or PIN already taken (DuplicateIdentity)

        The new account is on disk before the handle is returned.
        """
        try:
            name = validate_name(name, self._settings.max_name_length)
            pin = validate_pin(pin)

            if self.is_full:
                raise CapacityExceeded(
                    f"Maximum number of accounts ({self._settings.max_accounts}) reached"
                )

            for existing in self._accounts:
                if existing.name == name or existing.pin == pin:
                    raise DuplicateIdentity("An account with this name or PIN already exists")

            account = Account(
                name=name,
                pin=pin,
                cash_balance=as_money(self._settings.starting_balance),
            )

            self._accounts.append(account)
            try:
                self.persist()
            except StorageError as e:
                self._accounts.pop()
                self._log_save_failed(name, e)
                raise
        except LedgerError as e:
            if self._audit:
                self._audit.log_rejected(
                    name if isinstance(name, str) else None, "register", e
                )
            raise

        if self._audit:
            self._audit.log_account_registered(account.name, account.cash_balance)
        return account.handle

    def authenticate(self, name: str, pin) -> AccountHandle:
        """
        Find the account matching both name and PIN.

        Raises:
            InvalidCredentials: If no account matches
        """
        try:
            pin = validate_pin(pin)
        except InvalidInput:
            pin = None

        if pin is not None:
            for account in self._accounts:
                if account.name == name and account.pin == pin:
                    if self._audit:
                        self._audit.log_login(account.name, succeeded=True)
                    return account.handle

        if self._audit:
            self._audit.log_login(name if isinstance(name, str) else "", succeeded=False)
        raise InvalidCredentials("Invalid name or PIN")

    # =========================================================================
    # LOOKUP AND COMMIT
    # =========================================================================

    def _index_of(self, handle: Union[AccountHandle, str]) -> int:
        name = handle.name if isinstance(handle, AccountHandle) else handle
        for index, account in enumerate(self._accounts):
            if account.name == name:
                return index
        raise InvalidInput(f"Unknown account: {name!r}")

    def get(self, handle: Union[AccountHandle, str]) -> Account:
        """Resolve a handle to a copy of its account."""
        return self._accounts[self._index_of(handle)].model_copy(deep=True)

    def commit(self, account: Account) -> Account:
        """
        Replace the stored account with a changed copy and persist.

        The account is re-validated first, so a negative balance or
        holding can never be stored. On a failed write the previous
        version is restored and StorageError propagates.
        """
        index = self._index_of(account.name)

        try:
            updated = Account.model_validate(account.model_dump())
        except ValidationError as e:
            raise InvalidInput(f"Account {account.name!r} would become invalid: {e.errors()[0]['msg']}")

        previous = self._accounts[index]
        self._accounts[index] = updated
        try:
            self.persist()
        except StorageError as e:
            self._accounts[index] = previous
            self._log_save_failed(account.name, e)
            raise

        return updated.model_copy(deep=True)

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def persist(self) -> None:
        """Write the full registry, overwriting the previous snapshot."""
        self._storage.save(self._accounts)

    def load(self) -> int:
        """
        Replace the registry with the stored snapshot.

        A missing snapshot is an empty registry.

        Returns:
            Number of accounts loaded

        Raises:
            CorruptSnapshotError: If the snapshot is unreadable or breaks
                the uniqueness or capacity rules
        """
        accounts = self._storage.load()
        self._install(accounts)

        if self._audit:
            self._audit.log_snapshot_loaded(len(accounts), self._storage.location)
        return len(accounts)

    def import_accounts(self, accounts: list[Account], source: str) -> int:
        """
        Replace the registry with accounts read from another format,
        then persist them in the current one.
        """
        previous = self._accounts
        self._install(accounts)
        try:
            self.persist()
        except StorageError as e:
            self._accounts = previous
            self._log_save_failed(None, e)
            raise

        if self._audit:
            self._audit.log_snapshot_migrated(len(accounts), source)
        return len(accounts)

    def _install(self, accounts: list[Account]) -> None:
        if len(accounts) > self._settings.max_accounts:
            raise CorruptSnapshotError(
                f"Snapshot holds {len(accounts)} accounts, "
                f"more than the maximum of {self._settings.max_accounts}"
            )

        names = set()
        pins = set()
        for account in accounts:
            if account.name in names:
                raise CorruptSnapshotError(f"Duplicate account name in snapshot: {account.name!r}")
            if account.pin in pins:
                raise CorruptSnapshotError(f"Duplicate PIN in snapshot (account {account.name!r})")
            names.add(account.name)
            pins.add(account.pin)

        self._accounts = [a.model_copy(deep=True) for a in accounts]

    def _log_save_failed(self, account_name: Optional[str], error: Exception) -> None:
        if self._audit:
            self._audit.log_save_failed(account_name, str(error))
