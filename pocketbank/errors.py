"""
Ledger Error Taxonomy

Every failure the core can report is one of these exceptions.
All of them are recoverable: the operation that raised did not change
any account, and the driver (console or web) shows the message and
carries on.

Each class carries a stable `code` so drivers and the audit trail can
classify failures without matching on message text.
"""


class LedgerError(Exception):
    """Base exception for all ledger failures."""

    code = "ledger_error"


class InvalidInput(LedgerError):
    """A malformed or out-of-range primitive value (name, PIN, choice)."""

    code = "invalid_input"


class InvalidAmount(InvalidInput):
    """Amount is not a finite number, or not strictly positive where required."""

    code = "invalid_amount"


class NoActiveLoan(InvalidInput):
    """Loan repayment requested while no loan is outstanding."""

    code = "no_active_loan"


class NotLoggedIn(InvalidInput):
    """An account operation was requested without a selected account."""

    code = "not_logged_in"


class InvalidPIN(LedgerError):
    """PIN re-verification failed."""

    code = "invalid_pin"


class InvalidCredentials(InvalidPIN):
    """No account matches the given name and PIN."""

    code = "invalid_credentials"


class InsufficientFunds(LedgerError):
    """The cash balance (or foreign holding) does not cover the debit."""

    code = "insufficient_funds"


class DuplicateIdentity(LedgerError):
    """An account with the same name or the same PIN already exists."""

    code = "duplicate_identity"


class LoanAlreadyActive(LedgerError):
    """A second loan was requested before the first was repaid."""

    code = "loan_already_active"


class CapacityExceeded(LedgerError):
    """The registry already holds the maximum number of accounts."""

    code = "capacity_exceeded"


class StorageError(LedgerError):
    """Base exception for snapshot persistence failures."""

    code = "storage_error"


class CorruptSnapshotError(StorageError):
    """The snapshot exists but is truncated, unparseable or inconsistent."""

    code = "corrupt_snapshot"
