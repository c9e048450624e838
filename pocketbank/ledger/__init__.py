"""Ledger core: the account registry and the operations on it."""

from pocketbank.ledger.engine import LedgerEngine
from pocketbank.ledger.store import AccountStore

__all__ = ["AccountStore", "LedgerEngine"]
