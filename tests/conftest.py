"""
Shared fixtures for Pocket Bank tests.

Everything runs against in-memory storage and a seeded price feed
unless a test asks for a file (tmp_path).
"""

import pytest

from pocketbank.audit import AuditLogger
from pocketbank.config import LedgerSettings, MarketSettings
from pocketbank.errors import StorageError
from pocketbank.ledger import AccountStore, LedgerEngine
from pocketbank.services.market import PriceFeed
from pocketbank.services.storage import InMemoryAccountStorage, InMemoryAuditStorage


class FlakyAccountStorage(InMemoryAccountStorage):
    """In-memory storage whose writes can be switched to fail."""

    def __init__(self, accounts=None):
        super().__init__(accounts)
        self.fail = False

    def save(self, accounts):
        if self.fail:
            raise StorageError("disk full")
        super().save(accounts)


@pytest.fixture
def ledger_settings():
    return LedgerSettings()


@pytest.fixture
def market_settings():
    return MarketSettings(seed=7)


@pytest.fixture
def account_storage():
    return FlakyAccountStorage()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def store(account_storage, ledger_settings, audit_logger):
    return AccountStore(account_storage, ledger_settings, audit_logger)


@pytest.fixture
def price_feed(market_settings):
    return PriceFeed(market_settings)


@pytest.fixture
def engine(store, price_feed, ledger_settings, audit_logger):
    return LedgerEngine(store, price_feed, ledger_settings, audit_logger)


@pytest.fixture
def alice(store):
    """A registered account with the starting balance."""
    return store.register("alice", 1234)
