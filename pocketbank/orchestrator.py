"""
Application Wiring for Pocket Bank

This module builds the object graph both drivers (console and web) use:

    storage -> AccountStore -> LedgerEngine
                     \\-> Session
    PriceFeed ------------/
    AuditLogger (shared by all of them)

DESIGN DECISION: No module-level singletons apart from cached settings.
Every driver gets its own components from create_app_components(), and
the tests build theirs the same way with in-memory storage.

On startup the registry is loaded from the JSON snapshot. When there is
no snapshot yet but the old console program's accounts.dat is present,
those accounts are imported and immediately saved as JSON.
"""

from pathlib import Path
from typing import NamedTuple, Optional, Union

import structlog

from pocketbank.audit import AuditLogger
from pocketbank.config import LedgerSettings, MarketSettings, get_settings
from pocketbank.ledger import AccountStore, LedgerEngine
from pocketbank.services.market import PriceFeed
from pocketbank.services.storage import (
    AccountStorageInterface,
    InMemoryAuditStorage,
    JsonSnapshotStorage,
    import_legacy_snapshot,
)
from pocketbank.session import Session

logger = structlog.get_logger(__name__)


class AppComponents(NamedTuple):
    store: AccountStore
    engine: LedgerEngine
    price_feed: PriceFeed
    session: Session
    audit_logger: AuditLogger


def load_registry(
    store: AccountStore,
    legacy_file: Optional[Union[str, Path]] = None,
) -> int:
    """
    Fill the store from its snapshot, migrating a legacy file if needed.

    Returns:
        Number of accounts in the registry
    """
    if store.storage.exists() or legacy_file is None:
        return store.load()

    legacy_path = Path(legacy_file)
    if not legacy_path.exists():
        return store.load()

    logger.warning(
        "legacy_snapshot_found",
        legacy_path=str(legacy_path),
        target=store.storage.location,
    )
    accounts = import_legacy_snapshot(legacy_path)
    return store.import_accounts(accounts, str(legacy_path))


def create_app_components(
    data_file: Optional[Union[str, Path]] = None,
    seed: Optional[int] = None,
    storage: Optional[AccountStorageInterface] = None,
    ledger_settings: Optional[LedgerSettings] = None,
    market_settings: Optional[MarketSettings] = None,
    legacy_file: Optional[Union[str, Path]] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        data_file: JSON snapshot path (defaults to POCKETBANK_DATA_FILE)
        seed: Seed for market moves (defaults to POCKETBANK_MARKET_SEED)
        storage: Use this backend instead of a JSON file (tests)
        ledger_settings: Override ledger settings
        market_settings: Override market settings
        legacy_file: accounts.dat to migrate from. Defaults to
                    POCKETBANK_LEGACY_DATA_FILE for file-backed storage;
                    never used with an explicit storage backend.

    Returns:
        AppComponents(store, engine, price_feed, session, audit_logger)

    Raises:
        CorruptSnapshotError: If the snapshot (or legacy file) is unreadable
        StorageError: If the snapshot cannot be read or the migration
            cannot be saved
    """
    ledger_settings = ledger_settings or get_settings().ledger
    market_settings = market_settings or get_settings().market

    audit_logger = AuditLogger(InMemoryAuditStorage())

    if storage is None:
        storage = JsonSnapshotStorage(
            data_file or ledger_settings.data_file,
            retry_attempts=ledger_settings.persist_retry_attempts,
            retry_wait_seconds=ledger_settings.persist_retry_wait_seconds,
        )
        if legacy_file is None:
            legacy_file = ledger_settings.legacy_data_file

    store = AccountStore(storage, ledger_settings, audit_logger)
    count = load_registry(store, legacy_file)
    logger.info("registry_ready", accounts=count, location=storage.location)

    price_feed = PriceFeed(market_settings, seed=seed)
    engine = LedgerEngine(store, price_feed, ledger_settings, audit_logger)
    session = Session(store, audit_logger)

    return AppComponents(
        store=store,
        engine=engine,
        price_feed=price_feed,
        session=session,
        audit_logger=audit_logger,
    )
