"""Services package."""

from pocketbank.services.market import PriceFeed
from pocketbank.services.storage import (
    AccountStorageInterface,
    AuditStorageInterface,
    CorruptSnapshotError,
    InMemoryAccountStorage,
    InMemoryAuditStorage,
    JsonSnapshotStorage,
    StorageError,
    import_legacy_snapshot,
)

__all__ = [
    # Market
    "PriceFeed",
    # Storage services
    "AccountStorageInterface",
    "AuditStorageInterface",
    "CorruptSnapshotError",
    "InMemoryAccountStorage",
    "InMemoryAuditStorage",
    "JsonSnapshotStorage",
    "StorageError",
    "import_legacy_snapshot",
]
