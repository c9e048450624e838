"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
The registry is stored as a versioned JSON snapshot; an in-memory backend
serves tests, and old binary snapshots can be imported.
"""

from pocketbank.services.storage.interface import (
    AccountStorageInterface,
    AuditStorageInterface,
    CorruptSnapshotError,
    StorageError,
)
from pocketbank.services.storage.json_snapshot import JsonSnapshotStorage
from pocketbank.services.storage.legacy_binary import (
    decode_legacy_snapshot,
    import_legacy_snapshot,
)
from pocketbank.services.storage.memory import (
    InMemoryAccountStorage,
    InMemoryAuditStorage,
)

__all__ = [
    # Interfaces
    "AccountStorageInterface",
    "AuditStorageInterface",
    # Exceptions
    "CorruptSnapshotError",
    "StorageError",
    # Implementations
    "InMemoryAccountStorage",
    "InMemoryAuditStorage",
    "JsonSnapshotStorage",
    # Legacy import
    "decode_legacy_snapshot",
    "import_legacy_snapshot",
]
