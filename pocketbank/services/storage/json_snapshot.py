"""
JSON Snapshot Storage

DESIGN DECISION: The registry is stored as one versioned JSON document
(see LedgerSnapshot) because:
1. It is readable and diffable by the account holder
2. Decimals round-trip exactly (serialized as strings)
3. A schema_version field lets future layouts migrate cleanly
4. The declared account_count catches truncated or hand-edited files

TRADEOFFS:
- Whole-file rewrite on every mutation (fine for a 100-account registry)
- No journal: a crash mid-write leaves the previous snapshot in place
  because we write to a temporary file and rename it over the old one
"""

import os
from pathlib import Path
from typing import Union

from pydantic import ValidationError
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from pocketbank.errors import CorruptSnapshotError, StorageError
from pocketbank.models.account import Account, LedgerSnapshot
from pocketbank.services.storage.interface import AccountStorageInterface


class JsonSnapshotStorage(AccountStorageInterface):
    """
    File-backed registry snapshot.

    Transient write failures (OSError) are retried with exponential
    backoff before being reported as StorageError.
    """

    def __init__(
        self,
        path: Union[str, Path],
        retry_attempts: int = 3,
        retry_wait_seconds: float = 0.05,
    ):
        self._path = Path(path)
        self._retry_attempts = retry_attempts
        self._retry_wait_seconds = retry_wait_seconds

    @property
    def path(self) -> Path:
        return self._path

    @property
    def location(self) -> str:
        return str(self._path)

    def exists(self) -> bool:
        return self._path.exists()

    def load(self) -> list[Account]:
        """Read and validate the snapshot; absent file means empty registry."""
        if not self._path.exists():
            return []

        try:
            raw = self._path.read_bytes()
        except OSError as e:
            raise StorageError(f"Failed to read snapshot {self._path}: {e}")

        try:
            snapshot = LedgerSnapshot.model_validate_json(raw)
        except ValidationError as e:
            raise CorruptSnapshotError(
                f"Snapshot {self._path} is corrupt: {e.error_count()} problem(s), "
                f"first: {e.errors()[0]['msg']}"
            )

        return snapshot.accounts

    def save(self, accounts: list[Account]) -> None:
        """Overwrite the snapshot with the full registry."""
        payload = LedgerSnapshot.of(accounts).model_dump_json(indent=2)

        try:
            for attempt in Retrying(
                stop=stop_after_attempt(self._retry_attempts),
                wait=wait_exponential(multiplier=self._retry_wait_seconds, max=1),
                retry=retry_if_exception_type(OSError),
                reraise=True,
            ):
                with attempt:
                    self._write(payload)
        except OSError as e:
            raise StorageError(f"Failed to save snapshot to {self._path}: {e}")

    def _write(self, payload: str) -> None:
        """Write to a sibling temp file, then atomically replace the snapshot."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            tmp_path.write_text(payload, encoding="utf-8")
            os.replace(tmp_path, self._path)
        finally:
            # no-op after a successful replace
            tmp_path.unlink(missing_ok=True)
