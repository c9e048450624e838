"""
Legacy Binary Snapshot Import

The old console program wrote its registry as raw C structs
(accounts.dat). This module reads that layout so existing customers
carry over to the JSON snapshot.

Layout (little-endian, as written on x86/x86-64):
- int32 account count
- count x 88-byte records:
    char  name[50]   NUL-terminated
    (2 bytes alignment padding)
    int32 pin
    float32 balance, loan
    float32 crypto, gold, silver
    float32 eur, gbp, inr

DESIGN DECISION: Import only. We never write this format again; the
migrated registry is saved as a versioned JSON snapshot.
"""

import struct
from decimal import Decimal
from pathlib import Path
from typing import Union

from pydantic import ValidationError

from pocketbank.errors import CorruptSnapshotError, LedgerError, StorageError
from pocketbank.models.account import Account
from pocketbank.models.market import AssetKind, CurrencyKind
from pocketbank.validation.validator import as_money, as_quantity

LEGACY_COUNT = struct.Struct("<i")
LEGACY_RECORD = struct.Struct("<50s2xi8f")
LEGACY_NAME_LENGTH = 50


def _float_to_decimal(value: float) -> Decimal:
    # repr of the widened float32, e.g. 0.6666666865348816
    return as_quantity(repr(value))


def _decode_record(raw: bytes, index: int) -> Account:
    name_bytes, pin, balance, loan, crypto, gold, silver, eur, gbp, inr = (
        LEGACY_RECORD.unpack(raw)
    )

    try:
        name = name_bytes.split(b"\0", 1)[0].decode("ascii")
    except UnicodeDecodeError:
        raise CorruptSnapshotError(f"Record {index}: name is not ASCII")

    try:
        return Account(
            name=name,
            pin=pin,
            cash_balance=as_money(balance),
            loan_outstanding=as_money(loan),
            asset_holdings={
                AssetKind.CRYPTO: _float_to_decimal(crypto),
                AssetKind.GOLD: _float_to_decimal(gold),
                AssetKind.SILVER: _float_to_decimal(silver),
            },
            currency_holdings={
                CurrencyKind.EUR: _float_to_decimal(eur),
                CurrencyKind.GBP: _float_to_decimal(gbp),
                CurrencyKind.INR: _float_to_decimal(inr),
            },
        )
    except ValidationError as e:
        raise CorruptSnapshotError(
            f"Record {index}: invalid account data ({e.errors()[0]['msg']})"
        )
    except LedgerError as e:
        raise CorruptSnapshotError(f"Record {index}: {e}")


def decode_legacy_snapshot(data: bytes) -> list[Account]:
    """
    Decode a legacy binary registry.

    Raises:
        CorruptSnapshotError: If the data is truncated, the count does not
            match the records present, or a record is not a valid account
    """
    if len(data) < LEGACY_COUNT.size:
        raise CorruptSnapshotError("Legacy snapshot is missing its account count")

    (count,) = LEGACY_COUNT.unpack_from(data, 0)
    if count < 0:
        raise CorruptSnapshotError(f"Legacy snapshot declares a negative count ({count})")

    expected_size = LEGACY_COUNT.size + count * LEGACY_RECORD.size
    if len(data) != expected_size:
        raise CorruptSnapshotError(
            f"Legacy snapshot declares {count} accounts ({expected_size} bytes) "
            f"but is {len(data)} bytes long"
        )

    accounts = []
    for index in range(count):
        offset = LEGACY_COUNT.size + index * LEGACY_RECORD.size
        raw = data[offset:offset + LEGACY_RECORD.size]
        accounts.append(_decode_record(raw, index))

    return accounts


def import_legacy_snapshot(path: Union[str, Path]) -> list[Account]:
    """
    Read a legacy accounts.dat file.

    A missing file is an empty registry, matching the old program's
    first-run behaviour.
    """
    path = Path(path)
    if not path.exists():
        return []

    try:
        data = path.read_bytes()
    except OSError as e:
        raise StorageError(f"Failed to read legacy snapshot {path}: {e}")

    return decode_legacy_snapshot(data)
