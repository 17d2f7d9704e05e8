# src/ledger/layout.py — v1
"""Fixed binary layout of the ledger program account.

    [0, 247)        program header (authority, uuid, symbol, creators, ...)
    [247, 251)      committed item count, u32 little-endian
    [251, ...)      record array, one 240-byte record per slot

Each record:

    [0, 4)      name length, u32 little-endian
    [4, 36)     name, UTF-8, NUL padded
    [36, 40)    uri length, u32 little-endian
    [40, 240)   uri, UTF-8, NUL padded
"""

from __future__ import annotations

import struct

from batchmint.core.models import LedgerRecord

HEADER_SIZE = 247
ITEM_COUNT_OFFSET = HEADER_SIZE
RECORD_ARRAY_START = HEADER_SIZE + 4
RECORD_SIZE = 240

NAME_SLICE = slice(4, 36)
URI_SLICE = slice(40, 240)
MAX_NAME_LENGTH = NAME_SLICE.stop - NAME_SLICE.start
MAX_URI_LENGTH = URI_SLICE.stop - URI_SLICE.start

_U32 = struct.Struct("<I")


def _decode_field(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace").rstrip("\x00")


def record_offset(slot: int) -> int:
    return RECORD_ARRAY_START + RECORD_SIZE * slot


def decode_record(data: bytes, slot: int) -> LedgerRecord:
    """Decode the record at a slot. Slots past the end decode as empty."""
    start = record_offset(slot)
    raw = data[start:start + RECORD_SIZE]
    if len(raw) < RECORD_SIZE:
        return LedgerRecord(uri="", name="")
    return LedgerRecord(
        name=_decode_field(raw[NAME_SLICE]),
        uri=_decode_field(raw[URI_SLICE]),
    )


def decode_item_count(data: bytes) -> int:
    """Decode the committed item count field."""
    if len(data) < ITEM_COUNT_OFFSET + _U32.size:
        return 0
    return _U32.unpack_from(data, ITEM_COUNT_OFFSET)[0]


def _encode_field(value: str, width: int, label: str) -> bytes:
    raw = value.encode("utf-8")
    if len(raw) > width:
        raise ValueError(f"{label} exceeds {width} bytes: {value!r}")
    return _U32.pack(len(raw)) + raw.ljust(width, b"\x00")


def encode_record(record: LedgerRecord) -> bytes:
    """Encode one record in account layout."""
    return (
        _encode_field(record.name, MAX_NAME_LENGTH, "name")
        + _encode_field(record.uri, MAX_URI_LENGTH, "uri")
    )


def encode_account(records: list[LedgerRecord], item_count: int | None = None) -> bytes:
    """Build raw account bytes: zero header, item count, record array."""
    count = len(records) if item_count is None else item_count
    body = b"".join(encode_record(r) for r in records)
    return bytes(HEADER_SIZE) + _U32.pack(count) + body
