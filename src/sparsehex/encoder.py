"""Intel HEX encoder: ``MemoryMap`` in, text out."""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sparsehex.checksum import checksum, checksum_two
from sparsehex.decoder import SEGMENT_SIZE, RecordType
from sparsehex.errors import (
    AddressOutOfRangeError,
    InvalidRecordSizeError,
    OverlappingBlocksError,
)
from sparsehex.types import MemoryMap

DEFAULT_LINE_SIZE = 16
MAX_RECORD_DATA = 0xFF
ADDRESS_LIMIT = 1 << 32
EOF_RECORD = ":00000001FF"


def format_record(header: bytes, data: bytes | memoryview = b"") -> str:
    """Render one record line; the checksum covers ``header`` then ``data``."""
    return ":" + header.hex().upper() + bytes(data).hex().upper() + f"{checksum_two(header, data):02X}"


def _extended_linear_address(high_address: int) -> str:
    record = bytes([
        2, 0, 0, RecordType.EXTENDED_LINEAR_ADDRESS,
        (high_address >> 24) & 0xFF,
        (high_address >> 16) & 0xFF,
    ])
    return ":" + record.hex().upper() + f"{checksum(record):02X}"


def encode_hex(
    blocks: Mapping[Any, Any],
    line_size: int = DEFAULT_LINE_SIZE,
    *,
    explicit_start_segment: bool = False,
) -> str:
    """Encode ``blocks`` as Intel HEX text.

    ``blocks`` is a ``MemoryMap`` or an integer-keyed mapping of byte buffers
    (converted with ``MemoryMap.from_mapping``). Each data record carries at
    most ``line_size`` bytes and never crosses a 64KiB segment; an Extended
    Linear Address record is emitted whenever the next byte lies in another
    segment. The address register starts at segment 0, the same state a
    decoder starts in, so data below 0x10000 needs no address record unless
    ``explicit_start_segment`` is set.

    Lines are joined by ``\\n`` and always end with the EOF record.
    """
    if line_size <= 0:
        raise InvalidRecordSizeError(line_size)
    memory = MemoryMap.from_mapping(blocks)

    records: list[str] = []
    # Base of the current 64KiB segment and write cursor inside it.
    high_address = -SEGMENT_SIZE if explicit_start_segment else 0
    low_address = 0

    for address, block in memory.items():
        block_end = address + len(block)
        if address >= ADDRESS_LIMIT:
            raise AddressOutOfRangeError(address)
        if block_end > ADDRESS_LIMIT:
            raise AddressOutOfRangeError(address, detail=f"block ends at {block_end:#x}")
        if not block:
            continue

        if address > high_address + 0xFFFF:
            high_address = address - address % SEGMENT_SIZE
            low_address = 0
            records.append(_extended_linear_address(high_address))

        if address < high_address + low_address:
            raise OverlappingBlocksError(address)

        low_address = address % SEGMENT_SIZE
        block_offset = 0
        while high_address + low_address < block_end:
            if low_address > 0xFFFF:
                high_address += SEGMENT_SIZE
                low_address = 0
                records.append(_extended_linear_address(high_address))
                continue

            record_size = min(
                line_size,
                block_end - high_address - low_address,
                SEGMENT_SIZE - low_address,
                MAX_RECORD_DATA,
            )
            header = bytes([
                record_size,
                (low_address >> 8) & 0xFF,
                low_address & 0xFF,
                RecordType.DATA,
            ])
            records.append(format_record(header, block[block_offset:block_offset + record_size]))
            block_offset += record_size
            low_address += record_size

    records.append(EOF_RECORD)
    return "\n".join(records)
