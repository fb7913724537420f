"""Strict Intel HEX decoder: text in, ``MemoryMap`` out.

The decoder fails fast. Any malformed record, checksum error or structural
problem raises a ``DecodeError`` subclass and no partial result is returned.
The only successful exit is an End Of File record that ends the text.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from sparsehex.blocks import join_blocks
from sparsehex.checksum import checksum
from sparsehex.errors import (
    ChecksumMismatchError,
    DuplicateAddressError,
    EmptyOrUnparseableError,
    LengthMismatchError,
    MissingEOFError,
    NonZeroOffsetError,
    OffsetWrapError,
    TrailingDataError,
)
from sparsehex.scanner import RecordSpan, iter_record_spans
from sparsehex.types import MemoryMap

HEADER_SIZE = 4
SEGMENT_SIZE = 0x10000


class RecordType(IntEnum):
    DATA = 0
    END_OF_FILE = 1
    EXTENDED_SEGMENT_ADDRESS = 2
    START_SEGMENT_ADDRESS = 3
    EXTENDED_LINEAR_ADDRESS = 4
    START_LINEAR_ADDRESS = 5


@dataclass(frozen=True, slots=True)
class Record:
    """One decoded record line. Lives for a single step of the scan."""

    index: int
    line: str
    length: int
    offset: int
    record_type: int
    data: bytes
    checksum: int

    @classmethod
    def from_span(cls, span: RecordSpan) -> Record:
        """Decode the hex digits of ``span`` and verify length and checksum."""
        if len(span.digits) % 2:
            raise LengthMismatchError(
                record_index=span.index,
                line=span.line,
                declared=int(span.digits[:2], 16),
                actual=len(span.digits) // 2 - HEADER_SIZE - 1,
            )
        raw = bytes.fromhex(span.digits)
        body, transmitted = raw[:-1], raw[-1]
        if body[0] + HEADER_SIZE != len(body):
            raise LengthMismatchError(
                record_index=span.index,
                line=span.line,
                declared=body[0],
                actual=len(body) - HEADER_SIZE,
            )
        expected = checksum(body)
        if transmitted != expected:
            raise ChecksumMismatchError(
                record_index=span.index,
                line=span.line,
                expected=expected,
                actual=transmitted,
            )
        return cls(
            index=span.index,
            line=span.line,
            length=body[0],
            offset=(body[1] << 8) | body[2],
            record_type=body[3],
            data=body[HEADER_SIZE:],
            checksum=transmitted,
        )


def _base_address(record: Record, shift: int) -> int:
    if len(record.data) != 2:
        raise LengthMismatchError(
            record_index=record.index,
            line=record.line,
            declared=2,
            actual=len(record.data),
        )
    return ((record.data[0] << 8) | record.data[1]) << shift


def decode_hex(text: str, max_block_size: int | None = None) -> MemoryMap:
    """Parse Intel HEX ``text`` into a joined ``MemoryMap``.

    Adjacent data records are merged with ``join_blocks``; ``max_block_size``
    caps the size of the merged blocks (``None`` means unbounded).
    """
    blocks: dict[int, bytes] = {}
    # Upper base address set by extended segment/linear address records.
    base = 0
    record_count = 0

    for span in iter_record_spans(text):
        record_count = span.index
        record = Record.from_span(span)

        if record.record_type == RecordType.DATA:
            address = base + record.offset
            if address in blocks:
                raise DuplicateAddressError(
                    record_index=record.index, line=record.line, address=address,
                )
            if record.offset + len(record.data) > SEGMENT_SIZE:
                raise OffsetWrapError(
                    record_index=record.index,
                    line=record.line,
                    offset=record.offset,
                    length=len(record.data),
                )
            blocks[address] = record.data
            continue

        if record.offset != 0:
            raise NonZeroOffsetError(
                record_index=record.index, line=record.line, offset=record.offset,
            )

        match record.record_type:
            case RecordType.END_OF_FILE:
                if span.char_end != len(text):
                    raise TrailingDataError(record_index=record.index, char_start=span.char_end)
                return join_blocks(blocks, max_block_size)
            case RecordType.EXTENDED_SEGMENT_ADDRESS:
                base = _base_address(record, 4)
            case RecordType.EXTENDED_LINEAR_ADDRESS:
                base = _base_address(record, 16)
            case _:
                # Start addresses (types 3 and 5) and any unassigned type
                # carry no memory content.
                pass

    if record_count:
        raise MissingEOFError(record_count=record_count)
    raise EmptyOrUnparseableError()
