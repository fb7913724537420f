"""Exception taxonomy for Intel HEX decoding, encoding and block algebra.

Every error is terminal for the call that raised it and carries the context
needed to locate the offending input (record number, raw line, address or
character range).
"""
from __future__ import annotations

from typing import Any


class IntelHexError(ValueError):
    """Base class for every error raised by sparsehex."""


class DecodeError(IntelHexError):
    """Raised when hex text cannot be decoded."""


class EncodeError(IntelHexError):
    """Raised when a memory map cannot be encoded."""


class BlockError(IntelHexError):
    """Raised by the block algebra (join, paginate)."""


# ---------------------------------------------------------------------------
# Decode errors
# ---------------------------------------------------------------------------


class MalformedLineError(DecodeError):
    """Unparseable characters between two records."""

    def __init__(self, *, char_start: int, char_end: int, excerpt: str) -> None:
        self.char_start = char_start
        self.char_end = char_end
        self.excerpt = excerpt
        super().__init__(
            f"Malformed hex file: could not parse between characters "
            f"{char_start} and {char_end} ({excerpt!r})"
        )


class LengthMismatchError(DecodeError):
    """Declared record length disagrees with the decoded byte count."""

    def __init__(self, *, record_index: int, line: str, declared: int, actual: int) -> None:
        self.record_index = record_index
        self.line = line
        self.declared = declared
        self.actual = actual
        super().__init__(
            f"Mismatched record length at record {record_index} ({line}), "
            f"expected {declared} data bytes but actual length is {actual}"
        )


class ChecksumMismatchError(DecodeError):
    """Transmitted checksum byte does not match the record contents."""

    def __init__(self, *, record_index: int, line: str, expected: int, actual: int) -> None:
        self.record_index = record_index
        self.line = line
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Checksum failed at record {record_index} ({line}), "
            f"should be {expected:02X} but is {actual:02X}"
        )


class NonZeroOffsetError(DecodeError):
    """Non-data record with a load offset other than 0000."""

    def __init__(self, *, record_index: int, line: str, offset: int) -> None:
        self.record_index = record_index
        self.line = line
        self.offset = offset
        super().__init__(
            f"Record {record_index} ({line}) must have 0000 as data offset, "
            f"got {offset:04X}"
        )


class DuplicateAddressError(DecodeError):
    """Two data records start at the same absolute address."""

    def __init__(self, *, record_index: int, line: str, address: int) -> None:
        self.record_index = record_index
        self.line = line
        self.address = address
        super().__init__(
            f"Duplicated data at record {record_index} ({line}), "
            f"address 0x{address:08X}"
        )


class OffsetWrapError(DecodeError):
    """Data record runs past the end of its 64KiB segment."""

    def __init__(self, *, record_index: int, line: str, offset: int, length: int) -> None:
        self.record_index = record_index
        self.line = line
        self.offset = offset
        self.length = length
        super().__init__(
            f"Data at record {record_index} ({line}) wraps over 0xFFFF "
            f"(offset 0x{offset:04X} + {length} bytes). For every record the "
            f"data offset plus the data length must not exceed 0x10000."
        )


class TrailingDataError(DecodeError):
    """Characters follow the End Of File record."""

    def __init__(self, *, record_index: int, char_start: int) -> None:
        self.record_index = record_index
        self.char_start = char_start
        super().__init__(
            f"There is data after an EOF record at record {record_index} "
            f"(from character {char_start})"
        )


class MissingEOFError(DecodeError):
    """Records were found but none of them was an End Of File record."""

    def __init__(self, *, record_count: int) -> None:
        self.record_count = record_count
        super().__init__(f"No EOF record at end of file ({record_count} records parsed)")


class EmptyOrUnparseableError(DecodeError):
    """Not a single record could be parsed."""

    def __init__(self) -> None:
        super().__init__("Malformed hex file, could not parse any records")



# ---------------------------------------------------------------------------
# Encode errors
# ---------------------------------------------------------------------------


class InvalidRecordSizeError(EncodeError):
    def __init__(self, line_size: int) -> None:
        self.line_size = line_size
        super().__init__(f"Size of record must be greater than zero, got {line_size}")


class InvalidInputKeysError(EncodeError):
    """Memory map keys that are not distinct integer addresses."""

    def __init__(self, keys: list[Any], *, reason: str = "non-integer keys") -> None:
        self.keys = keys
        self.reason = reason
        super().__init__(f"Memory map input contains {reason}: {keys!r}")


class InvalidBlockTypeError(EncodeError):
    def __init__(self, *, address: int, type_name: str) -> None:
        self.address = address
        self.type_name = type_name
        super().__init__(
            f"Block at address 0x{address:X} is a {type_name}, not a byte buffer"
        )


class AddressOutOfRangeError(EncodeError):
    def __init__(self, address: int, *, detail: str = "") -> None:
        self.address = address
        suffix = f" ({detail})" if detail else ""
        super().__init__(
            f"Block at address {address:#x} is outside the 32-bit address space{suffix}"
        )


# ---------------------------------------------------------------------------
# Block algebra errors
# ---------------------------------------------------------------------------


class OverlappingBlocksError(BlockError):
    """Two blocks share at least one address."""

    def __init__(self, address: int) -> None:
        self.address = address
        super().__init__(f"Overlapping data around address 0x{address:X}")


class InvalidPageSizeError(BlockError):
    def __init__(self, page_size: int) -> None:
        self.page_size = page_size
        super().__init__(f"Page size must be greater than zero, got {page_size}")


class InvalidPadError(BlockError):
    def __init__(self, pad: int) -> None:
        self.pad = pad
        super().__init__(f"Pad value must be a byte in [0, 255], got {pad!r}")
