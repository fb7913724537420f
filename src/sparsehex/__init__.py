"""Intel HEX codec and block algebra for sparse memory images."""

from sparsehex.blocks import DEFAULT_PAD, DEFAULT_PAGE_SIZE, join_blocks, paginate
from sparsehex.checksum import checksum, checksum_two
from sparsehex.decoder import Record, RecordType, decode_hex
from sparsehex.encoder import (
    DEFAULT_LINE_SIZE,
    EOF_RECORD,
    MAX_RECORD_DATA,
    encode_hex,
    format_record,
)
from sparsehex.errors import (
    AddressOutOfRangeError,
    BlockError,
    ChecksumMismatchError,
    DecodeError,
    DuplicateAddressError,
    EmptyOrUnparseableError,
    EncodeError,
    IntelHexError,
    InvalidBlockTypeError,
    InvalidInputKeysError,
    InvalidPadError,
    InvalidPageSizeError,
    InvalidRecordSizeError,
    LengthMismatchError,
    MalformedLineError,
    MissingEOFError,
    NonZeroOffsetError,
    OffsetWrapError,
    OverlappingBlocksError,
    TrailingDataError,
)
from sparsehex.overlap import detect_overlaps, flatten_overlaps
from sparsehex.scanner import RecordSpan, iter_record_spans
from sparsehex.types import BlockLike, MemoryMap, OverlapEntry, OverlapMap

__all__ = [
    "AddressOutOfRangeError",
    "BlockError",
    "BlockLike",
    "ChecksumMismatchError",
    "DEFAULT_LINE_SIZE",
    "DEFAULT_PAD",
    "DEFAULT_PAGE_SIZE",
    "DecodeError",
    "DuplicateAddressError",
    "EOF_RECORD",
    "EmptyOrUnparseableError",
    "EncodeError",
    "IntelHexError",
    "InvalidBlockTypeError",
    "InvalidInputKeysError",
    "InvalidPadError",
    "InvalidPageSizeError",
    "InvalidRecordSizeError",
    "LengthMismatchError",
    "MAX_RECORD_DATA",
    "MalformedLineError",
    "MemoryMap",
    "MissingEOFError",
    "NonZeroOffsetError",
    "OffsetWrapError",
    "OverlapEntry",
    "OverlapMap",
    "OverlappingBlocksError",
    "Record",
    "RecordSpan",
    "RecordType",
    "TrailingDataError",
    "checksum",
    "checksum_two",
    "decode_hex",
    "detect_overlaps",
    "encode_hex",
    "flatten_overlaps",
    "format_record",
    "iter_record_spans",
    "join_blocks",
    "paginate",
]
