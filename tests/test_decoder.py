"""Tests for the strict Intel HEX decoder."""
from __future__ import annotations

import pytest

from sparsehex.decoder import Record, decode_hex
from sparsehex.errors import (
    ChecksumMismatchError,
    DecodeError,
    DuplicateAddressError,
    EmptyOrUnparseableError,
    LengthMismatchError,
    MalformedLineError,
    MissingEOFError,
    NonZeroOffsetError,
    OffsetWrapError,
    OverlappingBlocksError,
    TrailingDataError,
)
from sparsehex.scanner import iter_record_spans

EOF = ":00000001FF"
SIMPLE = ":100000000102030405060708090A0B0C0D0E0F1068\n" + EOF


def _record(record_type: int, offset: int, data: bytes) -> str:
    body = bytes([len(data), offset >> 8, offset & 0xFF, record_type]) + data
    return ":" + body.hex().upper() + f"{-sum(body) & 0xFF:02X}"


def _hex(*lines: str) -> str:
    return "\n".join([*lines, EOF])


class TestRecord:
    def test_from_span_fields(self) -> None:
        span = next(iter_record_spans(":0400100001020304E2"))
        record = Record.from_span(span)
        assert record.length == 4
        assert record.offset == 0x0010
        assert record.record_type == 0
        assert record.data == b"\x01\x02\x03\x04"
        assert record.checksum == 0xE2

    def test_odd_digit_count(self) -> None:
        span = next(iter_record_spans(":0000000100F"))
        with pytest.raises(LengthMismatchError):
            Record.from_span(span)


class TestDecodeHex:
    def test_simple_file(self) -> None:
        blocks = decode_hex(SIMPLE)
        assert list(blocks) == [0]
        assert blocks[0] == bytes(range(1, 17))

    def test_lowercase_and_crlf(self) -> None:
        text = SIMPLE.lower().replace("\n", "\r\n") + "\r\n"
        assert decode_hex(text) == {0: bytes(range(1, 17))}

    def test_single_trailing_newline_after_eof(self) -> None:
        assert decode_hex(SIMPLE + "\n") == {0: bytes(range(1, 17))}

    def test_only_eof_gives_empty_map(self) -> None:
        assert len(decode_hex(EOF)) == 0

    def test_adjacent_records_are_joined(self) -> None:
        text = _hex(
            _record(0, 0x0000, bytes(range(16))),
            _record(0, 0x0010, bytes(range(16, 32))),
            _record(0, 0x0100, b"\xAA\xBB"),
        )
        blocks = decode_hex(text)
        assert list(blocks) == [0x0000, 0x0100]
        assert blocks[0] == bytes(range(32))
        assert blocks[0x100] == b"\xAA\xBB"

    def test_out_of_order_records(self) -> None:
        text = _hex(
            _record(0, 0x0010, b"\x02" * 16),
            _record(0, 0x0000, b"\x01" * 16),
        )
        assert decode_hex(text) == {0: b"\x01" * 16 + b"\x02" * 16}

    def test_max_block_size_splits_runs(self) -> None:
        text = _hex(*[_record(0, offset, bytes([offset // 16]) * 16) for offset in range(0, 64, 16)])
        blocks = decode_hex(text, max_block_size=32)
        assert list(blocks) == [0, 32]
        assert all(len(block) == 32 for block in blocks.values())

    def test_extended_linear_address(self) -> None:
        text = _hex(":020000040800F2", _record(0, 0x0000, b"\xDE\xAD"))
        assert decode_hex(text) == {0x08000000: b"\xDE\xAD"}

    def test_extended_segment_address(self) -> None:
        text = _hex(":020000021000EC", _record(0, 0x0004, b"\x55"))
        assert decode_hex(text) == {0x10004: b"\x55"}

    def test_start_address_records_ignored(self) -> None:
        text = _hex(
            ":0400000300003800C1",
            ":0400000500000000F7",
            _record(0, 0x0000, b"\x01"),
        )
        assert decode_hex(text) == {0: b"\x01"}

    def test_record_may_end_at_segment_boundary(self) -> None:
        text = _hex(_record(0, 0xFFF0, bytes(16)))
        assert decode_hex(text) == {0xFFF0: bytes(16)}

    def test_segment_crossing_records_join(self) -> None:
        text = _hex(
            _record(0, 0xFFF0, bytes(range(16))),
            ":020000040001F9",
            _record(0, 0x0000, bytes(range(16, 32))),
        )
        assert decode_hex(text) == {0xFFF0: bytes(range(32))}


class TestDecodeErrors:
    def test_checksum_mismatch(self) -> None:
        with pytest.raises(ChecksumMismatchError) as excinfo:
            decode_hex(SIMPLE.replace("1068", "1069"))
        err = excinfo.value
        assert err.record_index == 1
        assert err.expected == 0x68
        assert err.actual == 0x69
        assert err.line.startswith(":10000000")

    def test_any_corrupted_byte_fails_checksum(self) -> None:
        line = SIMPLE.split("\n")[0]
        for pos in range(3, len(line) - 2, 2):
            # keep the declared length so the length check passes
            digit = "1" if line[pos] != "1" else "2"
            corrupted = line[:pos] + digit + line[pos + 1:]
            with pytest.raises(ChecksumMismatchError):
                decode_hex(corrupted + "\n" + EOF)

    def test_length_mismatch(self) -> None:
        with pytest.raises(LengthMismatchError) as excinfo:
            decode_hex(":03000000010205\n" + EOF)
        assert excinfo.value.declared == 3
        assert excinfo.value.actual == 2

    def test_malformed_gap(self) -> None:
        with pytest.raises(MalformedLineError):
            decode_hex(":020000040000FA\nbogus\n" + EOF)

    @pytest.mark.parametrize(
        ("record_type", "data"),
        [
            (1, b""),
            (2, b"\x10\x00"),
            (3, b"\x00\x00\x01\x00"),
            (4, b"\x00\x01"),
            (5, b"\x00\x00\x01\x00"),
        ],
    )
    def test_non_zero_offset_on_non_data_record(self, record_type: int, data: bytes) -> None:
        with pytest.raises(NonZeroOffsetError) as excinfo:
            decode_hex(_hex(_record(record_type, 0x0010, data)))
        assert excinfo.value.offset == 0x10
        assert excinfo.value.record_index == 1

    def test_duplicate_address(self) -> None:
        with pytest.raises(DuplicateAddressError) as excinfo:
            decode_hex(_hex(_record(0, 0x0020, b"\x01"), _record(0, 0x0020, b"\x02")))
        assert excinfo.value.address == 0x20
        assert excinfo.value.record_index == 2

    def test_duplicate_address_through_segment_register(self) -> None:
        text = _hex(
            _record(0, 0x0010, b"\x01"),
            ":020000021000EC",
            ":020000040000FA",
            _record(0, 0x0010, b"\x02"),
        )
        with pytest.raises(DuplicateAddressError):
            decode_hex(text)

    def test_overlapping_records(self) -> None:
        text = _hex(_record(0, 0x0000, bytes(16)), _record(0, 0x0008, bytes(16)))
        with pytest.raises(OverlappingBlocksError) as excinfo:
            decode_hex(text)
        assert excinfo.value.address == 0x0008

    def test_offset_wrap(self) -> None:
        with pytest.raises(OffsetWrapError) as excinfo:
            decode_hex(_hex(_record(0, 0xFFF8, bytes(16))))
        assert excinfo.value.offset == 0xFFF8
        assert excinfo.value.length == 16

    def test_trailing_data_after_eof(self) -> None:
        with pytest.raises(TrailingDataError):
            decode_hex(SIMPLE + "\n\n")
        with pytest.raises(TrailingDataError):
            decode_hex(EOF + "\n" + _record(0, 0, b"\x01"))

    def test_missing_eof(self) -> None:
        with pytest.raises(MissingEOFError) as excinfo:
            decode_hex(":100000000102030405060708090A0B0C0D0E0F1068\n")
        assert excinfo.value.record_count == 1

    def test_empty_input(self) -> None:
        with pytest.raises(EmptyOrUnparseableError):
            decode_hex("")
        with pytest.raises(EmptyOrUnparseableError):
            decode_hex("this is not a hex file")

    def test_unknown_record_type_is_ignored(self) -> None:
        text = _hex(_record(0, 0, b"\x01"), _record(6, 0, b""), _record(0x7F, 0, b"\xAA\xBB"))
        assert decode_hex(text) == {0: b"\x01"}

    def test_unknown_record_type_still_needs_zero_offset(self) -> None:
        with pytest.raises(NonZeroOffsetError):
            decode_hex(_hex(_record(6, 0x0001, b"")))

    def test_zero_length_record_inside_earlier_record(self) -> None:
        text = _hex(_record(0, 0x0000, bytes(16)), _record(0, 0x0005, b""))
        with pytest.raises(OverlappingBlocksError) as excinfo:
            decode_hex(text)
        assert excinfo.value.address == 0x0005

    def test_zero_length_record_at_block_end(self) -> None:
        text = _hex(_record(0, 0x0000, bytes(16)), _record(0, 0x0010, b""))
        assert decode_hex(text) == {0: bytes(16)}

    def test_address_record_needs_two_bytes(self) -> None:
        with pytest.raises(LengthMismatchError):
            decode_hex(_hex(_record(4, 0, b"\x01")))

    def test_all_errors_share_base(self) -> None:
        with pytest.raises(DecodeError):
            decode_hex("")
        with pytest.raises(ValueError):
            decode_hex("")
