"""Hand-written scanner for Intel HEX record lines.

A record is ``:`` followed by a run of at least ten hex digits (header, data
and checksum) and an optional ``\\r\\n``, ``\\r`` or ``\\n``. Records must be
packed back to back: any characters between two records are reported as a
``MalformedLineError``. Characters after the last recognisable record are left
for the decoder to judge (missing EOF vs. trailing data).
"""
from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from sparsehex.errors import MalformedLineError

RECORD_MARK = ":"
MIN_RECORD_DIGITS = 10  # length + offset + type + checksum
EXCERPT_CHARS = 16

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


@dataclass(frozen=True, slots=True)
class RecordSpan:
    """Location of one record in the source text."""

    index: int
    char_start: int
    digits_end: int
    char_end: int
    digits: str

    def __post_init__(self) -> None:
        if self.index < 1:
            raise ValueError(f"index must be >= 1, got {self.index}")
        if self.char_end < self.digits_end or self.digits_end <= self.char_start:
            raise ValueError(
                f"inconsistent span {self.char_start}..{self.digits_end}..{self.char_end}",
            )

    @property
    def line(self) -> str:
        """The record without its line terminator, as written in the source."""
        return RECORD_MARK + self.digits


def _match_record(text: str, position: int) -> tuple[int, int] | None:
    """Return ``(digits_end, record_end)`` if a record starts at ``position``."""
    length = len(text)
    if position >= length or text[position] != RECORD_MARK:
        return None
    cursor = position + 1
    while cursor < length and text[cursor] in _HEX_DIGITS:
        cursor += 1
    if cursor - position - 1 < MIN_RECORD_DIGITS:
        return None

    record_end = cursor
    if text.startswith("\r\n", cursor):
        record_end += 2
    elif cursor < length and text[cursor] in "\r\n":
        record_end += 1
    return cursor, record_end


def _find_next_record(text: str, position: int) -> int | None:
    mark = text.find(RECORD_MARK, position)
    while mark != -1:
        if _match_record(text, mark) is not None:
            return mark
        mark = text.find(RECORD_MARK, mark + 1)
    return None


def iter_record_spans(text: str) -> Iterator[RecordSpan]:
    """Yield every record of ``text`` in order.

    Stops silently at the first position from which no further record can be
    found. Raises ``MalformedLineError`` when unparseable characters sit
    between two records.
    """
    position = 0
    index = 0
    while position < len(text):
        found = _match_record(text, position)
        if found is None:
            next_start = _find_next_record(text, position + 1)
            if next_start is None:
                return
            raise MalformedLineError(
                char_start=position,
                char_end=next_start,
                excerpt=text[position:min(next_start, position + EXCERPT_CHARS)].strip(),
            )
        digits_end, record_end = found
        index += 1
        yield RecordSpan(
            index=index,
            char_start=position,
            digits_end=digits_end,
            char_end=record_end,
            digits=text[position + 1:digits_end],
        )
        position = record_end
