"""Core types: ascending address-indexed memory maps and overlap results."""
from __future__ import annotations

import bisect
from collections.abc import Hashable, Iterable, Iterator, Mapping
from typing import Any, NamedTuple, TypeAlias

from sparsehex.errors import (
    AddressOutOfRangeError,
    InvalidBlockTypeError,
    InvalidInputKeysError,
)


BlockLike: TypeAlias = bytes | bytearray | memoryview


def _is_address(key: Any) -> bool:
    return isinstance(key, int) and not isinstance(key, bool)


def _owned_bytes(address: int, block: Any) -> bytes:
    if isinstance(block, bytes):
        return block
    if isinstance(block, (bytearray, memoryview)):
        return bytes(block)
    raise InvalidBlockTypeError(address=address, type_name=type(block).__name__)


class MemoryMap(Mapping[int, bytes]):
    """Immutable sparse memory image: start address -> block of bytes.

    Iteration is strictly ascending by address. Blocks are stored as
    ``bytes``, so a map always owns its data and can be shared freely.
    Construction validates keys and values but does not check for
    overlaps; that is the job of ``join_blocks`` and the encoder.
    """

    __slots__ = ("_addresses", "_blocks")

    _addresses: tuple[int, ...]
    _blocks: tuple[bytes, ...]

    def __init__(self, pairs: Iterable[tuple[int, BlockLike]] = ()) -> None:
        rows: list[tuple[int, bytes]] = []
        bad_keys: list[Any] = []
        for address, block in pairs:
            if not _is_address(address):
                bad_keys.append(address)
                continue
            if address < 0:
                raise AddressOutOfRangeError(address, detail="negative address")
            rows.append((address, _owned_bytes(address, block)))
        if bad_keys:
            raise InvalidInputKeysError(bad_keys)

        rows.sort(key=lambda row: row[0])
        duplicates = [
            rows[i][0] for i in range(1, len(rows)) if rows[i][0] == rows[i - 1][0]
        ]
        if duplicates:
            raise InvalidInputKeysError(duplicates, reason="duplicate addresses")

        self._addresses = tuple(row[0] for row in rows)
        self._blocks = tuple(row[1] for row in rows)

    @classmethod
    def from_mapping(cls, mapping: Mapping[Any, Any]) -> MemoryMap:
        """Build a map from an integer-keyed mapping such as a plain dict."""
        if isinstance(mapping, MemoryMap):
            return mapping
        return cls(mapping.items())

    # Mapping protocol -------------------------------------------------------

    def __getitem__(self, address: int) -> bytes:
        if not _is_address(address):
            raise KeyError(address)
        idx = bisect.bisect_left(self._addresses, address)
        if idx < len(self._addresses) and self._addresses[idx] == address:
            return self._blocks[idx]
        raise KeyError(address)

    def __iter__(self) -> Iterator[int]:
        return iter(self._addresses)

    def __len__(self) -> int:
        return len(self._addresses)

    def __repr__(self) -> str:
        inner = ", ".join(
            f"0x{address:08X}: <{len(block)} bytes>"
            for address, block in zip(self._addresses, self._blocks)
        )
        return f"MemoryMap({{{inner}}})"

    # Helpers ----------------------------------------------------------------

    def spans(self) -> list[tuple[int, int]]:
        """Return ``(start, end)`` pairs, end exclusive, in ascending order."""
        return [
            (address, address + len(block))
            for address, block in zip(self._addresses, self._blocks)
        ]

    def block_containing(self, address: int) -> tuple[int, bytes] | None:
        """Return the ``(start, block)`` whose range covers ``address``, if any."""
        idx = bisect.bisect_right(self._addresses, address) - 1
        if idx < 0:
            return None
        start = self._addresses[idx]
        block = self._blocks[idx]
        if address < start + len(block):
            return start, block
        return None

    @property
    def total_size(self) -> int:
        return sum(len(block) for block in self._blocks)

    @property
    def start_address(self) -> int | None:
        return self._addresses[0] if self._addresses else None

    @property
    def end_address(self) -> int | None:
        if not self._addresses:
            return None
        return max(
            start + len(block) for start, block in zip(self._addresses, self._blocks)
        )


class OverlapEntry(NamedTuple):
    """One contributor at an overlap boundary: block-set id plus data view."""

    id: Hashable
    view: memoryview


class OverlapMap(Mapping[int, tuple[OverlapEntry, ...]]):
    """Ascending boundary address -> contributors, in block-set order.

    Views alias the blocks of the ``MemoryMap`` objects that were scanned.
    """

    __slots__ = ("_addresses", "_entries")

    _addresses: tuple[int, ...]
    _entries: tuple[tuple[OverlapEntry, ...], ...]

    def __init__(self, rows: Iterable[tuple[int, Iterable[OverlapEntry]]] = ()) -> None:
        ordered = sorted(
            ((address, tuple(entries)) for address, entries in rows),
            key=lambda row: row[0],
        )
        self._addresses = tuple(row[0] for row in ordered)
        self._entries = tuple(row[1] for row in ordered)

    def __getitem__(self, address: int) -> tuple[OverlapEntry, ...]:
        if not _is_address(address):
            raise KeyError(address)
        idx = bisect.bisect_left(self._addresses, address)
        if idx < len(self._addresses) and self._addresses[idx] == address:
            return self._entries[idx]
        raise KeyError(address)

    def __iter__(self) -> Iterator[int]:
        return iter(self._addresses)

    def __len__(self) -> int:
        return len(self._addresses)

    def __repr__(self) -> str:
        inner = ", ".join(
            f"0x{address:08X}: {[(entry.id, len(entry.view)) for entry in entries]!r}"
            for address, entries in zip(self._addresses, self._entries)
        )
        return f"OverlapMap({{{inner}}})"

    def conflicts(self) -> list[tuple[int, tuple[OverlapEntry, ...]]]:
        """Boundaries where more than one block set contributes data."""
        return [
            (address, entries)
            for address, entries in zip(self._addresses, self._entries)
            if len(entries) > 1
        ]
