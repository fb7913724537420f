"""Intel HEX record checksum: two's complement of the byte sum, low 8 bits."""
from __future__ import annotations

from collections.abc import Iterable


def checksum(data: Iterable[int]) -> int:
    """Return the record checksum of ``data`` as an int in [0, 255]."""
    return -sum(data) & 0xFF


def checksum_two(first: Iterable[int], second: Iterable[int]) -> int:
    """Checksum over ``first`` followed by ``second`` without concatenating them."""
    return -(sum(first) + sum(second)) & 0xFF
