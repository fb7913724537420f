"""Block algebra over sparse memory maps: joining and pagination.

Both operations return a new ``MemoryMap`` with freshly allocated blocks and
never touch their input.
"""
from __future__ import annotations

from collections.abc import Mapping

from sparsehex.errors import InvalidPadError, InvalidPageSizeError, OverlappingBlocksError
from sparsehex.types import BlockLike, MemoryMap

DEFAULT_PAGE_SIZE = 1024
DEFAULT_PAD = 0xFF


def _sorted_blocks(blocks: Mapping[int, BlockLike]) -> list[tuple[int, BlockLike]]:
    """Non-empty blocks in ascending address order."""
    return sorted(
        ((address, block) for address, block in blocks.items() if len(block)),
        key=lambda row: row[0],
    )


def join_blocks(
    blocks: Mapping[int, BlockLike],
    max_block_size: int | None = None,
) -> MemoryMap:
    """Concatenate byte-adjacent blocks.

    A run is cut whenever adding the next block would make the merged block
    larger than ``max_block_size`` (``None`` means unbounded). A single input
    block larger than the cap is kept whole. Zero-length blocks take part in
    the overlap check but never appear in the output.

    Raises ``OverlappingBlocksError`` if a block starts inside another.
    """
    rows = sorted(blocks.items(), key=lambda row: row[0])

    # First pass: extent of each merged run, keyed by its start address.
    run_sizes: dict[int, int] = {}
    run_start = -1
    run_end = -1
    for address, block in rows:
        length = len(block)
        if address < run_end:
            raise OverlappingBlocksError(address)
        fits = max_block_size is None or (run_end - run_start) + length <= max_block_size
        if address == run_end and fits:
            run_sizes[run_start] += length
            run_end += length
        else:
            run_sizes[address] = length
            run_start = address
            run_end = address + length

    # Second pass: allocate exact-size buffers and copy.
    merged: list[tuple[int, bytes]] = []
    buffer = bytearray()
    buffer_start = -1
    for address, block in rows:
        if address in run_sizes:
            if buffer:
                merged.append((buffer_start, bytes(buffer)))
            buffer = bytearray(run_sizes[address])
            buffer_start = address
        offset = address - buffer_start
        buffer[offset:offset + len(block)] = block
    if buffer:
        merged.append((buffer_start, bytes(buffer)))

    return MemoryMap(merged)


def paginate(
    blocks: Mapping[int, BlockLike],
    page_size: int = DEFAULT_PAGE_SIZE,
    pad: int = DEFAULT_PAD,
) -> MemoryMap:
    """Re-tile ``blocks`` into page-aligned, page-sized blocks.

    Every output block starts at a multiple of ``page_size`` and is exactly
    ``page_size`` bytes long, pre-filled with ``pad`` and overwritten with the
    input bytes that fall inside it. Only pages touched by at least one input
    byte are emitted. When input blocks overlap, the later address wins.
    """
    if page_size <= 0:
        raise InvalidPageSizeError(page_size)
    if not 0 <= pad <= 0xFF:
        raise InvalidPadError(pad)

    pages: dict[int, bytearray] = {}
    for address, block in _sorted_blocks(blocks):
        end = address + len(block)
        page_address = address - address % page_size
        while page_address < end:
            page = pages.get(page_address)
            if page is None:
                page = bytearray([pad]) * page_size
                pages[page_address] = page
            lo = max(address, page_address)
            hi = min(end, page_address + page_size)
            page[lo - page_address:hi - page_address] = block[lo - address:hi - address]
            page_address += page_size

    return MemoryMap((page_address, bytes(page)) for page_address, page in sorted(pages.items()))
