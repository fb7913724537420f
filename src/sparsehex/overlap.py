"""Overlap detection across several memory maps, and last-writer-wins flattening."""
from __future__ import annotations

import bisect
from collections.abc import Hashable, Iterable, Mapping
from typing import Any

from sparsehex.types import MemoryMap, OverlapEntry, OverlapMap


def detect_overlaps(
    block_sets: Mapping[Hashable, Mapping[Any, Any]] | Iterable[tuple[Hashable, Mapping[Any, Any]]],
) -> OverlapMap:
    """Partition several block sets at every block boundary.

    ``block_sets`` is an ordered collection of ``(id, memory_map)`` pairs, or a
    mapping of id to memory map in its iteration order. The result maps each
    boundary address to the ``OverlapEntry`` tuples of every set holding data
    in the interval that starts there, in input order. Boundaries where no set
    holds data are left out. Views are zero-copy ``memoryview`` slices of the
    input blocks.
    """
    pairs = block_sets.items() if isinstance(block_sets, Mapping) else block_sets
    sets = [(set_id, MemoryMap.from_mapping(blocks)) for set_id, blocks in pairs]

    cuts: set[int] = set()
    for _set_id, memory in sets:
        for start, end in memory.spans():
            cuts.add(start)
            cuts.add(end)
    ordered_cuts = sorted(cuts)

    indexed: list[tuple[Hashable, list[int], list[bytes]]] = []
    for set_id, memory in sets:
        non_empty = [(address, block) for address, block in memory.items() if block]
        indexed.append((
            set_id,
            [address for address, _ in non_empty],
            [block for _, block in non_empty],
        ))

    rows: list[tuple[int, list[OverlapEntry]]] = []
    for cut, next_cut in zip(ordered_cuts, ordered_cuts[1:]):
        entries: list[OverlapEntry] = []
        for set_id, addresses, blocks in indexed:
            # Block with the highest start address at or below the cut.
            idx = bisect.bisect_right(addresses, cut) - 1
            if idx < 0:
                continue
            block_address = addresses[idx]
            block = blocks[idx]
            sub_start = cut - block_address
            if sub_start < len(block):
                sub_end = next_cut - block_address
                entries.append(OverlapEntry(set_id, memoryview(block)[sub_start:sub_end]))
        if entries:
            rows.append((cut, entries))

    return OverlapMap(rows)


def flatten_overlaps(overlaps: Mapping[int, Any]) -> MemoryMap:
    """Keep only the data of the last contributor at each boundary.

    The winning views are copied, so the result owns its blocks. Adjacent
    output blocks are not merged; pass the result to ``join_blocks`` for that.
    """
    return MemoryMap(
        (address, bytes(entries[-1][1]))
        for address, entries in overlaps.items()
        if entries
    )
