"""Flat binary images and reproducible image manifests."""
from __future__ import annotations

import hashlib
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from sparsehex.blocks import DEFAULT_PAD
from sparsehex.errors import InvalidPadError
from sparsehex.types import MemoryMap

MANIFEST_VERSION = "1.0"


def utc_now_iso() -> str:
    """Return current UTC timestamp in ISO-8601 format."""
    return datetime.now(UTC).isoformat()


def format_address(address: int) -> str:
    return f"0x{address:08X}"


def to_binary(
    blocks: Mapping[Any, Any],
    *,
    start: int | None = None,
    end: int | None = None,
    pad: int = DEFAULT_PAD,
) -> bytes:
    """Render ``blocks`` as one contiguous image covering ``[start, end)``.

    Defaults to the span of the map. Gaps are filled with ``pad``; bytes
    outside the window are dropped. Later blocks overwrite earlier ones.
    """
    if not 0 <= pad <= 0xFF:
        raise InvalidPadError(pad)
    memory = MemoryMap.from_mapping(blocks)
    if start is None:
        start = memory.start_address if memory.start_address is not None else 0
    if end is None:
        end = memory.end_address if memory.end_address is not None else start
    if end < start:
        raise ValueError(f"end address {end:#x} is below start address {start:#x}")

    image = bytearray([pad]) * (end - start)
    for address, block in memory.items():
        lo = max(address, start)
        hi = min(address + len(block), end)
        if lo >= hi:
            continue
        image[lo - start:hi - start] = block[lo - address:hi - address]
    return bytes(image)


def block_ranges(blocks: Mapping[Any, Any]) -> list[dict[str, Any]]:
    """Describe each block: start, end (exclusive), size and sha256."""
    memory = MemoryMap.from_mapping(blocks)
    return [
        {
            "start": format_address(address),
            "end": format_address(address + len(block)),
            "size": len(block),
            "sha256": hashlib.sha256(block).hexdigest(),
        }
        for address, block in memory.items()
    ]


def image_digest(blocks: Mapping[Any, Any]) -> str:
    """sha256 over every (address, block) pair, in address order."""
    memory = MemoryMap.from_mapping(blocks)
    digest = hashlib.sha256()
    for address, block in memory.items():
        digest.update(address.to_bytes(8, "big"))
        digest.update(len(block).to_bytes(8, "big"))
        digest.update(block)
    return digest.hexdigest()


def build_image_manifest(
    blocks: Mapping[Any, Any],
    *,
    source: str | None = None,
    notes: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a JSON-ready summary of a memory image."""
    memory = MemoryMap.from_mapping(blocks)
    start = memory.start_address
    end = memory.end_address
    return {
        "manifest_version": MANIFEST_VERSION,
        "created_at": utc_now_iso(),
        "source": source,
        "block_count": len(memory),
        "total_size": memory.total_size,
        "start_address": format_address(start) if start is not None else None,
        "end_address": format_address(end) if end is not None else None,
        "blocks": block_ranges(memory),
        "sha256": image_digest(memory),
        "notes": notes or {},
    }


def compare_manifests(
    current: dict[str, Any],
    previous: dict[str, Any],
) -> dict[str, Any]:
    """Compare two image manifests and produce deterministic deltas."""
    curr_blocks = current.get("blocks", [])
    prev_blocks = previous.get("blocks", [])
    curr_blocks = curr_blocks if isinstance(curr_blocks, list) else []
    prev_blocks = prev_blocks if isinstance(prev_blocks, list) else []

    curr_by_range = {(b["start"], b["end"]): b for b in curr_blocks}
    prev_by_range = {(b["start"], b["end"]): b for b in prev_blocks}

    added = sorted(set(curr_by_range) - set(prev_by_range))
    removed = sorted(set(prev_by_range) - set(curr_by_range))
    changed = sorted(
        key for key in set(curr_by_range) & set(prev_by_range)
        if curr_by_range[key].get("sha256") != prev_by_range[key].get("sha256")
    )

    curr_size = int(current.get("total_size", 0) or 0)
    prev_size = int(previous.get("total_size", 0) or 0)

    return {
        "current_source": current.get("source"),
        "previous_source": previous.get("source"),
        "identical": current.get("sha256") == previous.get("sha256"),
        "added_ranges": [{"start": s, "end": e} for s, e in added],
        "removed_ranges": [{"start": s, "end": e} for s, e in removed],
        "changed_ranges": [{"start": s, "end": e} for s, e in changed],
        "total_size_delta": curr_size - prev_size,
    }
