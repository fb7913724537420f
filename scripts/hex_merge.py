#!/usr/bin/env python3
"""Merge several Intel HEX files into one.

Each input is decoded separately, then every pair of inputs is checked for
overlapping data. Overlaps are fatal unless --allow-overlap is given, in which
case the input listed last wins for every overlapping byte.

Usage:
    python3 scripts/hex_merge.py merged.hex bootloader.hex app.hex
    python3 scripts/hex_merge.py merged.hex base.hex patch.hex --allow-overlap
    python3 scripts/hex_merge.py merged.hex a.hex b.hex --line-size 32 --report

With --report, a JSON summary of the merge goes to stdout; human messages go
to stderr.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

from sparsehex.blocks import join_blocks
from sparsehex.encoder import DEFAULT_LINE_SIZE
from sparsehex.errors import IntelHexError
from sparsehex.image import build_image_manifest, format_address
from sparsehex.io_utils import dumps_json, load_hex, save_hex
from sparsehex.overlap import detect_overlaps, flatten_overlaps
from sparsehex.types import MemoryMap, OverlapMap

log = logging.getLogger("hex_merge")


class OverlapConflict(RuntimeError):
    """Raised when inputs overlap and overlaps are not allowed."""

    def __init__(self, regions: list[dict[str, Any]]) -> None:
        self.regions = regions
        super().__init__(f"{len(regions)} overlapping region(s) between inputs")


def _conflict_regions(overlaps: OverlapMap) -> list[dict[str, Any]]:
    return [
        {
            "start": format_address(address),
            "end": format_address(address + len(entries[0].view)),
            "sources": [str(entry.id) for entry in entries],
        }
        for address, entries in overlaps.conflicts()
    ]


def overlap_regions(images: list[tuple[str, MemoryMap]]) -> list[dict[str, Any]]:
    """List every interval where more than one input holds data."""
    return _conflict_regions(detect_overlaps(images))


def merge_images(
    images: list[tuple[str, MemoryMap]],
    *,
    allow_overlap: bool = False,
) -> tuple[MemoryMap, list[dict[str, Any]]]:
    """Combine decoded inputs, later inputs winning where overlaps are allowed.

    Returns the merged map together with the overlapping regions that were
    resolved.
    """
    overlaps = detect_overlaps(images)
    regions = _conflict_regions(overlaps)
    if regions and not allow_overlap:
        raise OverlapConflict(regions)
    for region in regions:
        log.debug(
            "Overlap %s..%s resolved in favour of %s",
            region["start"], region["end"], region["sources"][-1],
        )
    return join_blocks(flatten_overlaps(overlaps)), regions


def merge_hex_files(
    output_path: Path,
    input_paths: list[Path],
    *,
    line_size: int = DEFAULT_LINE_SIZE,
    allow_overlap: bool = False,
) -> dict[str, Any]:
    """Merge ``input_paths`` into ``output_path`` and return a summary."""
    images = [(str(path), load_hex(path)) for path in input_paths]
    for name, memory in images:
        log.info("Loaded %s: %d blocks, %d bytes", name, len(memory), memory.total_size)

    merged, regions = merge_images(images, allow_overlap=allow_overlap)
    save_hex(merged, output_path, line_size=line_size)
    log.info("Merged %d hex files -> %s", len(input_paths), output_path)

    return {
        "inputs": [name for name, _ in images],
        "output": str(output_path),
        "overlaps": regions,
        "manifest": build_image_manifest(merged, source=str(output_path)),
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Merge Intel HEX files.")
    parser.add_argument("output", type=Path, help="Output .hex file")
    parser.add_argument("inputs", type=Path, nargs="+", help="Input .hex files, lowest priority first")
    parser.add_argument(
        "--line-size", type=int, default=DEFAULT_LINE_SIZE,
        help=f"Data bytes per record (default: {DEFAULT_LINE_SIZE})",
    )
    parser.add_argument(
        "--allow-overlap", action="store_true",
        help="Let later inputs overwrite earlier ones instead of failing",
    )
    parser.add_argument("--report", action="store_true", help="Print a JSON merge summary.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )

    missing = [path for path in args.inputs if not path.exists()]
    if missing:
        for path in missing:
            log.error("File not found: %s", path)
        sys.exit(1)

    try:
        summary = merge_hex_files(
            args.output,
            args.inputs,
            line_size=args.line_size,
            allow_overlap=args.allow_overlap,
        )
    except OverlapConflict as exc:
        log.error("%s", exc)
        for region in exc.regions:
            log.error(
                "  %s..%s written by %s", region["start"], region["end"], ", ".join(region["sources"]),
            )
        sys.exit(1)
    except IntelHexError as exc:
        log.error("Merge failed: %s", exc)
        sys.exit(1)

    if args.report:
        sys.stdout.buffer.write(dumps_json(summary))


if __name__ == "__main__":
    main()
