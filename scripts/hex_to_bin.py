#!/usr/bin/env python3
"""Convert an Intel HEX file to a flat binary image, filling gaps.

Without --page-size the image spans --start..--end (defaulting to the data
span). With --page-size the image is built from whole pages, so it starts and
ends on page boundaries, as a page-erasing flash programmer would write it.

Usage:
    python3 scripts/hex_to_bin.py firmware.hex firmware.bin
    python3 scripts/hex_to_bin.py rom.hex rom.bin --start 0 --size 0x8000 --fill 0x00
    python3 scripts/hex_to_bin.py app.hex app.bin --page-size 4096
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from sparsehex.blocks import DEFAULT_PAD, paginate
from sparsehex.errors import IntelHexError
from sparsehex.image import format_address, to_binary
from sparsehex.io_utils import load_hex
from sparsehex.types import MemoryMap

log = logging.getLogger("hex_to_bin")


def build_binary(
    memory: MemoryMap,
    *,
    start: int | None = None,
    end: int | None = None,
    fill: int = DEFAULT_PAD,
    page_size: int | None = None,
) -> tuple[int, bytes]:
    """Return ``(base_address, image)`` for ``memory``."""
    if page_size is not None:
        memory = paginate(memory, page_size, fill)
        log.debug("Paginated into %d pages of %d bytes", len(memory), page_size)
    if start is None:
        start = memory.start_address if memory.start_address is not None else 0
    return start, to_binary(memory, start=start, end=end, pad=fill)


def main() -> None:
    parser = argparse.ArgumentParser(description="Convert Intel HEX to a flat binary image.")
    parser.add_argument("hex", type=Path, help="Input .hex (Intel HEX)")
    parser.add_argument("bin", type=Path, help="Output .bin")
    parser.add_argument("--start", default=None, help="First address of the image (default: data start)")
    window = parser.add_mutually_exclusive_group()
    window.add_argument("--end", default=None, help="End address, exclusive (default: data end)")
    window.add_argument("--size", default=None, help="Image size in bytes, from --start")
    parser.add_argument("--fill", default=f"{DEFAULT_PAD:#04x}", help="Fill byte for gaps")
    parser.add_argument("--page-size", default=None, help="Assemble the image from whole pages")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )

    if not args.hex.exists():
        log.error("hex file not found at %s", args.hex)
        sys.exit(1)

    try:
        start = int(args.start, 0) if args.start is not None else None
        end = int(args.end, 0) if args.end is not None else None
        page_size = int(args.page_size, 0) if args.page_size is not None else None
        fill = int(args.fill, 0)
        memory = load_hex(args.hex)
        if args.size is not None:
            if start is None:
                start = memory.start_address if memory.start_address is not None else 0
            end = start + int(args.size, 0)
        base, image = build_binary(memory, start=start, end=end, fill=fill, page_size=page_size)
    except (IntelHexError, ValueError) as exc:
        log.error("Conversion failed: %s", exc)
        sys.exit(1)

    args.bin.parent.mkdir(parents=True, exist_ok=True)
    args.bin.write_bytes(image)
    log.info("Wrote %d bytes from %s to %s", len(image), format_address(base), args.bin)


if __name__ == "__main__":
    main()
