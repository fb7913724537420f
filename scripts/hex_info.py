#!/usr/bin/env python3
"""Describe the memory image held in an Intel HEX file.

Decodes the file, then emits a manifest with the block layout, sizes and
sha256 digests. Optionally compares against a previously saved manifest.

Usage:
    python3 scripts/hex_info.py --hex build/firmware.hex
    python3 scripts/hex_info.py --hex build/firmware.hex --output firmware.manifest.json
    python3 scripts/hex_info.py --hex build/firmware.hex --compare old.manifest.json

Structured JSON output goes to stdout; human messages go to stderr.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

from sparsehex.errors import IntelHexError
from sparsehex.image import build_image_manifest, compare_manifests
from sparsehex.io_utils import dumps_json, load_hex, load_json, save_json

log = logging.getLogger("hex_info")


def describe_hex(path: Path, *, max_block_size: int | None = None) -> dict[str, Any]:
    """Decode ``path`` and return its image manifest."""
    memory = load_hex(path, max_block_size=max_block_size)
    log.debug("Decoded %s: %d blocks, %d bytes", path, len(memory), memory.total_size)
    return build_image_manifest(
        memory,
        source=str(path),
        notes={"max_block_size": max_block_size},
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Describe an Intel HEX memory image.")
    parser.add_argument("--hex", type=Path, required=True, help="Input .hex file")
    parser.add_argument(
        "--max-block-size", type=int, default=None,
        help="Cap merged block size in bytes (default: unbounded)",
    )
    parser.add_argument("--output", type=Path, default=None, help="Optional JSON output path")
    parser.add_argument(
        "--compare", type=Path, default=None,
        help="Previous manifest to diff against",
    )
    parser.add_argument("--compact", action="store_true", help="Emit compact JSON.")
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
        manifest = describe_hex(args.hex, max_block_size=args.max_block_size)
    except IntelHexError as exc:
        log.error("Failed to decode %s: %s", args.hex, exc)
        sys.exit(1)

    log.info(
        "%s: %d blocks, %d bytes, %s..%s",
        args.hex,
        manifest["block_count"],
        manifest["total_size"],
        manifest["start_address"],
        manifest["end_address"],
    )

    output: dict[str, Any] = {"manifest": manifest}
    if args.compare is not None:
        if not args.compare.exists():
            log.error("manifest not found at %s", args.compare)
            sys.exit(1)
        output["comparison"] = compare_manifests(manifest, load_json(args.compare))

    if args.output is not None:
        save_json(manifest, args.output, pretty=not args.compact)
        log.info("Wrote manifest to %s", args.output)

    sys.stdout.buffer.write(dumps_json(output, pretty=not args.compact))


if __name__ == "__main__":
    main()
