"""I/O utilities for .hex files and JSON reports.

JSON goes through orjson; hex text is read and written as ASCII.
"""
from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import orjson

from sparsehex.decoder import decode_hex
from sparsehex.encoder import DEFAULT_LINE_SIZE, encode_hex
from sparsehex.types import MemoryMap


def load_hex(path: Path, *, max_block_size: int | None = None) -> MemoryMap:
    """Read and decode a .hex file."""
    return decode_hex(path.read_text(encoding="ascii"), max_block_size)


def save_hex(
    blocks: Mapping[Any, Any],
    path: Path,
    *,
    line_size: int = DEFAULT_LINE_SIZE,
) -> None:
    """Encode ``blocks`` and write them to ``path`` with a final newline."""
    text = encode_hex(blocks, line_size)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text + "\n", encoding="ascii")


def load_json(path: Path) -> Any:
    return orjson.loads(path.read_bytes())


def save_json(obj: Any, path: Path, *, pretty: bool = True) -> None:
    """Save an object as JSON with sorted keys."""
    opts = orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS if pretty else orjson.OPT_SORT_KEYS
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(orjson.dumps(obj, option=opts))


def dumps_json(obj: Any, *, pretty: bool = True) -> bytes:
    """Serialize ``obj`` for stdout, newline-terminated."""
    opts = orjson.OPT_INDENT_2 if pretty else 0
    return orjson.dumps(obj, option=opts | orjson.OPT_APPEND_NEWLINE)
