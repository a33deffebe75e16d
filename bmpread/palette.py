"""Colour table loading for 1, 4 and 8-bit images."""

from __future__ import annotations

import logging
from typing import BinaryIO

import numpy as np

from .errors import BitmapIOError, TruncatedFileError
from .flags import FILE_HEADER_SIZE
from .safemath import checked_add, checked_mul

logger = logging.getLogger(__name__)

ENTRY_SIZE = 4  # blue, green, red, unused


def read_palette(fp: BinaryIO, info_size: int, bits: int) -> np.ndarray:
    """Read ``2 ** bits`` colour table entries as an ``(n, 3)`` RGB array.

    The table starts right after the info block, whose on-disk size may be
    larger than the fields this package parses.
    """

    colors = 1 << bits
    offset = checked_add(FILE_HEADER_SIZE, info_size)
    size = checked_mul(colors, ENTRY_SIZE)

    try:
        fp.seek(offset)
        data = fp.read(size)
    except OSError as exc:
        raise BitmapIOError(f"Could not read palette at offset {offset}: {exc}") from exc
    if len(data) < size:
        raise TruncatedFileError(
            f"Palette needs {size} bytes at offset {offset}, found {len(data)}"
        )

    entries = np.frombuffer(data, dtype=np.uint8).reshape(colors, ENTRY_SIZE)
    logger.debug("Loaded %d palette entries from offset %d", colors, offset)
    # stored as blue, green, red
    return np.ascontiguousarray(entries[:, 2::-1])
