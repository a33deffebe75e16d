"""Little-endian integer readers for binary streams.

Every reader returns ``None`` when the stream ends early or the read fails,
so callers can tell a short file apart from a legitimate zero value.
"""

from __future__ import annotations

import logging
import struct
from typing import BinaryIO, Optional

logger = logging.getLogger(__name__)


def read_little_bytes(fp: BinaryIO, count: int) -> Optional[int]:
    """Read ``count`` bytes and assemble them least significant first."""

    try:
        data = fp.read(count)
    except OSError as exc:
        logger.debug("Read of %d bytes failed: %s", count, exc)
        return None
    if data is None or len(data) < count:
        return None
    return int.from_bytes(data, "little")


def read_uint8(fp: BinaryIO) -> Optional[int]:
    return read_little_bytes(fp, 1)


def read_uint16(fp: BinaryIO) -> Optional[int]:
    return read_little_bytes(fp, 2)


def read_uint32(fp: BinaryIO) -> Optional[int]:
    return read_little_bytes(fp, 4)


def read_int32(fp: BinaryIO) -> Optional[int]:
    """Read a signed 32-bit value by reinterpreting the unsigned bits."""

    value = read_uint32(fp)
    if value is None:
        return None
    return struct.unpack("<i", struct.pack("<I", value))[0]
