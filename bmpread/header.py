"""Parsing of the bitmap file header and info block."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import BinaryIO, Optional, Tuple

from .errors import FormatError, TruncatedFileError
from .flags import MIN_INFO_SIZE
from .stream import read_int32, read_uint8, read_uint16, read_uint32

logger = logging.getLogger(__name__)

MAGIC = b"BM"
RESERVED_WORDS = 5  # image size, x/y resolution, colours used/important


class Compression(IntEnum):
    NONE = 0
    RLE8 = 1
    RLE4 = 2
    BITFIELDS = 3


@dataclass(frozen=True)
class FileHeader:
    """The 14-byte header at the start of every bitmap file."""

    magic: bytes
    file_size: int
    reserved: int
    data_offset: int


@dataclass(frozen=True)
class InfoHeader:
    """Geometry and pixel format fields of the info block."""

    info_size: int
    width: int
    height: int
    planes: int
    bits: int
    compression: int
    reserved: Tuple[int, ...] = ()
    masks: Tuple[int, ...] = ()

    @property
    def top_down(self) -> bool:
        """Whether the file stores its first scan line at the top."""

        return self.height < 0


def _require(value: Optional[int], field: str) -> int:
    if value is None:
        raise TruncatedFileError(f"File ends before the {field} field")
    return value


def read_file_header(fp: BinaryIO) -> FileHeader:
    """Read the file header, rejecting non-bitmaps after two bytes."""

    first = _require(read_uint8(fp), "magic")
    second = _require(read_uint8(fp), "magic")
    magic = bytes((first, second))
    if magic != MAGIC:
        raise FormatError(f"Not a bitmap file (magic {magic!r})")

    file_size = _require(read_uint32(fp), "file size")
    reserved = _require(read_uint32(fp), "reserved")
    data_offset = _require(read_uint32(fp), "data offset")

    logger.debug("File header: size=%d data_offset=%d", file_size, data_offset)
    return FileHeader(
        magic=magic,
        file_size=file_size,
        reserved=reserved,
        data_offset=data_offset,
    )


def read_info_header(fp: BinaryIO) -> InfoHeader:
    """Read the info block that immediately follows the file header.

    The declared size is checked before any other field is trusted: layouts
    smaller than the Windows 3 header cannot supply the fields we need.
    Channel masks are only read for BITFIELDS images; the alpha mask only
    exists in headers larger than the minimum.
    """

    info_size = _require(read_uint32(fp), "info size")
    if info_size < MIN_INFO_SIZE:
        raise FormatError(
            f"Info header of {info_size} bytes is smaller than {MIN_INFO_SIZE}"
        )

    width = _require(read_int32(fp), "width")
    height = _require(read_int32(fp), "height")
    planes = _require(read_uint16(fp), "planes")
    bits = _require(read_uint16(fp), "bits per pixel")
    compression = _require(read_uint32(fp), "compression")
    reserved = tuple(
        _require(read_uint32(fp), "reserved") for _ in range(RESERVED_WORDS)
    )

    masks: Tuple[int, ...] = ()
    if compression == Compression.BITFIELDS:
        mask_count = 4 if info_size > MIN_INFO_SIZE else 3
        masks = tuple(
            _require(read_uint32(fp), "channel mask") for _ in range(mask_count)
        )

    logger.debug(
        "Info header: size=%d width=%d height=%d bits=%d compression=%d masks=%s",
        info_size,
        width,
        height,
        bits,
        compression,
        [hex(mask) for mask in masks],
    )
    return InfoHeader(
        info_size=info_size,
        width=width,
        height=height,
        planes=planes,
        bits=bits,
        compression=compression,
        reserved=reserved,
        masks=masks,
    )
