"""Validation of parsed headers and construction of the decode context."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import BinaryIO, Optional, Tuple

import numpy as np

from .bitfield import BitField, build_bitfields
from .errors import AllocationError, BitmapValidationError, FormatError
from .flags import ReadFlags
from .header import Compression, FileHeader, InfoHeader
from .palette import read_palette
from .safemath import (
    checked_mul,
    is_power_of_two,
    line_length,
    safe_narrow,
    safe_negate,
)

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = {
    Compression.NONE: (1, 4, 8, 24),
    Compression.BITFIELDS: (16, 32),
}


@dataclass(frozen=True)
class DecodeContext:
    """Everything the decode loop needs, fixed before the first scan line."""

    flags: ReadFlags
    header: FileHeader
    info: InfoHeader
    lines: int
    file_line_length: int
    channels: int
    output_line_length: int
    palette: Optional[np.ndarray]
    bitfields: Optional[Tuple[BitField, ...]]
    scratch: np.ndarray
    output: np.ndarray

    @property
    def width(self) -> int:
        return self.info.width

    @property
    def reverse_rows(self) -> bool:
        """Whether file order and requested output order disagree."""

        return self.info.top_down != bool(self.flags & ReadFlags.TOP_DOWN)


def allocate_buffer(size: int) -> np.ndarray:
    try:
        return np.zeros(size, dtype=np.uint8)
    except (MemoryError, ValueError) as exc:
        raise AllocationError(f"Could not allocate {size} bytes") from exc


def allocate_scratch(size: int) -> np.ndarray:
    try:
        return np.empty(size, dtype=np.uint8)
    except (MemoryError, ValueError) as exc:
        raise AllocationError(f"Could not allocate {size} bytes") from exc


def check_format(info: InfoHeader) -> None:
    depths = SUPPORTED_FORMATS.get(info.compression)
    if depths is None:
        raise FormatError(f"Unsupported compression mode {info.compression}")
    if info.bits not in depths:
        raise FormatError(
            f"{info.bits}-bit pixels are not supported with compression "
            f"{info.compression}"
        )


def build_context(
    fp: BinaryIO, flags: ReadFlags, header: FileHeader, info: InfoHeader
) -> DecodeContext:
    """Validate the headers and acquire every buffer the decode needs.

    Checks run in a fixed order and the first failure aborts: dimensions,
    pixel format, scan line sizes, power-of-two sizes, then the palette or
    channel masks, and only then the scratch line and output buffer.
    """

    flags = ReadFlags(flags)

    if info.width <= 0:
        raise BitmapValidationError(f"Width must be positive, got {info.width}")
    if info.height == 0:
        raise BitmapValidationError("Height must not be zero")

    check_format(info)

    file_line_length = line_length(info.width, info.bits)

    channels = flags.channels
    if flags & ReadFlags.BYTE_ALIGN:
        output_line_length = checked_mul(info.width, channels)
    else:
        output_line_length = line_length(info.width, channels * 8)

    lines = safe_negate(info.height) if info.height < 0 else info.height

    if not flags & ReadFlags.ANY_SIZE:
        if not is_power_of_two(info.width):
            raise BitmapValidationError(f"Width {info.width} is not a power of two")
        if not is_power_of_two(lines):
            raise BitmapValidationError(f"Height {lines} is not a power of two")

    palette = None
    if info.bits <= 8:
        palette = read_palette(fp, safe_narrow(info.info_size), info.bits)

    bitfields = None
    if info.compression == Compression.BITFIELDS:
        bitfields = build_bitfields(info.masks, info.bits)

    output_size = checked_mul(output_line_length, lines)
    scratch = allocate_scratch(file_line_length)
    output = allocate_buffer(output_size)

    logger.debug(
        "Layout: %d lines, file line %d bytes, output line %d bytes, %d channels",
        lines,
        file_line_length,
        output_line_length,
        channels,
    )
    return DecodeContext(
        flags=flags,
        header=header,
        info=info,
        lines=lines,
        file_line_length=file_line_length,
        channels=channels,
        output_line_length=output_line_length,
        palette=palette,
        bitfields=bitfields,
        scratch=scratch,
        output=output,
    )
