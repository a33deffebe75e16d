"""Decode options and format constants."""

from __future__ import annotations

from enum import IntFlag

FILE_HEADER_SIZE = 14  # bytes
MIN_INFO_SIZE = 40  # Windows 3/NT BITMAPINFOHEADER
DEFAULT_ALPHA = 255


class ReadFlags(IntFlag):
    """Independently combinable options for :func:`bmpread.read_bitmap`."""

    NONE = 0
    TOP_DOWN = 1  # first output row is the top of the image
    BYTE_ALIGN = 2  # no padding after each output row
    ANY_SIZE = 4  # allow dimensions that are not powers of two
    ALPHA = 8  # emit RGBA instead of RGB

    @property
    def channels(self) -> int:
        """Number of output bytes per pixel."""

        return 4 if self & ReadFlags.ALPHA else 3
