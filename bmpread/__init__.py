"""Loader for Windows and OS/2 bitmap files."""

from .bitfield import BitField
from .context import DecodeContext
from .decoders import BitDepth
from .errors import (
    AllocationError,
    BitmapArithmeticError,
    BitmapError,
    BitmapIOError,
    BitmapValidationError,
    FormatError,
    TruncatedFileError,
)
from .flags import DEFAULT_ALPHA, ReadFlags
from .header import Compression, FileHeader, InfoHeader
from .image import BitmapImage
from .reader import load, read_bitmap, release

__all__ = [
    "AllocationError",
    "BitDepth",
    "BitField",
    "BitmapArithmeticError",
    "BitmapError",
    "BitmapIOError",
    "BitmapImage",
    "BitmapValidationError",
    "Compression",
    "DEFAULT_ALPHA",
    "DecodeContext",
    "FileHeader",
    "FormatError",
    "InfoHeader",
    "ReadFlags",
    "TruncatedFileError",
    "load",
    "read_bitmap",
    "release",
]
