"""Exceptions raised while decoding a bitmap."""

from __future__ import annotations


class BitmapError(ValueError):
    """Base class for every reason a bitmap is rejected."""


class BitmapIOError(BitmapError):
    """The stream could not be opened or read."""


class TruncatedFileError(BitmapIOError):
    """The stream ended before a field or scan line was complete."""


class FormatError(BitmapError):
    """The file is not a bitmap this package understands."""


class BitmapValidationError(BitmapError):
    """Header values are well formed but not acceptable."""


class BitmapArithmeticError(BitmapError, OverflowError):
    """A size computation would leave the representable range."""


class AllocationError(BitmapError, MemoryError):
    """A decode buffer could not be allocated."""
