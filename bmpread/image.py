"""Decoded bitmap descriptor."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .flags import ReadFlags
from .safemath import line_length


@dataclass
class BitmapImage:
    """Pixels produced by a successful decode.

    ``data`` holds ``height`` rows of ``row_length`` bytes each, in the order
    and with the padding selected by ``flags``. The caller owns it until
    :meth:`release` is called.
    """

    width: int = 0
    height: int = 0
    flags: ReadFlags = ReadFlags.NONE
    data: Optional[np.ndarray] = None

    @property
    def channels(self) -> int:
        return ReadFlags(self.flags).channels

    @property
    def row_length(self) -> int:
        """Bytes per output row, padding included."""

        if self.width == 0:
            return 0
        if self.flags & ReadFlags.BYTE_ALIGN:
            return self.width * self.channels
        return line_length(self.width, self.channels * 8)

    @property
    def released(self) -> bool:
        return self.data is None

    def to_array(self) -> np.ndarray:
        """Return a ``(height, width, channels)`` view that skips row padding."""

        if self.data is None:
            raise ValueError("Bitmap has been released")
        rows = self.data.reshape(self.height, self.row_length)
        return rows[:, : self.width * self.channels].reshape(
            self.height, self.width, self.channels
        )

    def release(self) -> None:
        """Drop the pixel buffer and clear the descriptor. Safe to repeat."""

        self.data = None
        self.width = 0
        self.height = 0
        self.flags = ReadFlags.NONE
