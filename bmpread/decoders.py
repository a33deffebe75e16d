"""Scan line decoders, one variant per family of pixel encodings."""

from __future__ import annotations

from enum import IntEnum
from typing import TYPE_CHECKING, Optional, Sequence

import numpy as np

from .bitfield import BitField
from .errors import FormatError
from .flags import DEFAULT_ALPHA

if TYPE_CHECKING:
    from .context import DecodeContext


class BitDepth(IntEnum):
    ONE = 1
    FOUR = 4
    EIGHT = 8
    SIXTEEN = 16
    TWENTY_FOUR = 24
    THIRTY_TWO = 32


PALETTE_DEPTHS = (BitDepth.ONE, BitDepth.FOUR, BitDepth.EIGHT)
BITFIELD_DEPTHS = (BitDepth.SIXTEEN, BitDepth.THIRTY_TWO)


class ScanlineDecoder:
    """Convert one raw file scan line into RGB or RGBA bytes."""

    def __init__(self, channels: int) -> None:
        self.channels = channels

    def decode(self, dest: np.ndarray, raw: np.ndarray, width: int) -> None:
        """Fill ``dest`` (``width * channels`` bytes) from ``raw``."""

        pixels = dest.reshape(width, self.channels)
        self._fill(pixels, raw, width)
        if self.channels == 4 and not self._writes_alpha():
            pixels[:, 3] = DEFAULT_ALPHA

    def _fill(self, pixels: np.ndarray, raw: np.ndarray, width: int) -> None:
        """Write the colour channels of every pixel; subclasses override this."""

        raise NotImplementedError

    def _writes_alpha(self) -> bool:
        return False


class PaletteDecoder(ScanlineDecoder):
    """Indexed colour lookups for 1, 4 and 8-bit images."""

    def __init__(self, depth: BitDepth, palette: np.ndarray, channels: int) -> None:
        super().__init__(channels)
        self.depth = depth
        self.palette = palette

    def indices(self, raw: np.ndarray, width: int) -> np.ndarray:
        if self.depth == BitDepth.ONE:
            # most significant bit is the leftmost pixel
            return np.unpackbits(raw)[:width]
        if self.depth == BitDepth.FOUR:
            return np.column_stack((raw >> 4, raw & 0x0F)).ravel()[:width]
        return raw[:width]

    def _fill(self, pixels: np.ndarray, raw: np.ndarray, width: int) -> None:
        pixels[:, :3] = self.palette[self.indices(raw, width)]


class BgrDecoder(ScanlineDecoder):
    """Plain 24-bit pixels stored as blue, green, red."""

    def _fill(self, pixels: np.ndarray, raw: np.ndarray, width: int) -> None:
        pixels[:, :3] = raw[: width * 3].reshape(width, 3)[:, ::-1]


class BitFieldDecoder(ScanlineDecoder):
    """16 and 32-bit pixels whose channels are described by bit masks."""

    def __init__(
        self, depth: BitDepth, bitfields: Sequence[BitField], channels: int
    ) -> None:
        super().__init__(channels)
        self.depth = depth
        self.bitfields = tuple(bitfields)
        self.word_type = np.dtype("<u2" if depth == BitDepth.SIXTEEN else "<u4")

    def _writes_alpha(self) -> bool:
        return not self.bitfields[3].empty

    def _fill(self, pixels: np.ndarray, raw: np.ndarray, width: int) -> None:
        words = raw[: width * self.word_type.itemsize].view(self.word_type)
        for channel, field in enumerate(self.bitfields[: self.channels]):
            if channel == 3 and field.empty:
                continue
            pixels[:, channel] = field.extract(words)


def make_decoder(context: "DecodeContext") -> ScanlineDecoder:
    """Select the decoder for the context's declared bit depth."""

    return create_decoder(
        context.info.bits,
        context.channels,
        palette=context.palette,
        bitfields=context.bitfields,
    )


def create_decoder(
    bits: int,
    channels: int,
    *,
    palette: Optional[np.ndarray] = None,
    bitfields: Optional[Sequence[BitField]] = None,
) -> ScanlineDecoder:
    try:
        depth = BitDepth(bits)
    except ValueError:
        raise FormatError(f"No scan line decoder for {bits}-bit pixels") from None

    if depth in PALETTE_DEPTHS:
        if palette is None:
            raise FormatError(f"{bits}-bit image has no palette")
        return PaletteDecoder(depth, palette, channels)
    if depth in BITFIELD_DEPTHS:
        if bitfields is None:
            raise FormatError(f"{bits}-bit image has no channel masks")
        return BitFieldDecoder(depth, bitfields, channels)
    return BgrDecoder(channels)
