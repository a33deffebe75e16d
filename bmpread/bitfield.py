"""Channel bit-fields for BITFIELDS-compressed 16 and 32-bit images."""

from __future__ import annotations

from dataclasses import dataclass
from itertools import combinations
from typing import Sequence, Tuple

import numpy as np

from .errors import FormatError

CHANNELS = ("red", "green", "blue", "alpha")


@dataclass(frozen=True)
class BitField:
    """Position and scale of one colour channel inside a pixel word."""

    mask: int = 0
    shift: int = 0
    count: int = 0
    multiplier: float = 0.0

    @classmethod
    def from_mask(cls, mask: int) -> "BitField":
        """Derive shift, width and 0-255 scaling from a raw channel mask.

        An empty mask yields an empty field. The set bits must form a single
        contiguous run.
        """

        if mask == 0:
            return cls()

        shift = -1
        count = 0
        previous = -1
        for bit in range(32):
            if not mask & (1 << bit):
                continue
            if shift < 0:
                shift = bit
            elif bit != previous + 1:
                raise FormatError(f"Channel mask {mask:#010x} is not contiguous")
            previous = bit
            count += 1

        return cls(
            mask=mask,
            shift=shift,
            count=count,
            multiplier=255.0 / ((1 << count) - 1),
        )

    @property
    def empty(self) -> bool:
        return self.mask == 0

    def overlaps(self, other: "BitField") -> bool:
        return bool(self.mask & other.mask)

    def extract(self, pixels: np.ndarray) -> np.ndarray:
        """Return the channel of every raw pixel scaled to 0-255."""

        raw = (pixels.astype(np.uint32) & np.uint32(self.mask)) >> np.uint32(
            self.shift
        )
        scaled = np.floor(raw * self.multiplier + 0.5)
        return np.clip(scaled, 0, 255).astype(np.uint8)


def build_bitfields(masks: Sequence[int], bits: int) -> Tuple[BitField, ...]:
    """Build the red, green, blue and alpha fields of a BITFIELDS image.

    Masks missing from the header (alpha in a minimal info block) are empty.
    Fails when any mask is not contiguous, two masks share a bit, or the
    channels together need more bits than a pixel has.
    """

    padded = list(masks[: len(CHANNELS)]) + [0] * (len(CHANNELS) - len(masks))
    fields = tuple(BitField.from_mask(mask) for mask in padded)

    for (name_a, field_a), (name_b, field_b) in combinations(
        zip(CHANNELS, fields), 2
    ):
        if field_a.overlaps(field_b):
            raise FormatError(
                f"{name_a} mask {field_a.mask:#010x} overlaps "
                f"{name_b} mask {field_b.mask:#010x}"
            )

    total = sum(field.count for field in fields)
    if total > bits:
        raise FormatError(f"Channel masks use {total} bits of a {bits}-bit pixel")

    return fields
