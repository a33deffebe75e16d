from __future__ import annotations

import itertools
import struct
from pathlib import Path
from typing import Callable, Sequence, Tuple

import pytest

Color = Tuple[int, int, int]


def build_bitmap(
    rows: Sequence[bytes],
    *,
    width: int,
    height: int | None = None,
    bits: int = 24,
    compression: int = 0,
    palette: Sequence[Color] = (),
    masks: Sequence[int] = (),
    info_size: int = 40,
    magic: bytes = b"BM",
) -> bytes:
    """Assemble a bitmap from raw scan lines given in file order.

    Each row is padded to a 4-byte boundary. ``height`` defaults to the
    number of rows (bottom-up); pass a negative value for top-down files.
    """

    if height is None:
        height = len(rows)

    info = struct.pack(
        "<IiiHHIIIIII",
        info_size,
        width,
        height,
        1,
        bits,
        compression,
        0,
        2835,
        2835,
        len(palette),
        0,
    )
    info += b"".join(struct.pack("<I", mask) for mask in masks)
    if len(info) < info_size:
        info += b"\x00" * (info_size - len(info))

    color_table = b"".join(bytes((b, g, r, 0)) for r, g, b in palette)

    pixel_data = bytearray()
    for row in rows:
        pixel_data.extend(row)
        pixel_data.extend(b"\x00" * ((4 - len(row) % 4) % 4))

    data_offset = 14 + len(info) + len(color_table)
    file_header = struct.pack(
        "<2sIHHI",
        magic,
        data_offset + len(pixel_data),
        0,
        0,
        data_offset,
    )
    return file_header + info + color_table + bytes(pixel_data)


@pytest.fixture
def make_bitmap() -> Callable[..., bytes]:
    return build_bitmap


@pytest.fixture
def bitmap_file(tmp_path: Path) -> Callable[..., Path]:
    counter = itertools.count()

    def write(*args, **kwargs) -> Path:
        path = tmp_path / f"image_{next(counter):03d}.bmp"
        path.write_bytes(build_bitmap(*args, **kwargs))
        return path

    return write
