from __future__ import annotations

import io
import struct
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

import bmpread.context
from bmpread import (
    AllocationError,
    BitmapArithmeticError,
    BitmapIOError,
    BitmapValidationError,
    FormatError,
    ReadFlags,
    TruncatedFileError,
    load,
    read_bitmap,
    release,
)

# distinct blue, green, red triples, first file row first
FILE_ROWS = [
    bytes((1, 2, 3, 4, 5, 6)),
    bytes((7, 8, 9, 10, 11, 12)),
]
FIRST_ROW_RGB = [3, 2, 1, 6, 5, 4]
SECOND_ROW_RGB = [9, 8, 7, 12, 11, 10]


def _rows(image) -> list:
    return image.to_array().reshape(image.height, -1).tolist()


def test_top_down_file_is_reversed_by_default(make_bitmap):
    image = read_bitmap(io.BytesIO(make_bitmap(FILE_ROWS, width=2, height=-2)))

    assert (image.width, image.height, image.channels) == (2, 2, 3)
    assert image.row_length == 8
    assert image.data.size == 16
    assert _rows(image) == [SECOND_ROW_RGB, FIRST_ROW_RGB]
    assert image.data.tolist()[6:8] == [0, 0]


def test_top_down_file_keeps_order_when_requested(make_bitmap):
    data = make_bitmap(FILE_ROWS, width=2, height=-2)
    image = read_bitmap(io.BytesIO(data), ReadFlags.TOP_DOWN)
    assert _rows(image) == [FIRST_ROW_RGB, SECOND_ROW_RGB]


def test_bottom_up_file_orientation(make_bitmap):
    data = make_bitmap(FILE_ROWS, width=2)
    assert _rows(read_bitmap(io.BytesIO(data))) == [FIRST_ROW_RGB, SECOND_ROW_RGB]
    assert _rows(read_bitmap(io.BytesIO(data), ReadFlags.TOP_DOWN)) == [
        SECOND_ROW_RGB,
        FIRST_ROW_RGB,
    ]


def test_byte_align_and_alpha(make_bitmap):
    data = make_bitmap(FILE_ROWS, width=2)

    packed = read_bitmap(io.BytesIO(data), ReadFlags.BYTE_ALIGN)
    assert packed.data.tolist() == FIRST_ROW_RGB + SECOND_ROW_RGB

    rgba = read_bitmap(io.BytesIO(data), ReadFlags.ALPHA | ReadFlags.BYTE_ALIGN)
    assert rgba.channels == 4
    assert rgba.data.tolist()[:8] == [3, 2, 1, 255, 6, 5, 4, 255]
    assert rgba.flags == ReadFlags.ALPHA | ReadFlags.BYTE_ALIGN


def test_any_size_allows_odd_dimensions(make_bitmap):
    rows = [bytes(range(9)) for _ in range(3)]
    data = make_bitmap(rows, width=3)

    with pytest.raises(BitmapValidationError):
        read_bitmap(io.BytesIO(data))

    image = read_bitmap(io.BytesIO(data), ReadFlags.ANY_SIZE)
    assert (image.width, image.height) == (3, 3)
    assert image.row_length == 12
    assert image.to_array()[0, 0].tolist() == [2, 1, 0]


def test_palette_after_larger_info_block(make_bitmap):
    palette = [(255, 0, 0), (0, 255, 0), (0, 0, 255), (9, 9, 9)] + [(0, 0, 0)] * 12
    data = make_bitmap(
        [b"\x01\x23"], width=4, height=1, bits=4, palette=palette, info_size=56
    )
    image = read_bitmap(io.BytesIO(data))
    assert image.to_array()[0].tolist() == [
        [255, 0, 0],
        [0, 255, 0],
        [0, 0, 255],
        [9, 9, 9],
    ]


def test_one_and_eight_bit_palettes(make_bitmap):
    mono = make_bitmap(
        [b"\x80", b"\x40"], width=2, bits=1, palette=[(0, 0, 0), (200, 100, 50)]
    )
    image = read_bitmap(io.BytesIO(mono), ReadFlags.TOP_DOWN)
    assert image.to_array().tolist() == [
        [[0, 0, 0], [200, 100, 50]],
        [[200, 100, 50], [0, 0, 0]],
    ]

    palette = [(i, 255 - i, i // 2) for i in range(256)]
    indexed = make_bitmap([bytes((0, 255)), bytes((16, 128))], width=2, bits=8, palette=palette)
    image = read_bitmap(io.BytesIO(indexed), ReadFlags.ALPHA)
    assert image.to_array().tolist() == [
        [[0, 255, 0, 255], [255, 0, 127, 255]],
        [[16, 239, 8, 255], [128, 127, 64, 255]],
    ]


def test_sixteen_bit_bitfields(make_bitmap):
    rows = [struct.pack("<HH", 0xF800, 0x07E0), struct.pack("<HH", 0x001F, 0xFFFF)]
    data = make_bitmap(rows, width=2, bits=16, compression=3, masks=(0xF800, 0x07E0, 0x001F))
    image = read_bitmap(io.BytesIO(data), ReadFlags.ALPHA)
    assert image.to_array().tolist() == [
        [[255, 0, 0, 255], [0, 255, 0, 255]],
        [[0, 0, 255, 255], [255, 255, 255, 255]],
    ]


def test_thirty_two_bit_bitfields_with_alpha(make_bitmap):
    masks = (0x00FF0000, 0x0000FF00, 0x000000FF, 0xFF000000)
    rows = [struct.pack("<I", 0x40112233)]
    data = make_bitmap(rows, width=1, bits=32, compression=3, masks=masks, info_size=56)
    assert read_bitmap(io.BytesIO(data), ReadFlags.ALPHA).to_array().tolist() == [
        [[0x11, 0x22, 0x33, 0x40]]
    ]
    assert read_bitmap(io.BytesIO(data)).to_array().tolist() == [[[0x11, 0x22, 0x33]]]


@pytest.mark.parametrize(
    "compression, bits",
    [(1, 8), (2, 4), (0, 2), (0, 16), (0, 32), (3, 24), (3, 8)],
)
def test_unsupported_formats_are_rejected_before_allocation(
    make_bitmap, monkeypatch, compression, bits
):
    allocations = []
    monkeypatch.setattr(bmpread.context, "allocate_buffer", allocations.append)
    data = make_bitmap([b"\x00" * 16], width=1, bits=bits, compression=compression)

    with pytest.raises(FormatError):
        read_bitmap(io.BytesIO(data))
    assert allocations == []


def test_non_contiguous_masks_are_rejected(make_bitmap):
    data = make_bitmap(
        [b"\x00\x00"], width=1, bits=16, compression=3, masks=(0xF0F0, 0x0F00, 0x000F)
    )
    with pytest.raises(FormatError):
        read_bitmap(io.BytesIO(data))


@pytest.mark.parametrize("width, height", [(0, 1), (-4, 1), (1, 0)])
def test_invalid_dimensions(make_bitmap, width, height):
    data = make_bitmap([b"\x00" * 4], width=width, height=height)
    with pytest.raises(BitmapValidationError):
        read_bitmap(io.BytesIO(data), ReadFlags.ANY_SIZE)


def test_height_without_negation_is_rejected(make_bitmap):
    data = make_bitmap([b"\x00" * 4], width=1, height=-(1 << 31))
    with pytest.raises(BitmapArithmeticError):
        read_bitmap(io.BytesIO(data))


def test_oversized_dimensions_overflow_before_allocation(make_bitmap, monkeypatch):
    allocations = []
    monkeypatch.setattr(bmpread.context, "allocate_buffer", allocations.append)
    data = make_bitmap([], width=(1 << 31) - 1, height=(1 << 31) - 1)
    with pytest.raises(BitmapArithmeticError):
        read_bitmap(io.BytesIO(data), ReadFlags.ANY_SIZE)
    assert allocations == []


def test_truncated_pixel_data(make_bitmap):
    data = make_bitmap(FILE_ROWS, width=2)
    with pytest.raises(TruncatedFileError):
        read_bitmap(io.BytesIO(data[:-1]))
    assert load(io.BytesIO(data[:-1])) is None


def test_truncated_palette(make_bitmap):
    data = make_bitmap([b"\x00"], width=1, bits=8, palette=[(1, 2, 3)] * 4)
    with pytest.raises(TruncatedFileError):
        read_bitmap(io.BytesIO(data))


def test_load_from_path_and_missing_file(bitmap_file, tmp_path: Path):
    path = bitmap_file(FILE_ROWS, width=2)
    image = load(path)
    assert image is not None
    assert (image.width, image.height) == (2, 2)

    missing = tmp_path / "missing.bmp"
    assert load(missing) is None
    with pytest.raises(BitmapIOError):
        read_bitmap(missing)


def test_caller_stream_is_left_open(make_bitmap):
    fp = io.BytesIO(make_bitmap(FILE_ROWS, width=2))
    read_bitmap(fp)
    assert not fp.closed


def test_release_is_idempotent(make_bitmap):
    image = read_bitmap(io.BytesIO(make_bitmap(FILE_ROWS, width=2)))
    release(image)
    assert image.released
    assert (image.width, image.height, image.data) == (0, 0, None)
    assert image.row_length == 0

    release(image)
    image.release()
    release(None)
    assert image.released
    with pytest.raises(ValueError):
        image.to_array()


@pytest.mark.parametrize("mode", ["RGB", "L", "1"])
def test_matches_pillow_written_bitmaps(tmp_path: Path, mode):
    rng = np.random.default_rng(7)
    pixels = rng.integers(0, 256, size=(8, 16, 3), dtype=np.uint8)
    source = Image.fromarray(pixels).convert(mode)
    path = tmp_path / f"pillow_{mode}.bmp"
    source.save(path)

    image = read_bitmap(path, ReadFlags.TOP_DOWN)
    expected = np.asarray(source.convert("RGB"))
    assert image.to_array().shape == expected.shape
    assert np.array_equal(image.to_array(), expected)


def test_header_only_file_with_huge_width_is_truncated(make_bitmap):
    data = make_bitmap(
        [],
        width=1 << 28,
        height=1,
        bits=32,
        compression=3,
        masks=(0xFF0000, 0xFF00, 0xFF),
    )
    with pytest.raises(TruncatedFileError):
        read_bitmap(io.BytesIO(data))


def _out_of_memory(*args, **kwargs):
    raise MemoryError


@pytest.mark.parametrize("allocator", ["zeros", "empty"])
def test_allocation_failure_is_reported(make_bitmap, monkeypatch, allocator):
    monkeypatch.setattr(bmpread.context.np, allocator, _out_of_memory)
    data = make_bitmap(FILE_ROWS, width=2)

    with pytest.raises(AllocationError):
        read_bitmap(io.BytesIO(data))
    assert load(io.BytesIO(data)) is None
