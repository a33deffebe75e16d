"""Public entry points: open, validate, decode and release bitmaps."""

from __future__ import annotations

import contextlib
import logging
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Union

from .context import DecodeContext, build_context
from .decoders import make_decoder
from .errors import BitmapError, BitmapIOError, TruncatedFileError
from .flags import ReadFlags
from .header import read_file_header, read_info_header
from .image import BitmapImage

logger = logging.getLogger(__name__)

Source = Union[str, Path, BinaryIO]


def row_order(context: DecodeContext) -> Iterator[int]:
    """Yield output row indices in the order file scan lines arrive.

    Bottom-up files fill a bottom-up output front to back; when file and
    requested order disagree the output is filled from its last row.
    """

    if context.reverse_rows:
        return iter(range(context.lines - 1, -1, -1))
    return iter(range(context.lines))


def decode_rows(fp: BinaryIO, context: DecodeContext) -> None:
    """Read every scan line forward from the pixel data and convert it."""

    try:
        fp.seek(context.header.data_offset)
    except OSError as exc:
        raise BitmapIOError(f"Could not seek to pixel data: {exc}") from exc

    decoder = make_decoder(context)
    scratch = context.scratch
    pixel_bytes = context.width * context.channels
    stride = context.output_line_length

    for decoded, row in enumerate(row_order(context)):
        try:
            count = fp.readinto(scratch)
        except OSError as exc:
            raise BitmapIOError(f"Read of scan line {decoded} failed: {exc}") from exc
        if count != context.file_line_length:
            raise TruncatedFileError(
                f"File ends after {decoded} of {context.lines} scan lines"
            )
        start = row * stride
        decoder.decode(
            context.output[start : start + pixel_bytes], scratch, context.width
        )


@contextlib.contextmanager
def open_source(source: Source) -> Iterator[BinaryIO]:
    """Yield a binary stream, closing it afterwards only if we opened it."""

    if hasattr(source, "read"):
        yield source
        return
    try:
        fp = open(source, "rb")
    except OSError as exc:
        raise BitmapIOError(f"Could not open {source}: {exc}") from exc
    with fp:
        yield fp


def read_bitmap(source: Source, flags: ReadFlags = ReadFlags.NONE) -> BitmapImage:
    """Decode a bitmap into an RGB or RGBA buffer.

    ``source`` is a path or a readable, seekable binary stream. Raises a
    :class:`~bmpread.errors.BitmapError` subclass if the file is rejected;
    nothing allocated for the decode outlives a failure.
    """

    flags = ReadFlags(flags)
    with open_source(source) as fp:
        header = read_file_header(fp)
        info = read_info_header(fp)
        context = build_context(fp, flags, header, info)
        decode_rows(fp, context)

    return BitmapImage(
        width=context.width,
        height=context.lines,
        flags=flags,
        data=context.output,
    )


def load(source: Source, flags: ReadFlags = ReadFlags.NONE) -> Optional[BitmapImage]:
    """Decode a bitmap, returning ``None`` instead of raising on rejection."""

    try:
        return read_bitmap(source, flags)
    except BitmapError as exc:
        logger.error("Failed to load bitmap %s: %s", _describe(source), exc)
        return None


def release(image: Optional[BitmapImage]) -> None:
    """Free an image's pixels. Releasing twice, or releasing None, is a no-op."""

    if image is not None:
        image.release()


def _describe(source: Source) -> str:
    return str(getattr(source, "name", source))
