"""Command line interface for bmpread."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Iterable

import numpy as np
from PIL import Image

from .errors import BitmapError
from .flags import ReadFlags
from .image import BitmapImage
from .reader import read_bitmap

logger = logging.getLogger(__name__)

FLAG_OPTIONS = {
    "top_down": ReadFlags.TOP_DOWN,
    "byte_align": ReadFlags.BYTE_ALIGN,
    "any_size": ReadFlags.ANY_SIZE,
    "alpha": ReadFlags.ALPHA,
}


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Decode a BMP file into RGB(A) pixels")
    parser.add_argument("bmp", type=Path, help="Input bitmap file")
    parser.add_argument(
        "--top-down",
        action="store_true",
        help="Emit the top row first (default: bottom row first)",
    )
    parser.add_argument(
        "--byte-align",
        action="store_true",
        help="Do not pad output rows to 4-byte boundaries",
    )
    parser.add_argument(
        "--any-size",
        action="store_true",
        help="Accept dimensions that are not powers of two",
    )
    parser.add_argument("--alpha", action="store_true", help="Emit RGBA instead of RGB")
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Optional path to write the decoded pixels as an image (e.g. PNG)",
    )
    parser.add_argument("--verbose", action="store_true", help="Log decode details")
    return parser.parse_args(None if argv is None else list(argv))


def flags_from_args(args: argparse.Namespace) -> ReadFlags:
    flags = ReadFlags.NONE
    for name, flag in FLAG_OPTIONS.items():
        if getattr(args, name):
            flags |= flag
    return flags


def save_image(image: BitmapImage, path: Path) -> None:
    """Write decoded pixels through Pillow, upright regardless of row order."""

    pixels = image.to_array()
    if not image.flags & ReadFlags.TOP_DOWN:
        pixels = np.flipud(pixels)
    Image.fromarray(np.ascontiguousarray(pixels)).save(path)


def run(argv: Iterable[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        image = read_bitmap(args.bmp, flags_from_args(args))
    except BitmapError as exc:
        logger.error("Could not decode %s: %s", args.bmp, exc)
        return 1

    try:
        print(f"{args.bmp}: {image.width}x{image.height}, {image.channels} channels")
        if args.output:
            save_image(image, args.output)
            print(f"Wrote {args.output}")
    finally:
        image.release()
    return 0


def main() -> None:
    raise SystemExit(run())


if __name__ == "__main__":  # pragma: no cover
    main()
