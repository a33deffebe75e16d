"""Command line entry point for decoding bitmaps."""

from __future__ import annotations

from bmpread.cli import main


if __name__ == "__main__":
    main()
