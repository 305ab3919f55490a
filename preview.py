#!/usr/bin/env python3
"""
Reconstruct a frame from an injected Logic World save and print it as
ANSI-art.

Nothing is simulated: the pixel history is read back from the generated
circuit (see lwvideo.readback), so this shows what the display will play.

Usage:
    python preview.py data.logicworld --frame 120
    python preview.py data.logicworld --frame 120 --color
"""

import argparse
import sys
from typing import List

import blotter
from lwvideo.frames import Grid
from lwvideo.readback import DisplayReader

ANSI_CHAR_ON = "X"
ANSI_CHAR_OFF = "·"

ANSI_RESET = "\x1b[0m"
ANSI_COLOR_ON = "\x1b[33m"  # yellow


def render_grid_as_ansi(grid: Grid, color: bool = False) -> str:
    """
    Render a display grid (row 0 at the bottom) top row first, one
    character per pixel.
    """
    on = f"{ANSI_COLOR_ON}{ANSI_CHAR_ON}{ANSI_RESET}" if color else ANSI_CHAR_ON
    lines: List[str] = []
    for row in reversed(grid):
        lines.append("".join(on if bit else ANSI_CHAR_OFF for bit in row))
    return "\n".join(lines)


def main() -> None:
    parser = argparse.ArgumentParser(description="Print a frame of an injected display")
    parser.add_argument("save", help="Path to the save file")
    parser.add_argument("--frame", type=int, default=1, help="Frame number (1-based, 0 = blank start)")
    parser.add_argument("--color", action="store_true", help="Colour ON pixels")
    args = parser.parse_args()

    save = blotter.read_file(args.save)
    reader = DisplayReader(save)
    if not reader.rows:
        print("No generated display found in save.", file=sys.stderr)
        sys.exit(1)

    print(
        f"Display {reader.width}x{reader.height}, {reader.frame_count} frames",
        file=sys.stderr,
    )
    try:
        grid = reader.frame(args.frame)
    except IndexError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)
    print(render_grid_as_ansi(grid, args.color))


if __name__ == "__main__":
    main()
