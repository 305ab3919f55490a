"""
Frame source: an ordered directory of images, decoded to 1-bit grids.

Frames are ordered by file name. Every frame is reduced to 8-bit Rec. 709
luma and thresholded (luma > threshold => on). Grids are indexed grid[y][x]
in display rows: with flip_vertical, y == 0 is the bottom image row,
because row boards are stacked upward.
"""

import logging
import os
from typing import Iterator, List, Sequence

from PIL import Image

from .errors import InputShapeError

logger = logging.getLogger(__name__)

Grid = List[List[bool]]


def luma(rgb) -> int:
    """Rec. 709 luma, rounded. Greys map to themselves."""
    r, g, b = rgb[:3]
    return (2126 * r + 7152 * g + 722 * b + 5000) // 10000


def to_1bit(image: Image.Image, threshold: int = 127, flip_vertical: bool = True) -> Grid:
    """Convert an image to a grid of booleans, row 0 first."""
    rgb = image.convert("RGB")
    width, height = rgb.size
    pixels = rgb.load()
    grid: Grid = []
    for y in range(height):
        src_y = height - 1 - y if flip_vertical else y
        grid.append([luma(pixels[x, src_y]) > threshold for x in range(width)])
    return grid


def blank_grid(width: int, height: int) -> Grid:
    return [[False] * width for _ in range(height)]


def list_frame_files(frames_dir: str) -> List[str]:
    """Return all regular files in `frames_dir`, sorted by name."""
    paths = [
        os.path.join(frames_dir, name)
        for name in os.listdir(frames_dir)
        if os.path.isfile(os.path.join(frames_dir, name))
    ]
    paths.sort()
    return paths


class FrameSource:
    def __init__(self, paths: Sequence[str], threshold: int = 127, flip_vertical: bool = True):
        if not paths:
            raise InputShapeError("No frames found")
        self.paths = list(paths)
        self.threshold = threshold
        self.flip_vertical = flip_vertical

        with Image.open(self.paths[0]) as first:
            self.width, self.height = first.size
        if self.width <= 0 or self.height <= 0:
            raise InputShapeError(f"{self.paths[0]}: frame has no pixels")

        logger.info(
            f"Frame source: {len(self.paths)} frames of {self.width}x{self.height} "
            f"starting at {self.paths[0]}"
        )

    @classmethod
    def from_directory(cls, frames_dir: str, threshold: int = 127, flip_vertical: bool = True) -> "FrameSource":
        paths = list_frame_files(frames_dir)
        if not paths:
            raise InputShapeError(f"No frames found in {frames_dir}")
        return cls(paths, threshold=threshold, flip_vertical=flip_vertical)

    def __len__(self) -> int:
        return len(self.paths)

    def _check_size(self, path: str, image: Image.Image):
        if image.size != (self.width, self.height):
            raise InputShapeError(
                f"{path}: frame size {image.size[0]}x{image.size[1]} does not match "
                f"first frame ({self.width}x{self.height})"
            )

    def load(self, path: str) -> Grid:
        with Image.open(path) as image:
            self._check_size(path, image)
            return to_1bit(image, self.threshold, self.flip_vertical)

    def check_sizes(self):
        """Validate every frame's size without decoding pixel data."""
        for path in self.paths:
            with Image.open(path) as image:
                self._check_size(path, image)

    def __iter__(self) -> Iterator[Grid]:
        for path in self.paths:
            yield self.load(path)
