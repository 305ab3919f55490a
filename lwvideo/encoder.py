"""
Per-frame encoding of pixel changes.

Every column keeps a "last tap": the component whose input pin currently
ends the column's signal chain, and the cluster it sits on. The chain
starts at the column's socket and grows one tap per change:

    socket <- peg <- peg <- chunk delayer <- peg ...
               ^      ^          ^            ^
          pixel delayers fed from the row's timing chain at z = 2n

A pixel delayer pulses the column cluster when the timing pulse reaches
frame n, so each tap marks one flip of the pixel.

Chunk boundaries
----------------
Without intervention the whole history of a column is one cluster, which
gets very expensive to simulate for long videos. Every `chunk_interval`
frames a delayer is forced into every column: its output joins the old
cluster, its input starts a new one. That costs one tick of latency,
which timing.step_delay takes back out of the timing chain.
"""

import logging
from enum import Enum
from typing import List

from . import geometry
from .builder import NetlistBuilder
from .frames import Grid
from .timing import CHUNK_DELAY, TimingChain

logger = logging.getLogger(__name__)


class FrameKind(Enum):
    NORMAL = "normal"
    CHUNK_BOUNDARY = "chunk_boundary"


def frame_kind(frame_index: int, chunk_interval: int) -> FrameKind:
    """Classify a 1-indexed frame."""
    if frame_index % chunk_interval == 0:
        return FrameKind.CHUNK_BOUNDARY
    return FrameKind.NORMAL


class ColumnTaps:
    """Last tap address and current cluster of every column, indexed [y][x]."""

    def __init__(self, taps: List[List[int]], clusters: List[List[int]]):
        self.taps = taps
        self.clusters = clusters

    @property
    def height(self) -> int:
        return len(self.taps)

    @property
    def width(self) -> int:
        return len(self.taps[0]) if self.taps else 0


class ChunkCompensator:
    def __init__(self, builder: NetlistBuilder, row_boards: List[int], taps: ColumnTaps):
        self.builder = builder
        self.row_boards = row_boards
        self.taps = taps
        self.boundaries = 0

    def apply(self, z: int):
        """Insert one chunk delayer in front of every column's last tap."""
        allocator = self.builder.allocator
        for y, board in enumerate(self.row_boards):
            for x in range(self.taps.width):
                chunk_delayer = allocator.next_address()
                new_cluster = allocator.next_cluster()
                old_cluster = self.taps.clusters[y][x]
                self.builder.add_delayer(
                    "chunk_delayers",
                    chunk_delayer,
                    board,
                    geometry.tap_position(x, z),
                    new_cluster,
                    old_cluster,
                    CHUNK_DELAY,
                )
                self.builder.connect(chunk_delayer, self.taps.taps[y][x], old_cluster)
                self.taps.taps[y][x] = chunk_delayer
                self.taps.clusters[y][x] = new_cluster
        self.boundaries += 1
        logger.debug(f"Chunk boundary at step {z}: {self.taps.width * self.taps.height} delayers")


class PixelDiffEncoder:
    def __init__(
        self,
        builder: NetlistBuilder,
        chains: List[TimingChain],
        taps: ColumnTaps,
        delay: int = 1,
    ):
        self.builder = builder
        self.chains = chains
        self.taps = taps
        self.delay = delay

    def encode_frame(self, z: int, previous: Grid, current: Grid, kind: FrameKind) -> int:
        """
        Add a pixel delayer (and, on normal frames, a peg) for every pixel
        that differs from the previous frame. Returns the number of changes.
        """
        changes = 0
        for y, chain in enumerate(self.chains):
            # Timing taps of one row are threaded delayer to delayer.
            row_last_delayer = chain.delayers[z]
            for x in range(self.taps.width):
                if current[y][x] == previous[y][x]:
                    continue
                row_last_delayer = self._encode_change(chain, x, y, z, row_last_delayer, kind)
                changes += 1
        return changes

    def _encode_change(
        self,
        chain: TimingChain,
        x: int,
        y: int,
        z: int,
        row_last_delayer: int,
        kind: FrameKind,
    ) -> int:
        builder = self.builder
        allocator = builder.allocator
        timing_cluster = chain.clusters[z]
        column_cluster = self.taps.clusters[y][x]

        pixel_delayer = allocator.next_address()
        builder.add_delayer(
            "pixel_delayers",
            pixel_delayer,
            chain.board,
            geometry.pixel_delayer_position(x, z),
            timing_cluster,
            column_cluster,
            self.delay,
        )

        # On a chunk boundary the chunk delayer already is this frame's tap.
        if kind is FrameKind.CHUNK_BOUNDARY:
            pixel_tap = self.taps.taps[y][x]
        else:
            pixel_tap = allocator.next_address()
            builder.add_tap("connectors", pixel_tap, chain.board, geometry.tap_position(x, z), column_cluster)

        builder.connect(row_last_delayer, pixel_delayer, timing_cluster, start_is_input=True)
        builder.connect(pixel_delayer, pixel_tap, column_cluster)
        if kind is FrameKind.NORMAL:
            builder.connect(pixel_tap, self.taps.taps[y][x], column_cluster, start_is_input=True)

        self.taps.taps[y][x] = pixel_tap
        return pixel_delayer
