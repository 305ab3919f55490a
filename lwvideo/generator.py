import logging
from typing import Optional

from pydantic import BaseModel

from blotter import BlotterFile

from . import geometry
from .builder import NetlistBuilder
from .encoder import ChunkCompensator, ColumnTaps, FrameKind, PixelDiffEncoder, frame_kind
from .frames import FrameSource, blank_grid
from .layout import build_column_sockets, build_row_boards
from .settings import GeneratorSettings
from .timing import build_timing_chains, timing_depth

logger = logging.getLogger(__name__)


class InjectionReport(BaseModel):
    width: int
    height: int
    frame_count: int
    depth: int
    boards: int = 0
    sockets: int = 0
    timing_delayers: int = 0
    pixel_delayers: int = 0
    connectors: int = 0
    chunk_delayers: int = 0
    wires: int = 0
    changes: int = 0
    chunk_boundaries: int = 0
    first_address: int = 0
    last_address: int = 0
    cluster_bound: int = 0

    def summary(self) -> str:
        return (
            f"{self.width}x{self.height}, {self.frame_count} frames (depth {self.depth}): "
            f"{self.changes} changes, {self.pixel_delayers} pixel delayers, "
            f"{self.connectors} pegs, {self.chunk_delayers} chunk delayers over "
            f"{self.chunk_boundaries} boundaries, {self.wires} wires, "
            f"addresses {self.first_address}..{self.last_address}, cluster bound {self.cluster_bound}"
        )


def generate(
    save: BlotterFile,
    frames: FrameSource,
    settings: Optional[GeneratorSettings] = None,
) -> InjectionReport:
    """
    Append a display circuit playing `frames` to `save`.

    The pass is all-or-nothing: everything is staged in a NetlistBuilder
    and committed to the save only once every frame has been encoded.
    Running it twice on the same save appends a second display.
    """
    settings = settings or GeneratorSettings()
    builder = NetlistBuilder(save)
    first_address = builder.allocator.last_address + 1

    frames.check_sizes()
    width, height = frames.width, frames.height
    frame_count = len(frames)
    depth = timing_depth(frame_count)
    geometry.check_extent(width, height, depth, settings.row_spacing)

    row_boards = build_row_boards(builder, width, height, depth, settings)
    chains = build_timing_chains(
        builder, row_boards, depth, settings.timing_delay, settings.compensation_period
    )
    sockets, clusters = build_column_sockets(builder, row_boards, width)
    taps = ColumnTaps(sockets, clusters)

    compensator = ChunkCompensator(builder, row_boards, taps)
    encoder = PixelDiffEncoder(builder, chains, taps, settings.pixel_delay)

    total_changes = 0
    previous = blank_grid(width, height)
    for frame_index, current in enumerate(frames, start=1):
        z = 2 * frame_index
        kind = frame_kind(frame_index, settings.chunk_interval)
        if kind is FrameKind.CHUNK_BOUNDARY:
            compensator.apply(z)
        changes = encoder.encode_frame(z, previous, current, kind)
        total_changes += changes
        logger.debug(f"Frame {frame_index}/{frame_count}: {changes} changes")
        previous = current

    report = InjectionReport(
        width=width,
        height=height,
        frame_count=frame_count,
        depth=depth,
        boards=builder.counts["boards"],
        sockets=builder.counts["sockets"],
        timing_delayers=builder.counts["timing_delayers"],
        pixel_delayers=builder.counts["pixel_delayers"],
        connectors=builder.counts["connectors"],
        chunk_delayers=builder.counts["chunk_delayers"],
        wires=len(builder.wires),
        changes=total_changes,
        chunk_boundaries=compensator.boundaries,
        first_address=first_address,
        last_address=builder.allocator.last_address,
        cluster_bound=builder.allocator.cluster_bound,
    )
    builder.commit()
    logger.info(f"Generated display: {report.summary()}")
    return report
