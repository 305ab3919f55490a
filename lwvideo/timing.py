"""
Per-row timing chains.

A row's chain is `depth` delayers wired output -> input. A pulse entering
the first delayer walks down the chain, reaching position z after the
sum of the delays before it. Frame n is tapped at z = 2n, so each frame
gets one rise step and one fall step.

Every chunk boundary adds one tick of latency to the column signals
(see encoder.ChunkCompensator). The delayer at every
`compensation_period`-th position (1-indexed) is one tick shorter so the
display keeps in step with the timing pulse.
"""

import logging
from dataclasses import dataclass, field
from typing import List

from . import geometry
from .builder import NetlistBuilder

logger = logging.getLogger(__name__)


# Latency a chunk delayer adds to every column signal.
CHUNK_DELAY = 1


def timing_depth(frame_count: int) -> int:
    """Two delayers per frame (rise + fall) plus the leading one."""
    return 2 * frame_count + 1


def step_delay(position: int, timing_delay: int, compensation_period: int) -> int:
    """Delay of the chain element at 1-indexed `position`."""
    if position % compensation_period == 0:
        return timing_delay - CHUNK_DELAY
    return timing_delay


@dataclass
class TimingChain:
    board: int
    delayers: List[int] = field(default_factory=list)
    # clusters[z] feeds delayers[z]; clusters[z + 1] is its output.
    clusters: List[int] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.delayers)


def build_timing_chain(
    builder: NetlistBuilder,
    board: int,
    depth: int,
    timing_delay: int,
    compensation_period: int,
) -> TimingChain:
    allocator = builder.allocator
    chain = TimingChain(
        board=board,
        clusters=allocator.clusters(depth + 1),
        delayers=allocator.addresses(depth),
    )

    for z in range(depth):
        builder.add_delayer(
            "timing_delayers",
            chain.delayers[z],
            board,
            geometry.timing_delayer_position(z),
            chain.clusters[z],
            chain.clusters[z + 1],
            step_delay(z + 1, timing_delay, compensation_period),
            rotation=geometry.FACING_FORWARD,
        )
    for z in range(1, depth):
        builder.connect(chain.delayers[z - 1], chain.delayers[z], chain.clusters[z])

    return chain


def build_timing_chains(
    builder: NetlistBuilder,
    row_boards: List[int],
    depth: int,
    timing_delay: int,
    compensation_period: int,
) -> List[TimingChain]:
    chains = [
        build_timing_chain(builder, board, depth, timing_delay, compensation_period)
        for board in row_boards
    ]
    logger.info(f"Built {len(chains)} timing chains of {depth} delayers")
    return chains
