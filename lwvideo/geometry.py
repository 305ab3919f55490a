"""
Placement of generated parts on the row boards.

All positions are fixed point (POSITION_SCALE per unit). One board square
is 0.3 units (300), one pixel column is three squares wide and one timing
step is two squares deep:

    x: timing chain at square 0, column x at squares 3x + 1 .. 3x + 3
    z: timing delayer z at squares 2z .. 2z + 1,
       pixel delayer / tap of frame z/2 just before it
"""

from typing import Tuple

from blotter import POSITION_SCALE

from .errors import NumericRangeError

INT32_MAX = 0x7FFFFFFF

SQUARE = 3 * POSITION_SCALE // 10
HALF_SQUARE = SQUARE // 2
COLUMN_PITCH = 3 * SQUARE
STEP_PITCH = 2 * SQUARE

# Quaternions (x, y, z, w)
FACING_FORWARD = (0.0, 0.0, 0.0, 1.0)
FACING_BACKWARD = (0.0, 1.0, 0.0, 0.0)  # 180 degrees about the vertical axis

Position = Tuple[int, int, int]


def check_int32(value: int, what: str) -> int:
    if not -INT32_MAX - 1 <= value <= INT32_MAX:
        raise NumericRangeError(f"{what} ({value}) does not fit a 32-bit integer")
    return value


def board_size(width: int, depth: int) -> Tuple[int, int]:
    """Board footprint in squares for `width` columns and `depth` timing steps."""
    return (
        check_int32(1 + 3 * width, "board width"),
        check_int32(2 * depth, "board depth"),
    )


def board_position(y: int, row_spacing: int) -> Position:
    return (0, check_int32(y * row_spacing, "board height"), 0)


def timing_delayer_position(z: int) -> Position:
    return (HALF_SQUARE, HALF_SQUARE, z * STEP_PITCH + HALF_SQUARE)


def socket_position(x: int) -> Position:
    return (x * COLUMN_PITCH + 5 * HALF_SQUARE, HALF_SQUARE, HALF_SQUARE)


def pixel_delayer_position(x: int, z: int) -> Position:
    return (x * COLUMN_PITCH + 3 * HALF_SQUARE, HALF_SQUARE, z * STEP_PITCH - HALF_SQUARE)


def tap_position(x: int, z: int) -> Position:
    """Where a change connector or chunk delayer of column `x` sits at step `z`."""
    return (x * COLUMN_PITCH + 5 * HALF_SQUARE, HALF_SQUARE, z * STEP_PITCH - 3 * HALF_SQUARE)


def check_extent(width: int, height: int, depth: int, row_spacing: int):
    """Fail early if the farthest placed part would not fit the coordinate range."""
    board_size(width, depth)
    board_position(max(height - 1, 0), row_spacing)
    check_int32(depth * STEP_PITCH + HALF_SQUARE, "timing chain extent")
    check_int32(width * COLUMN_PITCH + 5 * HALF_SQUARE, "column extent")
