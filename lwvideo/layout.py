import logging
from typing import List

from . import geometry
from .builder import NetlistBuilder, board_data
from .settings import GeneratorSettings

logger = logging.getLogger(__name__)


def build_row_boards(
    builder: NetlistBuilder,
    width: int,
    height: int,
    depth: int,
    settings: GeneratorSettings,
) -> List[int]:
    """
    Create one circuit board per display row and return their addresses.

    Each board holds the row's timing chain along its depth and one
    three-square lane per pixel column along its width.
    """
    board_width, board_depth = geometry.board_size(width, depth)
    data = board_data(settings.board_color, board_width, board_depth)

    row_boards = builder.allocator.addresses(height)
    for y, address in enumerate(row_boards):
        builder.add_board(address, geometry.board_position(y, settings.row_spacing), data)

    logger.info(f"Placed {height} row boards of {board_width}x{board_depth} squares")
    return row_boards


def build_column_sockets(builder: NetlistBuilder, row_boards: List[int], width: int):
    """
    Start every pixel column with a chubby socket on its own cluster.

    Returns (sockets, clusters), both indexed [y][x].
    """
    allocator = builder.allocator
    clusters = [allocator.clusters(width) for _ in row_boards]

    sockets: List[List[int]] = []
    for y, board in enumerate(row_boards):
        row_sockets = allocator.addresses(width)
        for x, address in enumerate(row_sockets):
            builder.add_tap(
                "sockets",
                address,
                board,
                geometry.socket_position(x),
                clusters[y][x],
                socket=True,
            )
        sockets.append(row_sockets)

    return sockets, clusters
