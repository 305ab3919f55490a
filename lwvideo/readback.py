"""
Recover the pixel history from a generated display.

Works only from the save's components and wires:

  - a display row is a board that owns chubby sockets and a timing chain
    (the forward-facing delayers on it, ordered by cluster threading),
  - a column is walked from its socket towards later taps: a peg whose
    input is wired to the current tap, or a delayer fed from the column
    (chunk delayer) whose output is,
  - every delayer fed from the timing chain at position z that drives a
    tap is one flip of that pixel at frame z / 2.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List

from blotter import BlotterFile, Component

from .builder import CHUBBY_SOCKET, DELAYER, PEG
from .frames import Grid
from .geometry import FACING_FORWARD

logger = logging.getLogger(__name__)


@dataclass
class DisplayRow:
    board: Component
    sockets: List[Component]
    # timing cluster id -> 0-based chain position
    chain_index: Dict[int, int] = field(default_factory=dict)

    @property
    def depth(self) -> int:
        return len(self.chain_index)


def column_values(flips: List[int], frame_count: int) -> List[bool]:
    """Pixel value for frames 0..frame_count, starting off at frame 0."""
    flip_set = set(flips)
    values = [False]
    for n in range(1, frame_count + 1):
        values.append(values[-1] != (n in flip_set))
    return values


class DisplayReader:
    def __init__(self, save: BlotterFile):
        type_ids = save.type_ids()
        self.delayer_type = type_ids.get(DELAYER)
        self.peg_type = type_ids.get(PEG)
        socket_type = type_ids.get(CHUBBY_SOCKET)

        self.components: Dict[int, Component] = {c.address: c for c in save.components}
        self.wires_to = defaultdict(list)
        for wire in save.wires:
            self.wires_to[wire.end_peg.component_address].append(wire)

        sockets_by_board = defaultdict(list)
        delayers_by_board = defaultdict(list)
        for comp in save.components:
            if comp.type_id == socket_type:
                sockets_by_board[comp.parent].append(comp)
            elif comp.type_id == self.delayer_type and tuple(comp.rotation) == FACING_FORWARD:
                delayers_by_board[comp.parent].append(comp)

        self.rows: List[DisplayRow] = []
        for board_address, sockets in sockets_by_board.items():
            board = self.components.get(board_address)
            if board is None:
                continue
            chain_index = self._order_chain(delayers_by_board[board_address])
            if not chain_index:
                continue
            sockets.sort(key=lambda c: c.position[0])
            self.rows.append(DisplayRow(board=board, sockets=sockets, chain_index=chain_index))
        self.rows.sort(key=lambda row: row.board.position[1])
        logger.debug(f"Found {len(self.rows)} display rows")

    @staticmethod
    def _order_chain(delayers: List[Component]) -> Dict[int, int]:
        by_input = {d.inputs[0].circuit_state_id: d for d in delayers if d.inputs and d.outputs}
        produced = {d.outputs[0].circuit_state_id for d in by_input.values()}
        heads = [c for c in by_input if c not in produced]
        if len(heads) != 1:
            return {}

        index: Dict[int, int] = {}
        cluster = heads[0]
        while cluster in by_input and cluster not in index:
            index[cluster] = len(index)
            cluster = by_input[cluster].outputs[0].circuit_state_id
        return index

    @property
    def width(self) -> int:
        return len(self.rows[0].sockets) if self.rows else 0

    @property
    def height(self) -> int:
        return len(self.rows)

    @property
    def frame_count(self) -> int:
        if not self.rows:
            return 0
        return (self.rows[0].depth - 1) // 2

    def column_flips(self, row: DisplayRow, socket: Component) -> List[int]:
        """Frames (1-indexed) at which the column starting at `socket` flips."""
        flips: List[int] = []
        tap = socket.address
        seen = set()
        while tap not in seen:
            seen.add(tap)
            next_tap = None
            for wire in self.wires_to[tap]:
                if not wire.end_peg.is_input:
                    continue
                source = self.components.get(wire.start_peg.component_address)
                if source is None:
                    continue
                if wire.start_peg.is_input:
                    if source.type_id == self.peg_type:
                        next_tap = source.address
                elif source.type_id == self.delayer_type and source.inputs:
                    z = row.chain_index.get(source.inputs[0].circuit_state_id)
                    if z is None:
                        next_tap = source.address
                    else:
                        flips.append(z // 2)
            if next_tap is None:
                break
            tap = next_tap
        return sorted(flips)

    def column_history(self, x: int, y: int) -> List[bool]:
        row = self.rows[y]
        return column_values(self.column_flips(row, row.sockets[x]), self.frame_count)

    def history(self) -> List[List[List[bool]]]:
        """history[y][x] is the per-frame value list of that column."""
        return [
            [column_values(self.column_flips(row, socket), self.frame_count) for socket in row.sockets]
            for row in self.rows
        ]

    def frame(self, n: int) -> Grid:
        """The reconstructed display at frame n (0 is the blank start)."""
        if not 0 <= n <= self.frame_count:
            raise IndexError(f"frame {n} outside 0..{self.frame_count}")
        return [[values[n] for values in row] for row in self.history()]
