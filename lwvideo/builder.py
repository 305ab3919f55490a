import logging
import struct
from collections import Counter
from typing import Dict, List, Optional, Tuple

from blotter import BlotterFile, Component, Input, Output, PegAddress, Wire

from .allocator import Allocator
from .errors import MissingComponentTypeError
from .geometry import FACING_BACKWARD, FACING_FORWARD, Position

logger = logging.getLogger(__name__)

CIRCUIT_BOARD = "MHG.CircuitBoard"
DELAYER = "MHG.Delayer"
PEG = "MHG.Peg"
CHUBBY_SOCKET = "MHG.ChubbySocket"

REQUIRED_TYPES = (CIRCUIT_BOARD, DELAYER, PEG, CHUBBY_SOCKET)


def resolve_type_ids(save: BlotterFile) -> Dict[str, int]:
    """Map every required component kind to the save's numeric type id."""
    catalog = save.type_ids()
    missing = [text_id for text_id in REQUIRED_TYPES if text_id not in catalog]
    if missing:
        raise MissingComponentTypeError(missing)
    return {text_id: catalog[text_id] for text_id in REQUIRED_TYPES}


def board_data(color: Tuple[int, int, int], width: int, depth: int) -> bytes:
    """Board payload: RGB colour, then width and depth in squares."""
    return bytes(color) + struct.pack("<ii", width, depth)


def delayer_data(delay: int) -> bytes:
    """Delayer payload: current tick counter (0) and delay in ticks."""
    return struct.pack("<ii", 0, delay)


def decode_delay(custom_data: Optional[bytes]) -> Optional[int]:
    if custom_data is None or len(custom_data) < 8:
        return None
    return struct.unpack_from("<i", custom_data, 4)[0]


class NetlistBuilder:
    """
    Staging area for one generation pass.

    Components and wires are collected here and only appended to the save
    by commit(), so a failed pass leaves the save untouched.
    """

    def __init__(self, save: BlotterFile, allocator: Optional[Allocator] = None):
        self.save = save
        self.type_ids = resolve_type_ids(save)
        self.allocator = allocator or Allocator.from_save(save)
        self.components: List[Component] = []
        self.wires: List[Wire] = []
        self.counts: Counter = Counter()

    # -- components -------------------------------------------------------

    def add_board(self, address: int, position: Position, data: bytes) -> Component:
        return self._add(
            "boards",
            Component(
                address=address,
                parent=0,
                type_id=self.type_ids[CIRCUIT_BOARD],
                position=position,
                rotation=FACING_FORWARD,
                custom_data=data,
            ),
        )

    def add_delayer(
        self,
        kind: str,
        address: int,
        parent: int,
        position: Position,
        input_cluster: int,
        output_cluster: int,
        delay: int,
        rotation=FACING_BACKWARD,
    ) -> Component:
        return self._add(
            kind,
            Component(
                address=address,
                parent=parent,
                type_id=self.type_ids[DELAYER],
                position=position,
                rotation=rotation,
                inputs=[Input(circuit_state_id=input_cluster)],
                outputs=[Output(circuit_state_id=output_cluster)],
                custom_data=delayer_data(delay),
            ),
        )

    def add_tap(
        self,
        kind: str,
        address: int,
        parent: int,
        position: Position,
        cluster: int,
        socket: bool = False,
    ) -> Component:
        """A single-input terminal: a peg, or the chubby socket that starts a column."""
        return self._add(
            kind,
            Component(
                address=address,
                parent=parent,
                type_id=self.type_ids[CHUBBY_SOCKET if socket else PEG],
                position=position,
                rotation=FACING_BACKWARD if socket else FACING_FORWARD,
                inputs=[Input(circuit_state_id=cluster)],
            ),
        )

    def _add(self, kind: str, component: Component) -> Component:
        self.components.append(component)
        self.counts[kind] += 1
        return component

    # -- wires ------------------------------------------------------------

    def connect(
        self,
        start: int,
        end: int,
        cluster: int,
        start_is_input: bool = False,
        end_is_input: bool = True,
    ) -> Wire:
        """Wire pin 0 of `start` to pin 0 of `end`, both carrying `cluster`."""
        wire = Wire(
            start_peg=PegAddress(component_address=start, is_input=start_is_input, peg_index=0),
            end_peg=PegAddress(component_address=end, is_input=end_is_input, peg_index=0),
            circuit_state_id=cluster,
            rotation=0.0,
        )
        self.wires.append(wire)
        return wire

    # -- commit -----------------------------------------------------------

    def commit(self):
        """Append everything staged to the save and grow its state table."""
        self.save.components.extend(self.components)
        self.save.wires.extend(self.wires)
        self.save.grow_circuit_states(self.allocator.cluster_bound)
        logger.info(
            f"Committed {len(self.components)} components and {len(self.wires)} wires "
            f"(cluster bound {self.allocator.cluster_bound})"
        )
        self.components = []
        self.wires = []
