from enum import IntEnum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

# Fixed-point scale of stored positions: 1000 per world unit.
POSITION_SCALE = 1000

IDENTITY_ROTATION = (0.0, 0.0, 0.0, 1.0)


class SaveType(IntEnum):
    WORLD = 1
    SUBASSEMBLY = 2


class PegKind(IntEnum):
    INPUT = 1
    OUTPUT = 2


class ModVersion(BaseModel):
    mod_id: str
    version: Tuple[int, int, int, int] = (0, 0, 0, 0)


class ComponentType(BaseModel):
    numeric_id: int
    text_id: str


class Input(BaseModel):
    circuit_state_id: int


class Output(BaseModel):
    circuit_state_id: int


class PegAddress(BaseModel):
    component_address: int
    is_input: bool
    peg_index: int = 0


class Component(BaseModel):
    address: int
    parent: int = 0  # 0 == placed in the world root
    type_id: int
    position: Tuple[int, int, int] = (0, 0, 0)
    rotation: Tuple[float, float, float, float] = IDENTITY_ROTATION
    inputs: List[Input] = Field(default_factory=list)
    outputs: List[Output] = Field(default_factory=list)
    custom_data: Optional[bytes] = None


class Wire(BaseModel):
    start_peg: PegAddress
    end_peg: PegAddress
    circuit_state_id: int
    rotation: float = 0.0


class BlotterFile(BaseModel):
    """In-memory copy of a save: type catalog, components, wires and states."""

    format_version: int = 7
    game_version: Tuple[int, int, int, int] = (0, 91, 0, 0)
    save_type: SaveType = SaveType.WORLD
    mods: List[ModVersion] = Field(default_factory=list)
    component_types: List[ComponentType] = Field(default_factory=list)
    components: List[Component] = Field(default_factory=list)
    wires: List[Wire] = Field(default_factory=list)
    # World saves store a packed bitmap, subassemblies a list of "on" states.
    circuit_states: bytes = b""
    on_states: List[int] = Field(default_factory=list)

    def type_ids(self) -> Dict[str, int]:
        return {ty.text_id: ty.numeric_id for ty in self.component_types}

    def max_address(self) -> int:
        return max((comp.address for comp in self.components), default=0)

    def max_circuit_state_id(self) -> int:
        """Highest cluster id bound to any component pin, 0 for an empty save."""
        highest = 0
        for comp in self.components:
            for pin in comp.inputs:
                highest = max(highest, pin.circuit_state_id)
            for pin in comp.outputs:
                highest = max(highest, pin.circuit_state_id)
        return highest

    def grow_circuit_states(self, cluster_count: int) -> None:
        """
        Make the world bitmap large enough for `cluster_count` clusters.

        New bytes are zero ("off"). The bitmap never shrinks and
        subassemblies are left untouched.
        """
        if self.save_type != SaveType.WORLD or cluster_count <= 0:
            return
        needed = (cluster_count - 1) // 8 + 1
        if len(self.circuit_states) < needed:
            self.circuit_states = self.circuit_states + bytes(needed - len(self.circuit_states))
