import sys
from pathlib import Path

# Ensure package import for tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
from PIL import Image

from blotter import (
    BlotterFile,
    Component,
    ComponentType,
    Input,
    Output,
    PegAddress,
    Wire,
)

TYPE_CATALOG = [
    (1, "MHG.CircuitBoard"),
    (2, "MHG.Delayer"),
    (3, "MHG.Peg"),
    (4, "MHG.ChubbySocket"),
    (5, "MHG.Inverter"),
]


def make_catalog(skip=()):
    return [ComponentType(numeric_id=n, text_id=t) for n, t in TYPE_CATALOG if t not in skip]


@pytest.fixture
def template_save() -> BlotterFile:
    """A world save with the required types and a small pre-existing circuit."""

    board = Component(address=7, type_id=1, custom_data=bytes([51, 51, 51]) + bytes(8))
    inverter = Component(
        address=12,
        parent=7,
        type_id=5,
        position=(150, 150, 150),
        inputs=[Input(circuit_state_id=3)],
        outputs=[Output(circuit_state_id=9)],
    )
    peg = Component(address=10, parent=7, type_id=3, inputs=[Input(circuit_state_id=9)])
    wire = Wire(
        start_peg=PegAddress(component_address=12, is_input=False),
        end_peg=PegAddress(component_address=10, is_input=True),
        circuit_state_id=9,
    )
    return BlotterFile(
        component_types=make_catalog(),
        components=[board, inverter, peg],
        wires=[wire],
        circuit_states=b"\x00\x02",
    )


@pytest.fixture
def empty_save() -> BlotterFile:
    return BlotterFile(component_types=make_catalog())


@pytest.fixture
def write_frames(tmp_path):
    """
    Factory writing frames to PNG files.

    Each frame is a list of image rows (top row first) of 0/1 values,
    1 being white.
    """

    def _write(frames, name="frames"):
        directory = tmp_path / name
        directory.mkdir()
        for i, rows in enumerate(frames, start=1):
            image = Image.new("L", (len(rows[0]), len(rows)), 0)
            for y, row in enumerate(rows):
                for x, on in enumerate(row):
                    if on:
                        image.putpixel((x, y), 255)
            image.save(directory / f"{i:05d}.png")
        return directory

    return _write
