"""
Binary reader/writer for Logic World "blotter" save files.

Layout (all integers little-endian):

    magic             16 bytes  "Logic World save"
    format version    u8
    game version      4 x i32
    save type         u8        1 = world, 2 = subassembly
    component count   i32
    wire count        i32
    mods              i32 count, then (string id, 4 x i32 version) each
    component types   i32 count, then (u16 numeric id, string text id) each
    components        see _read_component
    wires             see _read_wire
    circuit states    world:       i32 byte count + packed bitmap
                      subassembly: i32 count + i32 "on" cluster ids
    footer            16 bytes  "redstone sux lol"

Strings are an i32 byte length followed by UTF-8 bytes.
"""

import io
import struct
from typing import BinaryIO, List

from .model import (
    BlotterFile,
    Component,
    ComponentType,
    Input,
    ModVersion,
    Output,
    PegAddress,
    PegKind,
    SaveType,
    Wire,
)

MAGIC = b"Logic World save"
FOOTER = b"redstone sux lol"

_U8 = struct.Struct("<B")
_U16 = struct.Struct("<H")
_I32 = struct.Struct("<i")
_U32 = struct.Struct("<I")
_F32 = struct.Struct("<f")
_VERSION = struct.Struct("<4i")
_POSITION = struct.Struct("<3i")
_ROTATION = struct.Struct("<4f")


class BlotterFormatError(ValueError):
    """Raised when a save file is malformed or cannot be encoded."""


# ---------------------------------------------------------------------------
# Reading
# ---------------------------------------------------------------------------


class _Reader:
    def __init__(self, stream: BinaryIO):
        self.stream = stream

    def take(self, size: int) -> bytes:
        data = self.stream.read(size)
        if len(data) != size:
            raise BlotterFormatError(f"Unexpected end of file (wanted {size} bytes, got {len(data)})")
        return data

    def unpack(self, fmt: struct.Struct):
        return fmt.unpack(self.take(fmt.size))

    def u8(self) -> int:
        return self.unpack(_U8)[0]

    def u16(self) -> int:
        return self.unpack(_U16)[0]

    def i32(self) -> int:
        return self.unpack(_I32)[0]

    def u32(self) -> int:
        return self.unpack(_U32)[0]

    def f32(self) -> float:
        return self.unpack(_F32)[0]

    def count(self, what: str) -> int:
        n = self.i32()
        if n < 0:
            raise BlotterFormatError(f"Negative {what} count: {n}")
        return n

    def string(self) -> str:
        length = self.count("string length")
        return self.take(length).decode("utf-8")

    def int_list(self, what: str) -> List[int]:
        n = self.count(what)
        return list(struct.unpack(f"<{n}i", self.take(4 * n)))


def _read_peg(r: _Reader) -> PegAddress:
    kind = r.u8()
    if kind not in (PegKind.INPUT, PegKind.OUTPUT):
        raise BlotterFormatError(f"Unknown peg kind {kind}")
    return PegAddress(
        is_input=kind == PegKind.INPUT,
        component_address=r.u32(),
        peg_index=r.i32(),
    )


def _read_component(r: _Reader) -> Component:
    """
    address u32, parent u32, type u16, position 3 x i32 (fixed point),
    rotation 4 x f32, inputs (i32 n + n x i32), outputs (i32 n + n x i32),
    custom data (i32 length, -1 == none, + bytes).
    """
    address = r.u32()
    parent = r.u32()
    type_id = r.u16()
    position = r.unpack(_POSITION)
    rotation = r.unpack(_ROTATION)
    inputs = [Input(circuit_state_id=c) for c in r.int_list("input")]
    outputs = [Output(circuit_state_id=c) for c in r.int_list("output")]
    data_len = r.i32()
    custom_data = None if data_len < 0 else r.take(data_len)
    return Component(
        address=address,
        parent=parent,
        type_id=type_id,
        position=position,
        rotation=rotation,
        inputs=inputs,
        outputs=outputs,
        custom_data=custom_data,
    )


def _read_wire(r: _Reader) -> Wire:
    start = _read_peg(r)
    end = _read_peg(r)
    return Wire(start_peg=start, end_peg=end, circuit_state_id=r.i32(), rotation=r.f32())


def read(stream: BinaryIO) -> BlotterFile:
    """Parse a complete save from a binary stream."""
    r = _Reader(stream)
    if r.take(len(MAGIC)) != MAGIC:
        raise BlotterFormatError("Not a Logic World save (bad header)")

    format_version = r.u8()
    game_version = r.unpack(_VERSION)
    raw_type = r.u8()
    try:
        save_type = SaveType(raw_type)
    except ValueError:
        raise BlotterFormatError(f"Unknown save type {raw_type}") from None

    n_components = r.count("component")
    n_wires = r.count("wire")

    mods = []
    for _ in range(r.count("mod")):
        mod_id = r.string()
        mods.append(ModVersion(mod_id=mod_id, version=r.unpack(_VERSION)))

    component_types = []
    for _ in range(r.count("component type")):
        numeric_id = r.u16()
        component_types.append(ComponentType(numeric_id=numeric_id, text_id=r.string()))

    components = [_read_component(r) for _ in range(n_components)]
    wires = [_read_wire(r) for _ in range(n_wires)]

    circuit_states = b""
    on_states: List[int] = []
    if save_type == SaveType.WORLD:
        circuit_states = r.take(r.count("circuit state byte"))
    else:
        on_states = r.int_list("circuit state")

    if r.take(len(FOOTER)) != FOOTER:
        raise BlotterFormatError("Bad footer, file is truncated or corrupt")

    return BlotterFile(
        format_version=format_version,
        game_version=game_version,
        save_type=save_type,
        mods=mods,
        component_types=component_types,
        components=components,
        wires=wires,
        circuit_states=circuit_states,
        on_states=on_states,
    )


def read_file(path: str) -> BlotterFile:
    with open(path, "rb") as f:
        return read(f)


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------


def _pack(fmt: struct.Struct, *values) -> bytes:
    try:
        return fmt.pack(*values)
    except struct.error as e:
        raise BlotterFormatError(f"Value out of range for {fmt.format!r}: {values} ({e})") from e


def _string(value: str) -> bytes:
    data = value.encode("utf-8")
    return _pack(_I32, len(data)) + data


def _int_list(values: List[int]) -> bytes:
    return _pack(_I32, len(values)) + b"".join(_pack(_I32, v) for v in values)


def _peg(peg: PegAddress) -> bytes:
    kind = PegKind.INPUT if peg.is_input else PegKind.OUTPUT
    return _pack(_U8, kind) + _pack(_U32, peg.component_address) + _pack(_I32, peg.peg_index)


def _component(comp: Component) -> bytes:
    parts = [
        _pack(_U32, comp.address),
        _pack(_U32, comp.parent),
        _pack(_U16, comp.type_id),
        _pack(_POSITION, *comp.position),
        _pack(_ROTATION, *comp.rotation),
        _int_list([pin.circuit_state_id for pin in comp.inputs]),
        _int_list([pin.circuit_state_id for pin in comp.outputs]),
    ]
    if comp.custom_data is None:
        parts.append(_pack(_I32, -1))
    else:
        parts.append(_pack(_I32, len(comp.custom_data)))
        parts.append(comp.custom_data)
    return b"".join(parts)


def _wire(wire: Wire) -> bytes:
    return (
        _peg(wire.start_peg)
        + _peg(wire.end_peg)
        + _pack(_I32, wire.circuit_state_id)
        + _pack(_F32, wire.rotation)
    )


def write(save: BlotterFile, stream: BinaryIO) -> None:
    """Serialize `save` to a binary stream."""
    stream.write(MAGIC)
    stream.write(_pack(_U8, save.format_version))
    stream.write(_pack(_VERSION, *save.game_version))
    stream.write(_pack(_U8, save.save_type))
    stream.write(_pack(_I32, len(save.components)))
    stream.write(_pack(_I32, len(save.wires)))

    stream.write(_pack(_I32, len(save.mods)))
    for mod in save.mods:
        stream.write(_string(mod.mod_id))
        stream.write(_pack(_VERSION, *mod.version))

    stream.write(_pack(_I32, len(save.component_types)))
    for ty in save.component_types:
        stream.write(_pack(_U16, ty.numeric_id))
        stream.write(_string(ty.text_id))

    for comp in save.components:
        stream.write(_component(comp))
    for wire in save.wires:
        stream.write(_wire(wire))

    if save.save_type == SaveType.WORLD:
        stream.write(_pack(_I32, len(save.circuit_states)))
        stream.write(save.circuit_states)
    else:
        stream.write(_int_list(save.on_states))

    stream.write(FOOTER)


def write_file(path: str, save: BlotterFile) -> None:
    """
    Write `save` to `path`.

    The whole file is encoded in memory first so an encoding error never
    leaves a half-written save behind.
    """
    buffer = io.BytesIO()
    write(save, buffer)
    with open(path, "wb") as f:
        f.write(buffer.getvalue())
