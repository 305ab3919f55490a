import io

import pytest

import blotter
from blotter import BlotterFile, BlotterFormatError, ModVersion, SaveType


def _encode(save: BlotterFile) -> bytes:
    buffer = io.BytesIO()
    blotter.write(save, buffer)
    return buffer.getvalue()


def test_roundtrip_is_lossless(template_save):
    template_save.mods.append(ModVersion(mod_id="MHG", version=(0, 91, 3, 0)))
    data = _encode(template_save)

    assert data.startswith(b"Logic World save")
    assert data.endswith(b"redstone sux lol")

    loaded = blotter.read(io.BytesIO(data))
    assert loaded == template_save
    assert _encode(loaded) == data


def test_file_roundtrip(tmp_path, template_save):
    path = tmp_path / "data.logicworld"
    blotter.write_file(str(path), template_save)
    assert blotter.read_file(str(path)).components == template_save.components


def test_subassembly_states(empty_save):
    empty_save.save_type = SaveType.SUBASSEMBLY
    empty_save.on_states = [4, 8, 15]
    loaded = blotter.read(io.BytesIO(_encode(empty_save)))
    assert loaded.save_type == SaveType.SUBASSEMBLY
    assert loaded.on_states == [4, 8, 15]
    assert loaded.circuit_states == b""


def test_bad_header():
    with pytest.raises(BlotterFormatError):
        blotter.read(io.BytesIO(b"Not a save at all, sorry"))


def test_truncated_file(template_save):
    data = _encode(template_save)
    with pytest.raises(BlotterFormatError):
        blotter.read(io.BytesIO(data[:-20]))


def test_out_of_range_value_is_rejected(empty_save):
    empty_save.components.append(blotter.Component(address=-1, type_id=1))
    with pytest.raises(BlotterFormatError):
        _encode(empty_save)


def test_circuit_states_only_grow(template_save):
    template_save.grow_circuit_states(40)
    assert template_save.circuit_states == b"\x00\x02" + bytes(3)

    template_save.grow_circuit_states(3)
    assert len(template_save.circuit_states) == 5


def test_max_helpers(template_save, empty_save):
    assert template_save.max_address() == 12
    assert template_save.max_circuit_state_id() == 9
    assert empty_save.max_address() == 0
    assert empty_save.max_circuit_state_id() == 0
