import io

import pytest
from PIL import Image

import blotter
from lwvideo import FrameSource, GeneratorSettings, generate
from lwvideo.builder import decode_delay
from lwvideo.errors import InputShapeError, MissingComponentTypeError
from lwvideo.geometry import FACING_FORWARD, tap_position
from lwvideo.readback import DisplayReader

from conftest import make_catalog

BOARD, DELAYER, PEG, SOCKET = 1, 2, 3, 4


def _source(directory):
    return FrameSource.from_directory(str(directory))


def _new_components(save, report):
    return [c for c in save.components if c.address >= report.first_address]


def _pin_cluster(comp, is_input):
    pins = comp.inputs if is_input else comp.outputs
    return pins[0].circuit_state_id


def _timing_delays(save, board):
    delayers = [
        c for c in save.components
        if c.parent == board and c.type_id == DELAYER and tuple(c.rotation) == FACING_FORWARD
    ]
    delayers.sort(key=lambda c: c.position[2])
    return [decode_delay(c.custom_data) for c in delayers]


def test_single_pixel_change(template_save, write_frames):
    directory = write_frames([
        [[0, 0], [0, 0]],
        [[0, 0], [1, 0]],  # bottom-left on
    ])
    report = generate(template_save, _source(directory))

    assert report.depth == 5
    assert report.boards == 2
    assert report.sockets == 4
    assert report.timing_delayers == 10
    assert report.pixel_delayers == 1
    assert report.connectors == 1
    assert report.chunk_delayers == 0
    assert report.wires == 2 * 4 + 3
    assert len(template_save.wires) == 1 + report.wires

    reader = DisplayReader(template_save)
    row = reader.rows[0]
    assert reader.column_flips(row, row.sockets[0]) == [2]
    assert reader.column_flips(row, row.sockets[1]) == []
    top = reader.rows[1]
    assert [reader.column_flips(top, s) for s in top.sockets] == [[], []]

    pixel_delayers = [
        c for c in _new_components(template_save, report)
        if c.type_id == DELAYER and tuple(c.rotation) != FACING_FORWARD
    ]
    assert len(pixel_delayers) == 1
    assert pixel_delayers[0].parent == row.board.address
    assert decode_delay(pixel_delayers[0].custom_data) == 1


def test_addresses_and_clusters(template_save, write_frames):
    frames = [
        [[0, 1, 0], [1, 0, 1]],
        [[1, 1, 0], [1, 0, 0]],
        [[0, 0, 0], [0, 0, 0]],
        [[1, 0, 1], [1, 1, 1]],
        [[1, 0, 1], [0, 1, 0]],
    ]
    existing = [c.model_copy(deep=True) for c in template_save.components]
    report = generate(template_save, _source(write_frames(frames)), GeneratorSettings(chunk_interval=2))

    assert template_save.components[: len(existing)] == existing

    addresses = [c.address for c in template_save.components]
    assert len(addresses) == len(set(addresses))
    assert report.first_address == 13
    assert report.last_address == max(addresses)

    for comp in template_save.components:
        for pin in comp.inputs + comp.outputs:
            assert pin.circuit_state_id < report.cluster_bound
    assert len(template_save.circuit_states) == (report.cluster_bound - 1) // 8 + 1
    assert template_save.circuit_states.startswith(b"\x00\x02")

    by_address = {c.address: c for c in template_save.components}
    for wire in template_save.wires:
        start = by_address[wire.start_peg.component_address]
        end = by_address[wire.end_peg.component_address]
        assert _pin_cluster(start, wire.start_peg.is_input) == wire.circuit_state_id
        assert _pin_cluster(end, wire.end_peg.is_input) == wire.circuit_state_id


def test_chunk_boundary_without_changes(empty_save, write_frames):
    directory = write_frames([[[0, 0]]] * 201)
    report = generate(empty_save, _source(directory))

    assert report.depth == 403
    assert report.chunk_boundaries == 1
    assert report.chunk_delayers == 2
    assert report.pixel_delayers == 0
    assert report.connectors == 0

    delays = _timing_delays(empty_save, report.first_address)
    assert len(delays) == 403
    assert delays[399] == 9
    assert delays.count(9) == 1
    assert delays.count(10) == 402

    sockets = [c.address for c in empty_save.components if c.type_id == SOCKET]
    chunk_wires = [w for w in empty_save.wires if w.end_peg.component_address in sockets]
    assert len(chunk_wires) == 2
    assert all(not w.start_peg.is_input for w in chunk_wires)


def test_chunk_delayer_replaces_peg(empty_save, write_frames):
    directory = write_frames([[[1]], [[0]], [[1]]])
    report = generate(empty_save, _source(directory), GeneratorSettings(chunk_interval=2))

    assert report.chunk_boundaries == 1
    assert report.pixel_delayers == 3
    assert report.connectors == 2
    assert report.chunk_delayers == 1
    assert report.wires == 6 + 3 + (1 + 2) + 3

    # Position 4 is compensated when chunks come every 2 frames.
    assert _timing_delays(empty_save, report.first_address) == [10, 10, 10, 9, 10, 10, 10]

    reader = DisplayReader(empty_save)
    assert reader.column_history(0, 0) == [False, True, False, True]


def test_chunk_delay_independent_of_pixel_delay(empty_save, write_frames):
    directory = write_frames([[[1]], [[0]], [[1]]])
    settings = GeneratorSettings(pixel_delay=3, chunk_interval=1)
    report = generate(empty_save, _source(directory), settings)

    assert report.chunk_boundaries == 3
    new = _new_components(empty_save, report)
    chunk_positions = {tap_position(0, 2 * n) for n in (1, 2, 3)}
    chunk_delayers = [c for c in new if c.type_id == DELAYER and tuple(c.position) in chunk_positions]
    pixel_delayers = [
        c for c in new
        if c.type_id == DELAYER and tuple(c.rotation) != FACING_FORWARD and c not in chunk_delayers
    ]
    assert len(chunk_delayers) == 3
    assert [decode_delay(c.custom_data) for c in chunk_delayers] == [1, 1, 1]
    assert [decode_delay(c.custom_data) for c in pixel_delayers] == [3, 3, 3]

    # The chain gives back exactly the ticks the chunk delayers add.
    delays = _timing_delays(empty_save, report.first_address)
    assert delays == [10, 9, 10, 9, 10, 9, 10]
    assert sum(10 - d for d in delays) == sum(decode_delay(c.custom_data) for c in chunk_delayers)

    reader = DisplayReader(empty_save)
    assert reader.column_history(0, 0) == [False, True, False, True]


def test_missing_type_aborts_before_mutation(write_frames):
    save = blotter.BlotterFile(component_types=make_catalog(skip=("MHG.Delayer", "MHG.Peg")))
    directory = write_frames([[[1]]])

    with pytest.raises(MissingComponentTypeError) as excinfo:
        generate(save, _source(directory))
    assert excinfo.value.missing == ["MHG.Delayer", "MHG.Peg"]
    assert save.components == []
    assert save.wires == []


def test_size_mismatch_aborts_before_mutation(template_save, tmp_path):
    Image.new("L", (2, 2)).save(tmp_path / "00001.png")
    Image.new("L", (2, 3)).save(tmp_path / "00002.png")

    with pytest.raises(InputShapeError, match="00002.png"):
        generate(template_save, FrameSource.from_directory(str(tmp_path)))
    assert len(template_save.components) == 3
    assert len(template_save.wires) == 1
    assert template_save.circuit_states == b"\x00\x02"


def test_roundtrip_matches_in_memory(empty_save, write_frames):
    directory = write_frames([
        [[1, 0, 0], [0, 0, 1]],
        [[1, 1, 0], [0, 1, 1]],
        [[0, 1, 0], [0, 1, 0]],
    ])
    report = generate(empty_save, _source(directory), GeneratorSettings(chunk_interval=2))

    buffer = io.BytesIO()
    blotter.write(empty_save, buffer)
    loaded = blotter.read(io.BytesIO(buffer.getvalue()))

    assert len(loaded.components) == len(empty_save.components)
    assert len(loaded.wires) == len(empty_save.wires) == report.wires
    assert DisplayReader(loaded).history() == DisplayReader(empty_save).history()


def test_second_run_appends_independent_display(template_save, write_frames):
    directory = write_frames([[[1, 0]], [[0, 1]]])
    first = generate(template_save, _source(directory))
    second = generate(template_save, _source(directory))

    assert second.first_address == first.last_address + 1
    assert second.cluster_bound > first.cluster_bound
    addresses = [c.address for c in template_save.components]
    assert len(addresses) == len(set(addresses))
    assert len(DisplayReader(template_save).rows) == 2


def test_subassembly_states_untouched(empty_save, write_frames):
    empty_save.save_type = blotter.SaveType.SUBASSEMBLY
    generate(empty_save, _source(write_frames([[[1]]])))
    assert empty_save.circuit_states == b""
    assert empty_save.on_states == []
