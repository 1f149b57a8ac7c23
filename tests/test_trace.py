import json

import pytest

from memspace import MemorySpace, TraceFormatError
from memspace.trace import Trace, TraceOp, load_trace, parse_trace, replay


@pytest.fixture
def payload():
    return {
        "Capacity": 100,
        "Ops": [
            {"Op": "ALLOC", "Size": 20, "Label": "a"},
            {"Op": "ALLOC", "Size": 30, "Label": "b"},
            {"Op": "FREE", "Label": "a"},
            {"Op": "alloc", "Size": 10},
            {"Op": "ALLOC", "Size": 80},
            {"Op": "FREE", "Address": 20},
            {"Op": "DEFRAG"},
        ],
    }


def test_parse_trace(payload):
    trace = parse_trace(payload)
    assert trace.capacity == 100
    assert trace.ops[0] == TraceOp("ALLOC", 20, "a")
    assert trace.ops[2] == TraceOp("FREE", None, "a")
    assert trace.ops[3] == TraceOp("ALLOC", 10)
    assert trace.ops[5] == TraceOp("FREE", 20)
    assert trace.ops[6].is_defrag


def test_load_trace(tmp_path, payload):
    path = tmp_path / "workload.json"
    path.write_text(json.dumps(payload))
    assert load_trace(path) == parse_trace(payload)


def test_load_trace_rejects_invalid_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{\"Capacity\": 10, \"Ops\": [")
    with pytest.raises(TraceFormatError):
        load_trace(path)


def test_load_trace_rejects_unknown_suffix(tmp_path):
    path = tmp_path / "workload.csv"
    path.write_text("")
    with pytest.raises(ValueError):
        load_trace(path)


@pytest.mark.parametrize(
    "bad",
    [
        {"Ops": []},
        {"Capacity": "many", "Ops": []},
        {"Capacity": 10, "Ops": [{"Op": "GROW", "Size": 1}]},
        {"Capacity": 10, "Ops": [{"Op": "ALLOC"}]},
        {"Capacity": 10, "Ops": [{"Op": "FREE"}]},
        {"Capacity": 10, "Ops": None},
        {"Capacity": 10, "Ops": {"Op": "DEFRAG"}},
        {"Capacity": 10, "Ops": ["ALLOC"]},
        {"Capacity": 10, "Ops": [{"Op": "ALLOC", "Size": "big"}]},
        {"Capacity": 10, "Ops": [{"Op": "ALLOC", "Size": None}]},
        {"Capacity": 10, "Ops": [{"Op": "ALLOC", "Size": 0}]},
        {"Capacity": 10, "Ops": [{"Op": "FREE", "Address": "zero"}]},
    ],
)
def test_parse_trace_errors(bad):
    with pytest.raises(TraceFormatError):
        parse_trace(bad)


def test_replay(payload):
    result = replay(parse_trace(payload))
    addresses = [step.address for step in result.steps]
    assert addresses == [0, 20, None, 50, -1, None, None]
    assert result.failed_allocations == 1
    assert result.peak_allocated == 50
    assert result.usage.allocated_total == 10
    assert result.usage.free_total == 90
    assert result.usage.free_fragments == 2
    for step in result.steps:
        assert step.free_total + step.allocated_total == 100


def test_replay_on_existing_space():
    space = MemorySpace(10)
    ops = [TraceOp("ALLOC", 4), TraceOp("ALLOC", 6), TraceOp("FREE", 0), TraceOp("FREE", 4), TraceOp("DEFRAG")]
    result = replay(ops, space)
    assert result.usage.largest_free == 10
    assert [(b.base_address, b.length) for b in space.free_list] == [(0, 10)]


def test_replay_bare_ops_need_a_space():
    with pytest.raises(ValueError):
        replay([TraceOp("DEFRAG")])


def test_free_of_unknown_label_is_noop():
    result = replay(Trace(capacity=10, ops=[TraceOp("ALLOC", 5, "x"), TraceOp("FREE", None, "y")]))
    assert result.usage.allocated_total == 5


def test_label_is_forgotten_after_free():
    ops = [
        TraceOp("ALLOC", 5, "x"),
        TraceOp("FREE", None, "x"),
        TraceOp("ALLOC", 5, "z"),
        TraceOp("FREE", None, "x"),
    ]
    result = replay(Trace(capacity=10, ops=ops))
    assert result.usage.allocated_total == 5


def test_free_by_address_forgets_its_label():
    ops = [
        TraceOp("ALLOC", 5, "x"),
        TraceOp("FREE", 0, "x"),
        TraceOp("ALLOC", 5, "y"),
        TraceOp("FREE", None, "x"),
    ]
    result = replay(Trace(capacity=5, ops=ops))
    assert result.usage.allocated_total == 5
    assert result.steps[-1].allocated_total == 5


def test_step_description():
    result = replay(Trace(capacity=10, ops=[TraceOp("ALLOC", 4, "buf"), TraceOp("FREE", None, "buf"), TraceOp("DEFRAG")]))
    lines = [step.describe() for step in result.steps]
    assert lines == [
        "ALLOC 4 [buf] -> 0 free=6 allocated=4",
        "FREE buf free=10 allocated=0",
        "DEFRAG free=10 allocated=0",
    ]


def test_bundled_trace_defragments_back_to_one_hole():
    from memspace.config import settings

    result = replay(load_trace(settings.traces_dir / "fragmentation.json"))
    assert result.failed_allocations == 1
    assert result.usage.free_fragments == 1
    assert result.usage.largest_free == 55
    assert result.usage.allocated_total == 45
