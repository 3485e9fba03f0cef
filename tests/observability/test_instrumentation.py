#!filepath: tests/observability/test_instrumentation.py
import pytest

from pbc_stage.observability.instrumentation import Instrumentation, NoOpInstrumentation
from pbc_stage.observability.timeline_reporter import TimelineReporter


def test_leaf_timer_recorded_in_order():
    inst = Instrumentation()
    with inst.timer("load"):
        pass
    with inst.timer("scope", record=False):
        with inst.timer("train"):
            pass

    assert list(inst.timeline) == ["load", "train"]
    assert inst.total_ms() == pytest.approx(
        (inst.timeline["load"] + inst.timeline["train"]) * 1000.0
    )


def test_timer_recorded_even_on_error():
    inst = Instrumentation()
    with pytest.raises(RuntimeError):
        with inst.timer("persist"):
            raise RuntimeError("x")
    assert "persist" in inst.timeline


def test_noop_records_nothing():
    inst = NoOpInstrumentation()
    with inst.timer("load"):
        pass
    assert inst.timeline == {}


def test_timeline_lines():
    lines = TimelineReporter({"DatasetLoadStep": 0.5, "ModelTrainStep": 1.25}, "run").lines()

    assert lines[0] == "[Timeline] ===== run ====="
    assert "DatasetLoadStep" in lines[1]
    assert lines[-1].endswith("1.750s")
