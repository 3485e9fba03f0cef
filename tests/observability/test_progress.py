#!filepath: tests/observability/test_progress.py
import time

import pytest

from pbc_stage.observability.progress import ProgressTicker, format_duration


@pytest.mark.parametrize(
    "ms, expected",
    [
        (0, "0s"),
        (999, "0s"),
        (1000, "1s"),
        (59_999, "59s"),
        (60_000, "1m 0s"),
        (125_000, "2m 5s"),
        (3_600_000, "1h 0m 0s"),
        (3_725_000, "1h 2m 5s"),
    ],
)
def test_format_duration(ms, expected):
    assert format_duration(ms) == expected


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


def test_render_before_and_after_start():
    clock = FakeClock()
    ticker = ProgressTicker(10_000, interval=60, clock=clock, sink=lambda line: None)

    assert ticker.snapshot() == (0.0, 10_000.0)

    ticker.start()
    clock.now += 2.5
    try:
        assert ticker.render() == "\r⏳ Elapsed: 2s — Est. remaining: 7s "
    finally:
        ticker.cancel()


def test_remaining_never_negative():
    clock = FakeClock()
    ticker = ProgressTicker(1_000, interval=60, clock=clock, sink=lambda line: None)
    ticker.start()
    clock.now += 5
    try:
        elapsed, remaining = ticker.snapshot()
        assert elapsed == pytest.approx(5_000)
        assert remaining == 0.0
    finally:
        ticker.cancel()


def test_ticks_then_silent_after_cancel():
    lines = []
    ticker = ProgressTicker(60_000, interval=0.01, sink=lines.append)
    ticker.start()

    deadline = time.monotonic() + 2.0
    while len(lines) < 3 and time.monotonic() < deadline:
        time.sleep(0.01)

    assert ticker.cancel() is True
    ticker.join(1.0)
    seen = len(lines)
    assert seen >= 3
    assert all(line.startswith("\r⏳ Elapsed: ") for line in lines)

    time.sleep(0.05)
    assert len(lines) == seen
    assert ticker.ticks == seen


def test_cancel_is_idempotent():
    ticker = ProgressTicker(1_000, interval=60, sink=lambda line: None)
    ticker.start()

    assert ticker.cancel() is True
    assert ticker.cancel() is False
    assert ticker.cancelled


def test_start_only_once():
    ticker = ProgressTicker(1_000, interval=60, sink=lambda line: None)
    ticker.start()
    try:
        with pytest.raises(RuntimeError):
            ticker.start()
    finally:
        ticker.cancel()

    with pytest.raises(RuntimeError):
        ticker.start()


def test_cancel_before_start_is_noop():
    ticker = ProgressTicker(1_000, interval=60, sink=lambda line: None)
    assert ticker.cancel() is False
    assert not ticker.running
