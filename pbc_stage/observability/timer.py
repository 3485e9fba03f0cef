#!filepath: pbc_stage/observability/timer.py
import time
from contextlib import contextmanager
from typing import Dict, Iterator, List


class Timer:
    """
    Named perf_counter laps.
    Ending a lap that was never started (or a disabled timer) yields 0.0.
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._open: Dict[str, float] = {}

    def start(self, name: str) -> None:
        if self.enabled:
            self._open[name] = time.perf_counter()

    def end(self, name: str) -> float:
        t0 = self._open.pop(name, None) if self.enabled else None
        return 0.0 if t0 is None else time.perf_counter() - t0


@contextmanager
def stopwatch_ms() -> Iterator[List[float]]:
    """
    with stopwatch_ms() as elapsed:
        ...
    elapsed[0] -> wall-clock milliseconds (set on exit, also on error)
    """
    out = [0.0]
    t0 = time.perf_counter()
    try:
        yield out
    finally:
        out[0] = (time.perf_counter() - t0) * 1000.0
