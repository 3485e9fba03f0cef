#!filepath: pbc_stage/observability/instrumentation.py
from __future__ import annotations

from collections import OrderedDict
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator

from pbc_stage.observability.timer import Timer
from pbc_stage.observability.timeline_reporter import TimelineReporter


@dataclass
class Instrumentation:
    """
    Per-run step timeline (worker side).

    - only leaf scopes (record=True) land in `timeline`
    - a scope that raises is still recorded, so a failed run shows where
      the time went
    - disabled -> every scope is a pass-through
    """

    enabled: bool = True
    timeline: Dict[str, float] = field(default_factory=OrderedDict)

    def __post_init__(self):
        self._clock = Timer(enabled=self.enabled)

    @contextmanager
    def timer(self, name: str, *, record: bool = True) -> Iterator[None]:
        if not self.enabled:
            yield
            return

        self._clock.start(name)
        try:
            yield
        finally:
            seconds = self._clock.end(name)
            if record:
                self.timeline[name] = seconds

    def total_ms(self) -> float:
        return sum(self.timeline.values()) * 1000.0

    def generate_timeline_report(self, title: str) -> None:
        TimelineReporter(self.timeline, title).print()


class NoOpInstrumentation(Instrumentation):
    def __init__(self):
        super().__init__(enabled=False)
