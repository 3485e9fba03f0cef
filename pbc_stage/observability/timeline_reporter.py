#!filepath: pbc_stage/observability/timeline_reporter.py
from typing import Dict
from pbc_stage import logs


class TimelineReporter:
    """
    step -> elapsed seconds
    """

    def __init__(self, timeline: Dict[str, float], title: str):
        self.timeline = timeline
        self.title = title

    def lines(self) -> list[str]:
        out = [f"[Timeline] ===== {self.title} ====="]

        total = 0.0
        for name, sec in self.timeline.items():
            out.append(f"[Timeline] {str(name):<30} {sec:>8.3f}s")
            total += sec

        out.append(f"[Timeline] Total{'':<27} {total:>8.3f}s")
        return out

    def print(self):
        for line in self.lines():
            logs.info(line)
