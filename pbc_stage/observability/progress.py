#!filepath: pbc_stage/observability/progress.py
from __future__ import annotations

import sys
import threading
import time
from typing import Callable, Optional

from pbc_stage import logs


def format_duration(ms: float) -> str:
    """
    Human readable duration, whole seconds, leading zero units omitted.

        999      -> "0s"
        59000    -> "59s"
        125000   -> "2m 5s"
        3725000  -> "1h 2m 5s"
    """
    if ms < 1000:
        return "0s"

    total = int(ms // 1000)
    h, rem = divmod(total, 3600)
    m, s = divmod(rem, 60)

    if h:
        return f"{h}h {m}m {s}s"
    if m:
        return f"{m}m {s}s"
    return f"{s}s"


def _stdout_sink(line: str) -> None:
    sys.stdout.write(line)
    sys.stdout.flush()


class ProgressTicker:
    """
    Fixed-period progress line (elapsed / estimated remaining).

    Lifecycle: idle -> running -> cancelled
    - start() exactly once
    - cancel() is idempotent; only the call that actually stops the ticker
      returns True
    - a tick renders while holding the state lock, so once cancel() returns
      no further line is ever written
    """

    def __init__(
        self,
        estimated_total_ms: float,
        interval: float = 1.0,
        *,
        clock: Callable[[], float] = time.monotonic,
        sink: Optional[Callable[[str], None]] = None,
    ):
        self.estimated_total_ms = float(estimated_total_ms)
        self.interval = interval
        self._clock = clock
        self._sink = sink or _stdout_sink

        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._state = "idle"
        self._started_at: float | None = None
        self._thread: threading.Thread | None = None
        self.ticks = 0

    # ---------------------------------------------------------
    # state
    # ---------------------------------------------------------
    @property
    def running(self) -> bool:
        return self._state == "running"

    @property
    def cancelled(self) -> bool:
        return self._state == "cancelled"

    def snapshot(self) -> tuple[float, float]:
        """
        (elapsed_ms, remaining_ms) at this instant.
        """
        if self._started_at is None:
            return 0.0, self.estimated_total_ms
        elapsed = (self._clock() - self._started_at) * 1000.0
        remaining = max(0.0, self.estimated_total_ms - elapsed)
        return elapsed, remaining

    def render(self) -> str:
        elapsed, remaining = self.snapshot()
        return (
            f"\r⏳ Elapsed: {format_duration(elapsed)} — "
            f"Est. remaining: {format_duration(round(remaining))} "
        )

    # ---------------------------------------------------------
    # lifecycle
    # ---------------------------------------------------------
    def start(self) -> "ProgressTicker":
        with self._lock:
            if self._state != "idle":
                raise RuntimeError(f"ProgressTicker cannot start from state={self._state}")
            self._state = "running"
            self._started_at = self._clock()

        self._thread = threading.Thread(
            target=self._loop, name="progress-ticker", daemon=True
        )
        self._thread.start()
        logs.debug(
            f"[Progress] ticker started interval={self.interval}s "
            f"estimate={self.estimated_total_ms:.0f}ms"
        )
        return self

    def cancel(self) -> bool:
        with self._lock:
            if self._state != "running":
                return False
            self._state = "cancelled"
            self._stop.set()

        logs.debug(f"[Progress] ticker cancelled after {self.ticks} ticks")
        return True

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    # ---------------------------------------------------------
    # internal
    # ---------------------------------------------------------
    def _loop(self) -> None:
        while not self._stop.wait(self.interval):
            with self._lock:
                if self._state != "running":
                    return
                self.ticks += 1
                self._sink(self.render())
