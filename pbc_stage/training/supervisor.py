# pbc_stage/training/supervisor.py
from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from multiprocessing import get_context
from multiprocessing.connection import wait as wait_ready
from typing import Any, Callable, Optional

from pbc_stage import logs
from pbc_stage.training.context import WorkerSpec
from pbc_stage.training.messages import Done, Failed, WorkerMessage, decode_message
from pbc_stage.training.worker import worker_process_entry
from pbc_stage.utils.errors import (
    MalformedMessage,
    PbcStageError,
    WorkerCrash,
    WorkerFailure,
    WorkerTimeout,
)


class OutcomeKind(str, Enum):
    DONE = "done"
    FAILED = "failed"
    CRASHED = "crashed"
    MALFORMED = "malformed"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class WorkerOutcome:
    kind: OutcomeKind
    message: Optional[WorkerMessage] = None
    exit_code: Optional[int] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.DONE

    def error(self) -> Optional[PbcStageError]:
        """
        Map a non-success outcome onto the error taxonomy (None for DONE).
        """
        if self.kind is OutcomeKind.DONE:
            return None
        if self.kind is OutcomeKind.FAILED:
            return WorkerFailure(self.detail)
        if self.kind is OutcomeKind.CRASHED:
            return WorkerCrash(self.exit_code)
        if self.kind is OutcomeKind.MALFORMED:
            return MalformedMessage(self.detail)
        return WorkerTimeout(self.detail)


class WorkerHandle:
    """
    Parent-side view of one worker process.

    - at most one message is read from the pipe
    - process exit is observed separately through the process sentinel
    - a pending message always wins over the exit event
    """

    def __init__(self, process, conn, *, join_timeout: float = 5.0):
        self.process = process
        self.conn = conn
        self.join_timeout = join_timeout
        self._outcome: WorkerOutcome | None = None

    @property
    def pid(self) -> Optional[int]:
        return self.process.pid

    @property
    def exit_code(self) -> Optional[int]:
        return self.process.exitcode

    @property
    def outcome(self) -> Optional[WorkerOutcome]:
        return self._outcome

    def wait(self, timeout: float | None = None) -> WorkerOutcome:
        """
        Block until the worker speaks, exits, or `timeout` seconds pass.
        timeout=None waits indefinitely.
        """
        if self._outcome is not None:
            return self._outcome

        deadline = None if timeout is None else time.monotonic() + timeout

        while True:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            ready = wait_ready([self.conn, self.process.sentinel], timeout=remaining)

            if self.conn in ready or self.conn.poll():
                self._outcome = self._read_message()
                break

            if self.process.sentinel in ready:
                # exited; drain a message that may have raced the sentinel
                if self.conn.poll():
                    self._outcome = self._read_message()
                else:
                    self._outcome = self._crashed()
                break

            if deadline is not None and time.monotonic() >= deadline:
                self._outcome = self._timed_out(timeout)
                break

        self.conn.close()
        return self._outcome

    def terminate(self) -> None:
        if self.process.is_alive():
            self.process.terminate()
        self.process.join(self.join_timeout)

    # ---------------------------------------------------------
    # internal
    # ---------------------------------------------------------
    def _read_message(self) -> WorkerOutcome:
        try:
            raw = self.conn.recv()
        except EOFError:
            # pipe closed with nothing in it
            return self._crashed()
        except Exception as e:
            self._reap()
            return WorkerOutcome(
                kind=OutcomeKind.MALFORMED,
                exit_code=self.exit_code,
                detail=f"undecodable payload: {type(e).__name__}: {e}",
            )

        self._reap()

        try:
            msg = decode_message(raw)
        except MalformedMessage as e:
            return WorkerOutcome(
                kind=OutcomeKind.MALFORMED,
                exit_code=self.exit_code,
                detail=str(e),
            )

        if isinstance(msg, Done):
            return WorkerOutcome(kind=OutcomeKind.DONE, message=msg, exit_code=self.exit_code)
        if isinstance(msg, Failed):
            return WorkerOutcome(
                kind=OutcomeKind.FAILED,
                message=msg,
                exit_code=self.exit_code,
                detail=msg.error,
            )
        raise AssertionError(f"unhandled message {msg!r}")

    def _crashed(self) -> WorkerOutcome:
        self._reap()
        return WorkerOutcome(
            kind=OutcomeKind.CRASHED,
            exit_code=self.exit_code,
            detail=f"worker exited with code {self.exit_code} without a message",
        )

    def _timed_out(self, timeout: float | None) -> WorkerOutcome:
        logs.warning(f"[Supervisor] worker pid={self.pid} exceeded {timeout}s, terminating")
        self.terminate()
        return WorkerOutcome(
            kind=OutcomeKind.TIMED_OUT,
            exit_code=self.exit_code,
            detail=f"worker exceeded {timeout}s watchdog",
        )

    def _reap(self) -> None:
        self.process.join(self.join_timeout)


class WorkerSupervisor:
    """
    WorkerSupervisor

    - spawns ONE isolated training process per spawn() call
    - configuration travels as process arguments (plain payload)
    - the parent keeps only the read end of a one-way pipe; closing its copy
      of the write end makes a dead child observable as EOF
    """

    def __init__(
        self,
        *,
        mp_start_method: str = "spawn",
        target: Callable[..., Any] = worker_process_entry,
        join_timeout: float = 5.0,
    ):
        self.mp_start_method = mp_start_method
        self.target = target
        self.join_timeout = join_timeout

    def spawn(self, spec: WorkerSpec) -> WorkerHandle:
        mp = get_context(self.mp_start_method)
        parent_conn, child_conn = mp.Pipe(duplex=False)

        process = mp.Process(
            target=self.target,
            args=(child_conn, spec.to_payload()),
            name="pbc-training-worker",
        )
        process.start()
        child_conn.close()

        logs.info(
            f"[Supervisor] spawned worker pid={process.pid} "
            f"method={self.mp_start_method} estimators={spec.training.estimator_count}"
        )
        return WorkerHandle(process, parent_conn, join_timeout=self.join_timeout)
