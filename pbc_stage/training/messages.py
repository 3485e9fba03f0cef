# pbc_stage/training/messages.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Union

from pbc_stage import logs
from pbc_stage.utils.errors import MalformedMessage


# ============================================================
# WorkerMessage (tagged union)
# ============================================================
@dataclass(frozen=True)
class Done:
    elapsed_ms: float


@dataclass(frozen=True)
class Failed:
    error: str


WorkerMessage = Union[Done, Failed]


# ============================================================
# Wire codec
#   {"status": "done",  "time": <ms>}
#   {"status": "error", "error": <str>}
# ============================================================
def encode_message(msg: WorkerMessage) -> Dict[str, Any]:
    if isinstance(msg, Done):
        return {"status": "done", "time": float(msg.elapsed_ms)}
    if isinstance(msg, Failed):
        return {"status": "error", "error": str(msg.error)}
    raise TypeError(f"not a WorkerMessage: {msg!r}")


def decode_message(raw: Any) -> WorkerMessage:
    if not isinstance(raw, dict):
        raise MalformedMessage(f"expected a dict, got {type(raw).__name__}")

    status = raw.get("status")

    if status == "done":
        elapsed = raw.get("time")
        if isinstance(elapsed, bool) or not isinstance(elapsed, (int, float)):
            raise MalformedMessage(f"done message without numeric time: {raw!r}")
        if not math.isfinite(elapsed) or elapsed < 0:
            raise MalformedMessage(f"done message with invalid time: {raw!r}")
        return Done(elapsed_ms=float(elapsed))

    if status == "error":
        error = raw.get("error")
        if not isinstance(error, str):
            raise MalformedMessage(f"error message without error text: {raw!r}")
        return Failed(error=error)

    raise MalformedMessage(f"unknown status {status!r}")


# ============================================================
# Worker-side channels (one-shot)
# ============================================================
class _OneShotChannel:
    def __init__(self):
        self.sent: WorkerMessage | None = None

    def send(self, msg: WorkerMessage) -> None:
        if self.sent is not None:
            raise RuntimeError(f"channel already used for {self.sent!r}")
        self.sent = msg
        self._deliver(encode_message(msg))

    def _deliver(self, payload: Dict[str, Any]) -> None:
        raise NotImplementedError


class PipeChannel(_OneShotChannel):
    """
    Child end of a multiprocessing Pipe.
    """

    def __init__(self, conn):
        super().__init__()
        self.conn = conn

    def _deliver(self, payload: Dict[str, Any]) -> None:
        self.conn.send(payload)

    def close(self) -> None:
        self.conn.close()


class NullChannel(_OneShotChannel):
    """
    Standalone worker (no parent listening): the message is only logged.
    """

    def _deliver(self, payload: Dict[str, Any]) -> None:
        logs.info(f"[Worker] no parent channel, message={payload}")
