#!filepath: tests/training/test_supervisor.py
import multiprocessing
import os
import sys
import time

import pytest

from pbc_stage.training.messages import Done, Failed
from pbc_stage.training.supervisor import OutcomeKind, WorkerSupervisor
from pbc_stage.utils.errors import MalformedMessage, WorkerCrash, WorkerFailure, WorkerTimeout

pytestmark = pytest.mark.skipif(
    "fork" not in multiprocessing.get_all_start_methods(),
    reason="fake worker targets rely on fork",
)


# ------------------------------------------------------------------
# fake worker targets (top level, same signature as worker_process_entry)
# ------------------------------------------------------------------
def _send_done(conn, payload):
    conn.send({"status": "done", "time": float(payload["training"]["estimator_count"])})
    conn.close()


def _send_error(conn, payload):
    conn.send({"status": "error", "error": "boom"})
    conn.close()
    sys.exit(1)


def _die_silently(conn, payload):
    os._exit(3)


def _return_silently(conn, payload):
    return None


def _send_unknown_status(conn, payload):
    conn.send({"status": "maybe"})
    conn.close()


def _send_string(conn, payload):
    conn.send("done")
    conn.close()


def _sleep(conn, payload):
    time.sleep(30)


def _spawn(target, spec):
    sup = WorkerSupervisor(mp_start_method="fork", target=target, join_timeout=5.0)
    return sup.spawn(spec)


def test_done_carries_target_count(worker_spec):
    spec = worker_spec()
    handle = _spawn(_send_done, spec)

    outcome = handle.wait(timeout=10)

    assert outcome.kind is OutcomeKind.DONE
    assert outcome.ok
    assert outcome.message == Done(elapsed_ms=float(spec.training.estimator_count))
    assert outcome.error() is None
    assert handle.exit_code == 0


def test_failed_message(worker_spec):
    handle = _spawn(_send_error, worker_spec())

    outcome = handle.wait(timeout=10)

    assert outcome.kind is OutcomeKind.FAILED
    assert outcome.message == Failed(error="boom")
    assert outcome.detail == "boom"
    assert outcome.exit_code == 1
    assert isinstance(outcome.error(), WorkerFailure)


@pytest.mark.parametrize("target, code", [(_die_silently, 3), (_return_silently, 0)])
def test_exit_without_message_is_crash(worker_spec, target, code):
    handle = _spawn(target, worker_spec())

    outcome = handle.wait(timeout=10)

    assert outcome.kind is OutcomeKind.CRASHED
    assert outcome.exit_code == code
    assert outcome.message is None
    err = outcome.error()
    assert isinstance(err, WorkerCrash)
    assert err.exit_code == code


@pytest.mark.parametrize("target", [_send_unknown_status, _send_string])
def test_malformed_message(worker_spec, target):
    outcome = _spawn(target, worker_spec()).wait(timeout=10)

    assert outcome.kind is OutcomeKind.MALFORMED
    assert isinstance(outcome.error(), MalformedMessage)


def test_watchdog_terminates_worker(worker_spec):
    handle = _spawn(_sleep, worker_spec())

    t0 = time.monotonic()
    outcome = handle.wait(timeout=0.3)

    assert outcome.kind is OutcomeKind.TIMED_OUT
    assert time.monotonic() - t0 < 10
    assert not handle.process.is_alive()
    assert isinstance(outcome.error(), WorkerTimeout)


def test_wait_is_memoised(worker_spec):
    handle = _spawn(_send_done, worker_spec())
    first = handle.wait(timeout=10)
    assert handle.wait(timeout=10) is first
    assert handle.outcome is first
