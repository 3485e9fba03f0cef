# pbc_stage/training/controller.py
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional

from rich.console import Console

from pbc_stage import logs
from pbc_stage.config.app_config import AppConfig
from pbc_stage.dataloader.dataset_loader import DatasetLoader
from pbc_stage.observability.progress import ProgressTicker, format_duration
from pbc_stage.training.context import WorkerSpec
from pbc_stage.training.engines.forest_engine import RandomForestTrainEngine
from pbc_stage.training.engines.model_train_engine import ModelTrainEngine
from pbc_stage.training.estimator import DurationEstimate, DurationEstimator
from pbc_stage.training.messages import NullChannel
from pbc_stage.training.supervisor import OutcomeKind, WorkerOutcome, WorkerSupervisor
from pbc_stage.training.worker import TrainingWorker
from pbc_stage.utils.errors import CalibrationFailure, DatasetError
from pbc_stage.utils.path import PathManager

_out = Console(highlight=False)
_err = Console(stderr=True, highlight=False)


def _echo(line: str) -> None:
    _out.print(line, markup=False)


def _echo_err(line: str) -> None:
    _err.print(line, markup=False)


@dataclass(frozen=True)
class RunReport:
    exit_code: int
    summary: str
    estimate: Optional[DurationEstimate] = None
    outcome: Optional[WorkerOutcome] = None
    wall_ms: float = 0.0


class TrainingController:
    """
    TrainingController

    load (bench) -> calibrate -> spawn worker -> tick progress -> report

    Ordering:
    - calibration always finishes before the worker is spawned
    - the ticker is cancelled exactly once, whatever ends the wait
    - no CPU-bound work in this process after spawn
    """

    def __init__(
        self,
        cfg: AppConfig,
        *,
        supervisor: WorkerSupervisor | None = None,
        engine: ModelTrainEngine | None = None,
        loader: DatasetLoader | None = None,
        ticker_factory: Callable[..., ProgressTicker] = ProgressTicker,
        echo: Callable[[str], None] = _echo,
        echo_err: Callable[[str], None] = _echo_err,
    ):
        self.cfg = cfg
        self.supervisor = supervisor or WorkerSupervisor(
            mp_start_method=cfg.training.mp_start_method
        )
        self.engine = engine or RandomForestTrainEngine()
        self.loader = loader or DatasetLoader.from_config(cfg.data)
        self.ticker_factory = ticker_factory
        self.echo = echo
        self.echo_err = echo_err

        self.ticker: ProgressTicker | None = None
        self.report: RunReport | None = None

    # ======================================================================
    # Public API
    # ======================================================================
    def run(self) -> int:
        target = self.cfg.target_estimators()
        training = self.cfg.training.training_config(target)
        dataset_path = PathManager.resolve(self.cfg.data.path)

        # ------------------------------
        # 1) bench dataset + calibration
        # ------------------------------
        try:
            self.echo(f"Loading dataset (for benchmark) from {dataset_path} ...")
            dataset = self.loader.load(dataset_path)
            self.echo(f"📊 Loaded {len(dataset)} records ({dataset.dropped_rows} dropped)")

            estimator = DurationEstimator(self.engine, divisor=self.cfg.training.bench_divisor)
            estimate = estimator.estimate(dataset, training)
        except (DatasetError, CalibrationFailure) as e:
            return self._abort(f"❌ Controller error: {type(e).__name__}: {e}")

        self.echo(
            f"⚡ Bench: {estimate.calibration.elapsed_ms:.0f} ms with "
            f"{estimate.calibration.sample_estimator_count} estimators -> estimated total "
            f"{estimate.estimated_total_ms:.0f} ms ({format_duration(estimate.estimated_total_ms)})"
        )

        # ------------------------------
        # 2) worker + progress
        # ------------------------------
        spec = WorkerSpec.from_app_config(self.cfg, training)
        self.echo(f"Spawning worker for full training ({target} estimators)")

        # built before spawn: a ticker that cannot be created leaves no worker behind
        self.ticker = self.ticker_factory(
            estimate.estimated_total_ms, self.cfg.training.progress_interval_sec
        )
        handle = self.supervisor.spawn(spec)

        start = time.perf_counter()
        try:
            self.ticker.start()
            outcome = handle.wait(timeout=self.cfg.worker_timeout_sec())
        except BaseException:
            handle.terminate()
            raise
        finally:
            self.ticker.cancel()
        wall_ms = (time.perf_counter() - start) * 1000.0

        return self._finish(outcome, estimate, wall_ms)

    # ======================================================================
    # Internal
    # ======================================================================
    def _abort(self, line: str) -> int:
        logs.error(f"[Controller] {line.strip()}", echo=False)
        self.echo_err(line)
        self.report = RunReport(exit_code=1, summary=line)
        return 1

    def _finish(self, outcome: WorkerOutcome, estimate: DurationEstimate, wall_ms: float) -> int:
        if outcome.kind is OutcomeKind.DONE:
            line = (
                f"\n✅ Worker finished training in {format_duration(wall_ms)} "
                f"(reported {outcome.message.elapsed_ms:.0f} ms)"
            )
            logs.info(f"[Controller] done wall={wall_ms:.0f}ms reported={outcome.message.elapsed_ms:.0f}ms")
            self.echo(line)
            code = 0
        else:
            if outcome.kind is OutcomeKind.FAILED:
                line = f"\n❌ Worker error: {outcome.detail}"
            elif outcome.kind is OutcomeKind.CRASHED:
                line = f"\n❌ Worker exited with code {outcome.exit_code} without reporting a result"
            elif outcome.kind is OutcomeKind.MALFORMED:
                line = f"\n❌ Worker sent a malformed message: {outcome.detail}"
            else:
                line = f"\n❌ Worker timed out: {outcome.detail}"

            err = outcome.error()
            logs.error(f"[Controller] {type(err).__name__}: {err}", echo=False)
            self.echo_err(line)
            code = 1

        self.report = RunReport(
            exit_code=code,
            summary=line.strip(),
            estimate=estimate,
            outcome=outcome,
            wall_ms=wall_ms,
        )
        return code


@logs.catch("standalone worker crashed")
def run_standalone_worker(cfg: AppConfig) -> int:
    """
    WORKER=1 entry: train at full complexity with no parent channel.
    """
    training = cfg.training.training_config(cfg.target_estimators())
    spec = WorkerSpec.from_app_config(cfg, training, log=False)
    logs.info("[Worker] standalone mode (WORKER=1)")
    return TrainingWorker(spec).run(NullChannel())
