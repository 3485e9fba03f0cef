# pbc_stage/training/estimator.py
from __future__ import annotations

import math
from dataclasses import dataclass

from pbc_stage import logs
from pbc_stage.config.training_config import TrainingConfig
from pbc_stage.dataloader.dataset_loader import Dataset
from pbc_stage.observability.progress import format_duration
from pbc_stage.observability.timer import stopwatch_ms
from pbc_stage.training.engines.model_train_engine import ModelTrainEngine
from pbc_stage.utils.errors import CalibrationFailure


@dataclass(frozen=True)
class CalibrationResult:
    sample_estimator_count: int
    elapsed_ms: float


@dataclass(frozen=True)
class DurationEstimate:
    calibration: CalibrationResult
    target_estimator_count: int
    estimated_total_ms: float


def bench_count(target: int, divisor: int = 5) -> int:
    """
    B = max(1, floor(N / divisor))
    """
    return max(1, math.floor(target / divisor))


def extrapolate(bench_elapsed_ms: float, target: int, bench: int) -> float:
    """
    Forest cost is ~linear in tree count on a fixed dataset.
    Never below 1 ms.
    """
    return max(bench_elapsed_ms * (target / bench), 1.0)


class DurationEstimator:
    """
    Calibration pass: train with B trees on the FULL calibration dataset
    (only the tree count shrinks), time it, scale by N / B.

    Advisory only: the estimate feeds the progress line and never gates
    the real run. No retry.
    """

    def __init__(self, engine: ModelTrainEngine, *, divisor: int = 5):
        self.engine = engine
        self.divisor = divisor

    def estimate(self, dataset: Dataset, cfg: TrainingConfig) -> DurationEstimate:
        target = cfg.estimator_count
        bench = bench_count(target, self.divisor)
        bench_cfg = cfg.with_estimators(bench)

        logs.info(f"[DurationEstimator] bench run with {bench} estimators (target={target})")

        try:
            with stopwatch_ms() as elapsed:
                self.engine.train(
                    X=dataset.features,
                    y=dataset.labels,
                    cfg=bench_cfg,
                    feature_order=dataset.feature_names,
                )
        except Exception as e:
            raise CalibrationFailure(f"calibration training failed: {e}") from e

        calibration = CalibrationResult(sample_estimator_count=bench, elapsed_ms=elapsed[0])
        total = extrapolate(calibration.elapsed_ms, target, bench)

        logs.info(
            f"[DurationEstimator] bench={calibration.elapsed_ms:.0f}ms -> "
            f"estimated total {total:.0f}ms ({format_duration(total)})"
        )
        return DurationEstimate(
            calibration=calibration,
            target_estimator_count=target,
            estimated_total_ms=total,
        )
