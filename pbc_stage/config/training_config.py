# pbc_stage/config/training_config.py
from __future__ import annotations

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class TrainingConfig(BaseModel):
    """
    TrainingConfig (FROZEN)

    Hyper-parameters for ONE forest fit.
    - immutable once constructed
    - the worker receives it at spawn time and never mutates it
    """

    model_config = ConfigDict(frozen=True)

    estimator_count: int = Field(gt=0)
    max_feature_fraction: float = Field(default=0.9, gt=0.0, le=1.0)
    bootstrap_replacement: bool = True
    random_seed: int = 42
    skip_out_of_bag: bool = True

    def with_estimators(self, estimator_count: int) -> "TrainingConfig":
        """
        Same feature / seed / replacement / OOB policy, different tree count.
        """
        return self.model_copy(update={"estimator_count": estimator_count})

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump()


class TrainingSettings(BaseModel):
    """
    `training:` section of base.yml
    """

    # target tree counts when N_ESTIMATORS is unset
    controller_estimators: int = Field(default=15, gt=0)
    worker_estimators: int = Field(default=50, gt=0)

    max_feature_fraction: float = Field(default=0.9, gt=0.0, le=1.0)
    bootstrap_replacement: bool = True
    random_seed: int = 42
    skip_out_of_bag: bool = True

    # calibration: bench = max(1, N // bench_divisor)
    bench_divisor: int = Field(default=5, gt=0)

    progress_interval_sec: float = Field(default=1.0, gt=0.0)

    # None = no watchdog, the worker may run indefinitely
    worker_timeout_sec: Optional[float] = Field(default=None, gt=0.0)

    mp_start_method: Literal["spawn", "fork", "forkserver"] = "spawn"

    def training_config(self, estimator_count: int) -> TrainingConfig:
        return TrainingConfig(
            estimator_count=estimator_count,
            max_feature_fraction=self.max_feature_fraction,
            bootstrap_replacement=self.bootstrap_replacement,
            random_seed=self.random_seed,
            skip_out_of_bag=self.skip_out_of_bag,
        )
