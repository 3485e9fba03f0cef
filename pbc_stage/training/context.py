# pbc_stage/training/context.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from pbc_stage.config.training_config import TrainingConfig
from pbc_stage.dataloader.dataset_loader import Dataset
from pbc_stage.observability.instrumentation import Instrumentation
from pbc_stage.utils.path import PathManager


@dataclass(frozen=True)
class WorkerSpec:
    """
    WorkerSpec (FROZEN)

    Everything the isolated worker needs, passed as process arguments.
    - training.estimator_count is the TARGET count, never the bench count
    - the dataset itself is NOT shipped; the worker reloads it
    """

    training: TrainingConfig
    dataset_path: str
    artifact_path: str
    feature_columns: Tuple[str, ...]
    label_column: str
    chunksize: int = 1000
    log: Optional[Dict[str, Any]] = None

    @classmethod
    def from_app_config(cls, app_cfg, training: TrainingConfig, *, log: bool = True) -> "WorkerSpec":
        return cls(
            training=training,
            dataset_path=str(PathManager.resolve(app_cfg.data.path)),
            artifact_path=str(PathManager.resolve(app_cfg.model.artifact_path)),
            feature_columns=tuple(app_cfg.data.feature_columns),
            label_column=app_cfg.data.label_column,
            chunksize=app_cfg.data.chunksize,
            log=app_cfg.log.model_dump() if log else None,
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "training": self.training.to_payload(),
            "dataset_path": self.dataset_path,
            "artifact_path": self.artifact_path,
            "feature_columns": list(self.feature_columns),
            "label_column": self.label_column,
            "chunksize": self.chunksize,
            "log": self.log,
        }

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "WorkerSpec":
        return cls(
            training=TrainingConfig(**payload["training"]),
            dataset_path=payload["dataset_path"],
            artifact_path=payload["artifact_path"],
            feature_columns=tuple(payload["feature_columns"]),
            label_column=payload["label_column"],
            chunksize=payload.get("chunksize", 1000),
            log=payload.get("log"),
        )


@dataclass
class TrainingContext:
    """
    TrainingContext

    Semantics:
    - one context == one worker run
    - steps fill it in order: dataset -> model -> artifact
    """

    run_id: str
    cfg: TrainingConfig
    dataset_path: Path
    artifact_path: Path
    inst: Instrumentation

    dataset: Optional[Dataset] = None
    model: Optional[Any] = None
    train_elapsed_ms: float = 0.0
    artifact_bytes: int = 0
    metrics: Dict[str, Any] = field(default_factory=dict)
