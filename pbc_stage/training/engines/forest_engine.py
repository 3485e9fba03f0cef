#!filepath: pbc_stage/training/engines/forest_engine.py
"""
Random forest train engine + model wrapper.

ForestModel is the only object that crosses the artifact boundary:
- the worker serializes it (bytes) and writes the artifact
- the prediction server deserializes it and calls predict()
"""
from __future__ import annotations

import io
from typing import Any, Dict, List, Sequence

import joblib
import numpy as np
from sklearn.ensemble import RandomForestClassifier

from pbc_stage.config.training_config import TrainingConfig
from pbc_stage.training.engines.model_train_engine import ModelTrainEngine

_ARTIFACT_KEYS = ("model", "feature_order", "training_config")


class ForestModel:
    def __init__(
        self,
        *,
        estimator: RandomForestClassifier,
        feature_order: Sequence[str],
        training_config: Dict[str, Any],
    ):
        self.estimator = estimator
        self.feature_order: List[str] = list(feature_order)
        self.training_config = dict(training_config)

    @property
    def classes(self) -> List[int]:
        return [int(c) for c in self.estimator.classes_]

    def predict(self, X) -> np.ndarray:
        X = np.asarray(X, dtype=np.float64)
        if X.ndim == 1:
            X = X.reshape(1, -1)
        if X.shape[1] != len(self.feature_order):
            raise ValueError(
                f"expected {len(self.feature_order)} features "
                f"({', '.join(self.feature_order)}), got {X.shape[1]}"
            )
        return self.estimator.predict(X).astype(np.int64)

    # ---------------------------------------------------------
    # serialization
    # ---------------------------------------------------------
    def serialize(self) -> bytes:
        """
        Deterministic for a fixed seed: no timestamps, no host info.
        """
        buf = io.BytesIO()
        joblib.dump(
            {
                "model": self.estimator,
                "feature_order": self.feature_order,
                "training_config": self.training_config,
            },
            buf,
        )
        return buf.getvalue()

    @classmethod
    def deserialize(cls, data: bytes) -> "ForestModel":
        artifact = joblib.load(io.BytesIO(data))

        if not isinstance(artifact, dict) or any(k not in artifact for k in _ARTIFACT_KEYS):
            raise ValueError(
                f"not a forest artifact, expected keys {list(_ARTIFACT_KEYS)}"
            )

        return cls(
            estimator=artifact["model"],
            feature_order=artifact["feature_order"],
            training_config=artifact["training_config"],
        )


class RandomForestTrainEngine(ModelTrainEngine):
    """
    Batch fit(X, y), single-threaded (n_jobs=1).
    """

    @staticmethod
    def build_estimator(cfg: TrainingConfig) -> RandomForestClassifier:
        return RandomForestClassifier(
            n_estimators=cfg.estimator_count,
            max_features=cfg.max_feature_fraction,
            bootstrap=cfg.bootstrap_replacement,
            # OOB needs bootstrap samples
            oob_score=(not cfg.skip_out_of_bag) and cfg.bootstrap_replacement,
            random_state=cfg.random_seed,
            n_jobs=1,
        )

    def train(
        self,
        *,
        X: np.ndarray,
        y: np.ndarray,
        cfg: TrainingConfig,
        feature_order: Sequence[str],
    ) -> ForestModel:
        estimator = self.build_estimator(cfg)
        estimator.fit(X, y)
        return ForestModel(
            estimator=estimator,
            feature_order=feature_order,
            training_config=cfg.to_payload(),
        )
