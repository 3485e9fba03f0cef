# tests/training/conftest.py
from __future__ import annotations

import pytest

from pbc_stage.config.training_config import TrainingConfig
from pbc_stage.dataloader.dataset_loader import DatasetLoader
from pbc_stage.training.context import WorkerSpec


@pytest.fixture
def loader() -> DatasetLoader:
    return DatasetLoader(
        feature_columns=["Bilirubin", "Albumin", "Copper", "Platelets", "Prothrombin"],
        label_column="Stage",
        chunksize=50,
    )


@pytest.fixture
def small_training() -> TrainingConfig:
    return TrainingConfig(estimator_count=5)


@pytest.fixture
def worker_spec(tmp_path, write_pbc_csv, small_training):
    """
    Factory for a WorkerSpec over a fresh CSV; keyword overrides win.
    """

    def _make(n_valid: int = 80, n_bad: int = 0, **overrides) -> WorkerSpec:
        fields = dict(
            training=small_training,
            dataset_path=str(write_pbc_csv(n_valid, n_bad)),
            artifact_path=str(tmp_path / "model.joblib"),
            feature_columns=("Bilirubin", "Albumin", "Copper", "Platelets", "Prothrombin"),
            label_column="Stage",
            chunksize=50,
            log=None,
        )
        fields.update(overrides)
        return WorkerSpec(**fields)

    return _make


class RecordingChannel:
    """
    Worker-side channel stand-in: keeps every message it is asked to send.
    """

    def __init__(self):
        self.messages = []

    def send(self, msg):
        self.messages.append(msg)


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()
