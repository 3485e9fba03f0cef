# pbc_stage/training/engines/model_train_engine.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

import numpy as np

from pbc_stage.config.training_config import TrainingConfig


class ModelTrainEngine(ABC):
    """
    Abstract ModelTrainEngine
    """

    @abstractmethod
    def train(
        self,
        *,
        X: np.ndarray,
        y: np.ndarray,
        cfg: TrainingConfig,
        feature_order: Sequence[str],
    ):
        """
        Returns a trained model exposing predict / serialize
        """
        raise NotImplementedError
