# tests/conftest.py
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

import numpy as np
import pandas as pd
import pytest
from loguru import logger

from pbc_stage.config.app_config import AppConfig
from pbc_stage.config.data_config import DataConfig
from pbc_stage.config.log_config import LogConfig
from pbc_stage.config.model_config import ModelConfig
from pbc_stage.config.training_config import TrainingSettings


@pytest.fixture(autouse=True)
def disable_file_logger():
    logger.remove()
    logger.add(lambda msg: None)  # or sys.stderr
    yield


PBC_COLUMNS = [
    "ID", "N_Days", "Status", "Drug", "Age", "Sex", "Ascites", "Hepatomegaly",
    "Spiders", "Edema", "Bilirubin", "Cholesterol", "Albumin", "Copper",
    "Alk_Phos", "SGOT", "Tryglicerides", "Platelets", "Prothrombin", "Stage",
]


def make_pbc_rows(n: int, seed: int = 7) -> List[Dict[str, Any]]:
    """
    Synthetic PBC-like records; stage grows with bilirubin and prothrombin
    so a small forest has something to learn.
    """
    rng = np.random.RandomState(seed)
    rows = []
    for i in range(n):
        stage = int(rng.randint(1, 5))
        rows.append(
            {
                "ID": i + 1,
                "N_Days": int(rng.randint(40, 4800)),
                "Status": rng.choice(["C", "CL", "D"]),
                "Drug": rng.choice(["Placebo", "D-penicillamine"]),
                "Age": int(rng.randint(9000, 28000)),
                "Sex": rng.choice(["F", "M"]),
                "Ascites": rng.choice(["N", "Y"]),
                "Hepatomegaly": rng.choice(["N", "Y"]),
                "Spiders": rng.choice(["N", "Y"]),
                "Edema": rng.choice(["N", "S", "Y"]),
                "Bilirubin": round(0.3 + stage * 2.0 + rng.rand(), 2),
                "Cholesterol": int(rng.randint(120, 1800)),
                "Albumin": round(4.2 - stage * 0.3 + rng.rand() * 0.2, 2),
                "Copper": int(rng.randint(4, 600)),
                "Alk_Phos": round(rng.uniform(280, 14000), 1),
                "SGOT": round(rng.uniform(26, 460), 2),
                "Tryglicerides": int(rng.randint(33, 600)),
                "Platelets": int(rng.randint(60, 720)),
                "Prothrombin": round(9.5 + stage * 0.6 + rng.rand() * 0.3, 1),
                "Stage": stage,
            }
        )
    return rows


BAD_ROWS: List[Dict[str, Any]] = [
    {"Bilirubin": "NA"},
    {"Albumin": ""},
    {"Copper": "abc"},
    {"Platelets": "inf"},
    {"Prothrombin": "-"},
    {"Stage": ""},
    {"Stage": "NA"},
    {"Stage": "2.5"},
    {"Bilirubin": "nan"},
    {"Copper": " "},
]


@pytest.fixture
def write_pbc_csv(tmp_path: Path):
    """
    Factory: write_pbc_csv(n_valid, n_bad=0, name="pbc.csv") -> Path
    Bad rows are appended after the valid ones.
    """

    def _write(n_valid: int, n_bad: int = 0, name: str = "pbc.csv") -> Path:
        rows = make_pbc_rows(n_valid)
        template = make_pbc_rows(1, seed=99)[0]
        for i in range(n_bad):
            bad = dict(template, ID=n_valid + i + 1)
            bad.update(BAD_ROWS[i % len(BAD_ROWS)])
            rows.append(bad)

        path = tmp_path / name
        pd.DataFrame(rows, columns=PBC_COLUMNS).to_csv(path, index=False)
        return path

    return _write


@pytest.fixture
def app_cfg(tmp_path: Path, write_pbc_csv):
    """
    Self-contained AppConfig: dataset, artifact and logs all under tmp_path.
    """

    def _make(n_valid: int = 120, n_bad: int = 0, **training) -> AppConfig:
        csv_path = write_pbc_csv(n_valid, n_bad)
        return AppConfig(
            log=LogConfig(dir=str(tmp_path / "logs")),
            data=DataConfig(path=str(csv_path)),
            model=ModelConfig(artifact_path=str(tmp_path / "model.joblib")),
            training=TrainingSettings(**training),
        )

    return _make
