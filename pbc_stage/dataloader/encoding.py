#!filepath: pbc_stage/dataloader/encoding.py
"""
Fixed categorical -> integer tables for the PBC dataset.

Shared by the dataset loader (when a categorical column is configured as a
feature) and the prediction server, so training and inference always agree.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

import numpy as np
import pandas as pd

_BINARY = {"N": 0, "Y": 1}

ENCODERS: Dict[str, Dict[str, int]] = {
    "Status": {"C": 0, "CL": 1, "D": 2},
    "Drug": {"Placebo": 0, "D-penicillamine": 1},
    "Sex": {"F": 0, "M": 1},
    "Ascites": _BINARY,
    "Hepatomegaly": _BINARY,
    "Spiders": _BINARY,
    "Edema": {"N": 0, "S": 1, "Y": 2},
}

# request key used by the prediction API when it differs from column.lower()
_REQUEST_KEYS: Dict[str, str] = {
    "Tryglicerides": "triglycerides",
}


def is_categorical(column: str) -> bool:
    return column in ENCODERS


def request_key(column: str) -> str:
    return _REQUEST_KEYS.get(column, column.lower())


def encode_value(column: str, value: Any) -> Optional[float]:
    """
    Encode one raw value of `column` into a finite float.

    Returns None when the value is unknown / non-numeric / non-finite.
    """
    if value is None:
        return None

    if is_categorical(column):
        code = ENCODERS[column].get(str(value).strip())
        return None if code is None else float(code)

    if isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return None
    return number if np.isfinite(number) else None


def encode_series(column: str, values: pd.Series) -> pd.Series:
    """
    Vectorised encode for the loader: unknown or non-numeric -> NaN,
    +/-inf -> NaN.
    """
    if is_categorical(column):
        out = values.astype(str).str.strip().map(ENCODERS[column])
        return out.astype(float)

    if values.dtype == object:
        values = values.str.strip()
    out = pd.to_numeric(values, errors="coerce").astype(float)
    return out.replace([np.inf, -np.inf], np.nan)
