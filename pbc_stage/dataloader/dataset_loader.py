#!filepath: pbc_stage/dataloader/dataset_loader.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Tuple

import numpy as np
import pandas as pd

from pbc_stage import logs
from pbc_stage.dataloader.encoding import encode_series
from pbc_stage.utils.errors import EmptyDataset, MissingColumns, SourceUnavailable

# 2**63: first float magnitude that no longer fits in int64
_INT64_LIMIT = float(2 ** 63)


@dataclass(frozen=True, eq=False)
class Dataset:
    """
    Dataset (FROZEN)

    - features: float64 (n, k), row-major, column order == feature_names
    - labels:   int64 (n,)
    - raw_rows == len(labels) + dropped_rows
    Arrays are made read-only on construction.
    """

    features: np.ndarray
    labels: np.ndarray
    feature_names: Tuple[str, ...]
    raw_rows: int
    dropped_rows: int

    def __post_init__(self):
        if self.features.ndim != 2:
            raise ValueError(f"features must be 2-D, got shape={self.features.shape}")
        if len(self.features) != len(self.labels):
            raise ValueError(
                f"features/labels length mismatch: {len(self.features)} != {len(self.labels)}"
            )
        if self.features.shape[1] != len(self.feature_names):
            raise ValueError(
                f"feature width {self.features.shape[1]} != {len(self.feature_names)} names"
            )
        if self.raw_rows != len(self.labels) + self.dropped_rows:
            raise ValueError("raw_rows must equal kept + dropped rows")

        self.features.setflags(write=False)
        self.labels.setflags(write=False)

    def __len__(self) -> int:
        return len(self.labels)

    @property
    def label_set(self) -> set[int]:
        return {int(v) for v in np.unique(self.labels)}


class DatasetLoader:
    """
    DatasetLoader

    Responsibility:
    - stream a labeled CSV chunk by chunk
    - numeric coercion of every required column (categorical columns go
      through the fixed encoding tables first)
    - drop any row with a non-finite value, a non-integral or out-of-int64
      label, or more fields than the header (never imputed)
    - a dropped row is an InvalidRecord: recovered locally, counted into
      raw_rows / dropped_rows, never raised to callers

    Errors:
    - SourceUnavailable: file cannot be opened / decoded
    - MissingColumns:    header lacks a required column
    - EmptyDataset:      nothing survived validation
    """

    def __init__(
        self,
        *,
        feature_columns: Sequence[str],
        label_column: str,
        chunksize: int = 1000,
    ):
        self.feature_columns = list(feature_columns)
        self.label_column = label_column
        self.chunksize = chunksize

    @classmethod
    def from_config(cls, cfg) -> "DatasetLoader":
        return cls(
            feature_columns=cfg.feature_columns,
            label_column=cfg.label_column,
            chunksize=cfg.chunksize,
        )

    @property
    def required_columns(self) -> List[str]:
        return [*self.feature_columns, self.label_column]

    # ======================================================================
    # Public API
    # ======================================================================
    def load(self, source: str | Path) -> Dataset:
        path = Path(source)
        logs.info(f"[DatasetLoader] loading {path}")

        feature_parts: List[np.ndarray] = []
        label_parts: List[np.ndarray] = []
        raw_rows = 0
        seen_chunk = False
        # rows with too many fields never reach a chunk; count them here
        overlong: List[List[str]] = []

        def _skip_overlong(fields: List[str]) -> None:
            overlong.append(fields)
            return None

        try:
            with pd.read_csv(
                path,
                dtype=str,
                keep_default_na=False,
                chunksize=self.chunksize,
                on_bad_lines=_skip_overlong,
                engine="python",
            ) as reader:
                for chunk in reader:
                    if not seen_chunk:
                        self._check_columns(chunk.columns)
                        seen_chunk = True

                    X, y = self._validate_chunk(chunk)
                    raw_rows += len(chunk)
                    logs.debug(
                        f"[DatasetLoader] chunk rows={len(chunk)} kept={len(y)}"
                    )
                    if len(y):
                        feature_parts.append(X)
                        label_parts.append(y)

        except pd.errors.EmptyDataError:
            raise EmptyDataset(f"dataset source is empty: {path}") from None
        except (OSError, UnicodeDecodeError, pd.errors.ParserError) as e:
            raise SourceUnavailable(f"cannot read dataset source {path}: {e}") from e

        raw_rows += len(overlong)
        kept = sum(len(y) for y in label_parts)
        dropped = raw_rows - kept

        if dropped:
            logs.info(f"[DatasetLoader] dropped {dropped}/{raw_rows} invalid rows")

        if kept == 0:
            raise EmptyDataset(
                f"no valid rows in {path} (raw={raw_rows}, dropped={dropped})"
            )

        dataset = Dataset(
            features=np.vstack(feature_parts).astype(np.float64, copy=False),
            labels=np.concatenate(label_parts).astype(np.int64, copy=False),
            feature_names=tuple(self.feature_columns),
            raw_rows=raw_rows,
            dropped_rows=dropped,
        )
        logs.info(
            f"[DatasetLoader] loaded {len(dataset)} records "
            f"features={len(self.feature_columns)} labels={sorted(dataset.label_set)}"
        )
        return dataset

    # ======================================================================
    # Internal
    # ======================================================================
    def _check_columns(self, columns) -> None:
        present = {str(c).strip() for c in columns}
        missing = [c for c in self.required_columns if c not in present]
        if missing:
            raise MissingColumns(missing)

    def _validate_chunk(self, chunk: pd.DataFrame) -> Tuple[np.ndarray, np.ndarray]:
        """
        One chunk -> (X, y) containing only well-formed rows.
        """
        chunk = chunk.rename(columns=lambda c: str(c).strip())

        numeric = pd.DataFrame(
            {col: encode_series(col, chunk[col]) for col in self.required_columns},
            index=chunk.index,
        )

        label = numeric[self.label_column]
        # integral and representable as int64
        mask = (
            numeric.notna().all(axis=1)
            & (label % 1 == 0)
            & (label.abs() < _INT64_LIMIT)
        )

        kept = numeric.loc[mask]
        X = kept[self.feature_columns].to_numpy(dtype=np.float64)
        y = kept[self.label_column].to_numpy(dtype=np.float64).astype(np.int64)
        return X, y
