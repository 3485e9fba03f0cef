#!filepath: pbc_stage/config/data_config.py
from typing import List

from pydantic import BaseModel, Field, field_validator, model_validator


DEFAULT_FEATURES = ["Bilirubin", "Albumin", "Copper", "Platelets", "Prothrombin"]


class DataConfig(BaseModel):
    path: str = "data/pbc.csv"
    feature_columns: List[str] = Field(default_factory=lambda: list(DEFAULT_FEATURES))
    label_column: str = "Stage"
    chunksize: int = Field(default=1000, gt=0)

    @field_validator("feature_columns")
    @classmethod
    def _non_empty_unique(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("feature_columns must not be empty")
        if len(set(v)) != len(v):
            raise ValueError("feature_columns must be unique")
        return v

    @model_validator(mode="after")
    def _label_not_a_feature(self) -> "DataConfig":
        if self.label_column in self.feature_columns:
            raise ValueError(f"label column {self.label_column!r} cannot also be a feature")
        return self

    @property
    def required_columns(self) -> List[str]:
        return [*self.feature_columns, self.label_column]
