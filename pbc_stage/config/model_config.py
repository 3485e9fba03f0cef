#!filepath: pbc_stage/config/model_config.py
from pydantic import BaseModel

class ModelConfig(BaseModel):
    # canonical artifact, relative to the project root
    artifact_path: str = "model.joblib"
