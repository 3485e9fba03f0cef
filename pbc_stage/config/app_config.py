#!filepath: pbc_stage/config/app_config.py
import yaml
from pydantic import BaseModel, Field, ValidationError
from dotenv import load_dotenv
import os
from typing import Optional

from .log_config import LogConfig
from .data_config import DataConfig
from .model_config import ModelConfig
from .server_config import ServerConfig
from .training_config import TrainingSettings
from pbc_stage.utils.errors import UserInputError


def project_root() -> str:
    """
    pbc_stage/config/app_config.py → pbc_stage/config → pbc_stage → project_root
    """
    return os.path.abspath(os.path.join(os.path.dirname(__file__), "../../"))


class RuntimeConfig(BaseModel):
    """
    Process-level switches read from the environment only (never from YAML).

    WORKER=1             -> this process is the training worker
    N_ESTIMATORS=<int>   -> target tree count
    WORKER_TIMEOUT_SEC   -> optional watchdog for the worker
    """

    worker: bool = False
    n_estimators: Optional[int] = Field(default=None, gt=0)
    worker_timeout_sec: Optional[float] = Field(default=None, gt=0.0)

    @classmethod
    def from_env(cls, environ=None) -> "RuntimeConfig":
        env = os.environ if environ is None else environ

        raw = {
            "worker": env.get("WORKER", "").strip() == "1",
            "n_estimators": _parse_number(env, "N_ESTIMATORS", int),
            "worker_timeout_sec": _parse_number(env, "WORKER_TIMEOUT_SEC", float),
        }
        try:
            return cls(**raw)
        except ValidationError as e:
            raise UserInputError(f"invalid runtime environment: {e}") from e


def _parse_number(env, key: str, cast):
    value = env.get(key)
    if value is None or value.strip() == "":
        return None
    try:
        return cast(value)
    except ValueError:
        raise UserInputError(f"{key} must be a number, got {value!r}") from None


class AppConfig(BaseModel):
    log: LogConfig = Field(default_factory=LogConfig)
    data: DataConfig = Field(default_factory=DataConfig)
    model: ModelConfig = Field(default_factory=ModelConfig)
    training: TrainingSettings = Field(default_factory=TrainingSettings)
    server: ServerConfig = Field(default_factory=ServerConfig)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)

    @classmethod
    def load(cls, path: str | None = None, environ=None) -> "AppConfig":
        """
        Load YAML config + .env
        - default: <project_root>/pbc_stage/config/base.yml
        - independent of the current working directory
        - path overrides from PBC_DATA_PATH / PBC_ARTIFACT_PATH
        """
        root = project_root()

        # 1) .env at project root (does not override real env vars)
        load_dotenv(os.path.join(root, ".env"))
        env = os.environ if environ is None else environ

        # 2) resolve config file
        if path is None:
            path = os.path.join(root, "pbc_stage/config/base.yml")

        if not os.path.exists(path):
            raise FileNotFoundError(f"Config file not found: {path}")

        # 3) YAML
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        # 4) env overrides
        if env.get("PBC_DATA_PATH"):
            raw.setdefault("data", {})["path"] = env["PBC_DATA_PATH"]
        if env.get("PBC_ARTIFACT_PATH"):
            raw.setdefault("model", {})["artifact_path"] = env["PBC_ARTIFACT_PATH"]

        raw["runtime"] = RuntimeConfig.from_env(env)

        return cls(**raw)

    # ---------------------------------------------------------
    # derived
    # ---------------------------------------------------------
    def target_estimators(self) -> int:
        """
        N_ESTIMATORS wins; otherwise 50 for the worker, 15 for the controller.
        """
        if self.runtime.n_estimators is not None:
            return self.runtime.n_estimators
        if self.runtime.worker:
            return self.training.worker_estimators
        return self.training.controller_estimators

    def worker_timeout_sec(self) -> Optional[float]:
        if self.runtime.worker_timeout_sec is not None:
            return self.runtime.worker_timeout_sec
        return self.training.worker_timeout_sec
