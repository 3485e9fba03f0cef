#!filepath: pbc_stage/config/log_config.py
from typing import Literal

from pydantic import BaseModel


class LogConfig(BaseModel):
    """
    `log:` section; also shipped to the worker inside its spawn payload.
    """

    dir: str = "logs"
    rotation: str = "1 day"
    retention: str = "30 days"
    level: Literal["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    # multi-process safe writes through a background thread
    enqueue: bool = True
