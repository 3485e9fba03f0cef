#!filepath: pbc_stage/__init__.py

from .utils.logger import Logging, logs
from .utils.filesystem import FileSystem
from .utils.path import PathManager
from .config.app_config import AppConfig

# alias
fs = FileSystem
path = PathManager

__version__ = "0.1.0"

__all__ = [
    "logs", "Logging",
    "fs",
    "path",
    "AppConfig",
    "__version__",
]
