#!filepath: pbc_stage/utils/path.py
from pathlib import Path
from typing import Optional

from pbc_stage import logs


class PathManager:
    """
    Project layout:

    <root>
     ├── pbc_stage/...
     ├── data/pbc.csv        (training source)
     ├── model.joblib        (canonical artifact)
     └── logs/

    Relative paths from config are always resolved against root,
    never against the current working directory.
    """

    _root: Optional[Path] = None

    # ---------------------------------------------------------
    # root detection
    # ---------------------------------------------------------
    @classmethod
    def detect_root(cls) -> Path:
        """
        This file lives at <root>/pbc_stage/utils/path.py, so root = parents[2].
        """
        current = Path(__file__).resolve()
        root = current.parents[2]
        logs.debug(f"[PathManager] detect_root = {root}")
        return root

    @classmethod
    def root(cls) -> Path:
        if cls._root is None:
            cls._root = cls.detect_root()
        return cls._root

    @classmethod
    def set_root(cls, new_root: Path | str | None):
        if new_root is None:
            cls._root = None
        else:
            cls._root = Path(new_root).resolve()
        logs.debug(f"[PathManager] set_root = {cls._root}")

    @classmethod
    def resolve(cls, p: Path | str) -> Path:
        p = Path(p)
        return p if p.is_absolute() else cls.root() / p

