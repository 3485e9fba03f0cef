#!filepath: pbc_stage/utils/filesystem.py
import os
from pathlib import Path

from pbc_stage import logs


class FileSystem:
    """
    Filesystem helpers
    - create directories on demand
    - atomic write (tmp file -> replace)
    - human readable sizes
    """

    @staticmethod
    def ensure_dir(path: str | Path) -> Path:
        p = Path(path)
        if not p.exists():
            p.mkdir(parents=True, exist_ok=True)
            logs.debug(f"[FS] created dir: {p}")
        return p

    @staticmethod
    def format_size(size_bytes: int) -> str:
        for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
            if size_bytes < 1024:
                return f"{size_bytes:.2f} {unit}"
            size_bytes /= 1024
        return f"{size_bytes:.2f} PB"

    @staticmethod
    def safe_write(path: str | Path, data: bytes) -> Path:
        """
        Atomic write (never leaves a half-written target):
            1) write the full payload into <name>.<pid>.tmp next to the target
            2) fsync, then replace -> target
        The tmp file is removed if anything fails before the replace.
        """
        path = Path(path)
        FileSystem.ensure_dir(path.parent)

        tmp_path = path.with_name(f"{path.name}.{os.getpid()}.tmp")

        try:
            with open(tmp_path, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            logs.debug(f"[FS] wrote tmp file: {tmp_path}")

            tmp_path.replace(path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

        logs.debug(f"[FS] atomic write done: {path} ({FileSystem.format_size(len(data))})")
        return path
