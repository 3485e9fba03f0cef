#!filepath: pbc_stage/utils/logger.py
import os
import json
from functools import wraps
from time import perf_counter
from loguru import logger
from typing import Callable

_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {extra[role]}:{process} | {message}"


class Logging:
    """
    Project-wide logger (loguru)
    ---------------------------------------
    - each process opens its own daily file sink under `log_dir`; a spawned
      worker re-opens (and rotates) the same file independently
    - enqueue=True only serialises writes between threads of one process
    - every record carries the process role (controller / worker) and pid,
      which is how interleaved lines are told apart
    - warning/error also echo to the console unless echo=False
    ---------------------------------------
    """

    def __init__(
        self,
        log_dir: str = "logs",
        rotation: str = "1 day",
        retention: str = "30 days",
        log_level: str = "INFO",
        *,
        role: str = "controller",
        enqueue: bool = True,
    ):
        self.log_dir = log_dir
        self.rotation = rotation
        self.retention = retention
        self.level = log_level
        self.role = role
        self.enqueue = enqueue

        self._install_sink()

    def _install_sink(self) -> None:
        os.makedirs(self.log_dir, exist_ok=True)

        logger.remove()
        logger.configure(extra={"role": self.role})
        logger.add(
            sink=os.path.join(self.log_dir, "{time:YYYY-MM-DD}.log"),
            rotation=self.rotation,
            retention=self.retention,
            level=self.level,
            format=_FORMAT,
            enqueue=self.enqueue,
            backtrace=True,
            diagnose=False,
        )

        logger.info("----------- {} logger ready (pid={}) -----------", self.role, os.getpid())

    def configure(self, cfg, *, role: str | None = None) -> None:
        """
        Re-point the sink at a LogConfig; the worker passes role="worker".
        """
        self.log_dir = cfg.dir
        self.rotation = cfg.rotation
        self.retention = cfg.retention
        self.level = cfg.level
        self.enqueue = cfg.enqueue
        if role is not None:
            self.role = role

        self._install_sink()

    @staticmethod
    def complete() -> None:
        """
        Drain the enqueue thread; a child process must call this before exit
        or its last records are lost.
        """
        logger.complete()

    # ----------- log methods -----------
    def debug(self, msg: str, *args, **kwargs):
        logger.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        logger.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args, echo: bool = True, **kwargs):
        if echo:
            print(msg)
        logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args, echo: bool = True, **kwargs):
        if echo:
            print(msg)
        logger.error(msg, *args, **kwargs)

    def exception(self, msg: str, *args, **kwargs):
        logger.exception(msg, *args, **kwargs)

    # ---------- decorator ----------
    def catch(self, msg: str = "Exception occurred", *, log_args: bool = False) -> Callable:
        """
        Log entry args (optional), wall time and any exception, then re-raise.

            @logs.catch("standalone worker crashed")
            def run(...): ...
        """

        def decorator(func: Callable):
            @wraps(func)
            def wrapper(*args, **kwargs):
                name = func.__qualname__
                if log_args:
                    logger.debug(
                        f"[CALL] {name} args={args!r} "
                        f"kwargs={json.dumps(kwargs, ensure_ascii=False, default=str)}"
                    )

                t0 = perf_counter()
                try:
                    return func(*args, **kwargs)
                except Exception:
                    logger.exception(f"[ERROR] {name}: {msg}")
                    raise
                finally:
                    logger.info(f"[TIME] {name} took {perf_counter() - t0:.3f}s")

            return wrapper

        return decorator


# default global logs (re-pointed by Logging.configure)
logs = Logging()
