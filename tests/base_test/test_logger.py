#!filepath: tests/base_test/test_logger.py
import pytest

from pbc_stage.config.log_config import LogConfig
from pbc_stage.utils.logger import Logging


def _read_logs(log_dir):
    return "".join(p.read_text(encoding="utf-8") for p in log_dir.glob("*.log"))


def test_file_sink_carries_role(tmp_path):
    log_dir = tmp_path / "logs"
    logs = Logging(log_dir=str(log_dir), enqueue=False, role="worker")

    logs.info("hello from worker")

    text = _read_logs(log_dir)
    assert "hello from worker" in text
    assert "| worker:" in text


def test_reopened_sink_appends_with_own_role(tmp_path):
    log_dir = tmp_path / "logs"
    Logging(log_dir=str(log_dir), enqueue=False, role="controller").info("from controller")
    # a spawned worker installs its own sink over the same daily file
    Logging(log_dir=str(log_dir), enqueue=False, role="worker").info("from worker")

    lines = _read_logs(log_dir).splitlines()
    assert any("| controller:" in line and "from controller" in line for line in lines)
    assert any("| worker:" in line and "from worker" in line for line in lines)


def test_configure_switches_dir_and_role(tmp_path):
    logs = Logging(log_dir=str(tmp_path / "a"), enqueue=False)
    logs.configure(LogConfig(dir=str(tmp_path / "b"), enqueue=False), role="worker")

    logs.info("moved")

    assert "moved" in _read_logs(tmp_path / "b")
    assert "moved" not in _read_logs(tmp_path / "a")


def test_error_echo_switch(tmp_path, capsys):
    logs = Logging(log_dir=str(tmp_path), enqueue=False)

    logs.error("shown")
    logs.error("hidden", echo=False)

    out = capsys.readouterr().out
    assert "shown" in out
    assert "hidden" not in out


def test_catch_logs_and_reraises(tmp_path):
    logs = Logging(log_dir=str(tmp_path), enqueue=False)

    @logs.catch("boom happened")
    def explode():
        raise ValueError("boom")

    with pytest.raises(ValueError):
        explode()

    text = _read_logs(tmp_path)
    assert "boom happened" in text
    assert "[TIME]" in text
