"""Shared pytest fixtures for test isolation helpers."""

from pathlib import Path

import pytest

import cmdgrab.config as config_module
from cmdgrab.models import CmdgrabConfig


@pytest.fixture()
def cmdgrab_config_paths(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> tuple[Path, Path]:
    """Redirect cmdgrab config paths to a temp directory."""
    config_dir = tmp_path / ".cmdgrab"
    config_file = config_dir / "config.json"
    monkeypatch.setattr(config_module, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(config_module, "CONFIG_FILE", config_file)
    monkeypatch.setattr(config_module, "LOG_FILE", config_dir / "cmdgrab.log")
    for name in ("CMDGRAB_PROMPT_PATTERN", "CMDGRAB_EXECUTE", "CMDGRAB_HOTKEY", "CMDGRAB_EDITOR"):
        monkeypatch.delenv(name, raising=False)
    return config_dir, config_file


@pytest.fixture()
def config_dir(cmdgrab_config_paths: tuple[Path, Path]) -> Path:
    return cmdgrab_config_paths[0]


@pytest.fixture()
def config_file(cmdgrab_config_paths: tuple[Path, Path]) -> Path:
    return cmdgrab_config_paths[1]


@pytest.fixture()
def fast_config() -> CmdgrabConfig:
    """Probe and settle timings short enough for unit tests."""
    return CmdgrabConfig(
        probe_timeout=0.05,
        probe_interval=0.002,
        stable_readings=2,
        settle_delay=0.01,
    )
