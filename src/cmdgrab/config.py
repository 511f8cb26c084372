"""Configuration for cmdgrab."""

import json
import logging
import os
import stat
import tempfile
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from cmdgrab.errors import ConfigError
from cmdgrab.models.config import CmdgrabConfig

log = logging.getLogger(__name__)

__all__ = [
    "CONFIG_DIR",
    "CONFIG_FILE",
    "LOG_FILE",
    "CmdgrabConfig",
    "load_config",
    "save_config",
    "parse_hotkey",
]

CONFIG_DIR = Path.home() / ".cmdgrab"
CONFIG_FILE = CONFIG_DIR / "config.json"
LOG_FILE = CONFIG_DIR / "cmdgrab.log"

# Environment variable -> config field, applied after the file is read.
ENV_OVERRIDES = {
    "CMDGRAB_PROMPT_PATTERN": "prompt_pattern",
    "CMDGRAB_HOTKEY": "hotkey",
    "CMDGRAB_EDITOR": "editor",
}
EXECUTE_ENV = "CMDGRAB_EXECUTE"
FLAG_VALUES = {
    "1": True,
    "true": True,
    "yes": True,
    "on": True,
    "0": False,
    "false": False,
    "no": False,
    "off": False,
}

DIR_MODE = 0o700
FILE_MODE = 0o600


def load_config() -> CmdgrabConfig:
    """Load config from ``~/.cmdgrab/config.json`` with env var overrides.

    A missing file, invalid JSON, or values that fail validation all give the
    defaults; the last two log a warning. ``CMDGRAB_PROMPT_PATTERN``,
    ``CMDGRAB_HOTKEY``, ``CMDGRAB_EDITOR`` and ``CMDGRAB_EXECUTE`` override
    whatever the file holds.
    """
    _restrict_permissions(CONFIG_DIR, DIR_MODE)
    _restrict_permissions(CONFIG_FILE, FILE_MODE)

    try:
        config = CmdgrabConfig.model_validate(_read_config_file())
    except ValidationError as exc:
        log.warning(
            "invalid config values in %s (%d errors); falling back to defaults",
            CONFIG_FILE,
            exc.error_count(),
        )
        config = CmdgrabConfig()

    for env_name, field in ENV_OVERRIDES.items():
        if value := os.environ.get(env_name):
            setattr(config, field, value)
    if execute := os.environ.get(EXECUTE_ENV):
        flag = FLAG_VALUES.get(execute.strip().lower())
        if flag is None:
            log.warning("ignoring %s=%r; expected a yes/no value", EXECUTE_ENV, execute)
        else:
            config.execute_immediately = flag

    return config


def _read_config_file() -> dict[str, Any]:
    if not CONFIG_FILE.exists():
        return {}
    try:
        data = json.loads(CONFIG_FILE.read_text())
    except json.JSONDecodeError as exc:
        log.warning("invalid config JSON in %s (%s); falling back to defaults", CONFIG_FILE, exc)
        return {}
    if not isinstance(data, dict):
        log.warning("config in %s is not a JSON object; falling back to defaults", CONFIG_FILE)
        return {}
    log.debug("loaded config from %s", CONFIG_FILE)
    return data


def save_config(config: CmdgrabConfig) -> None:
    """Write ``config`` to ``~/.cmdgrab/config.json``.

    The file is replaced atomically and is readable by the owner only.
    Unset optional values are left out.

    Raises:
        OSError: If the config directory or file cannot be written.
    """
    CONFIG_DIR.mkdir(parents=True, exist_ok=True, mode=DIR_MODE)
    _restrict_permissions(CONFIG_DIR, DIR_MODE)

    # mkstemp creates the file with mode 0o600.
    fd, temp_name = tempfile.mkstemp(prefix=f".{CONFIG_FILE.name}.", suffix=".tmp", dir=CONFIG_DIR)
    temp_file = Path(temp_name)
    try:
        with os.fdopen(fd, "w") as f:
            f.write(config.model_dump_json(indent=2, exclude_none=True))
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_file, CONFIG_FILE)
    except BaseException:
        temp_file.unlink(missing_ok=True)
        raise
    log.debug("saved config to %s", CONFIG_FILE)


def parse_hotkey(name: str) -> bytes:
    """Translate a key name such as ``ctrl-x`` into the byte the terminal sends.

    Raises:
        ConfigError: If the name is not a control-key chord.
    """
    normalized = name.strip().lower().replace("+", "-")
    prefix, _, key = normalized.rpartition("-")
    code = ord(key.upper()) - 0x40 if len(key) == 1 else -1
    # ESC (ctrl-[) starts every escape sequence, so it cannot be a hotkey.
    if prefix not in {"ctrl", "c"} or not 0 < code < 0x20 or code == 0x1B:
        raise ConfigError(f"unsupported hotkey {name!r}; use a control chord like 'ctrl-x'")
    return bytes([code])


def _restrict_permissions(path: Path, mode: int) -> None:
    """Drop group and other access from ``path`` if it exists."""
    if not path.exists():
        return
    current = stat.S_IMODE(path.stat().st_mode)
    if current & 0o077:
        path.chmod(mode)
        log.warning("tightened permissions on %s from %o to %o", path, current, mode)
