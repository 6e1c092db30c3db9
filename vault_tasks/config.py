"""Configuration loading for the task tool service."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 18170
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_MAX_RESPONSE_TOKENS = 15000

VAULT_PATH_KEY = "VAULT_TASKS_VAULT_PATH"
SERVICE_TOKEN_KEY = "VAULT_TASKS_SERVICE_TOKEN"
LOG_LEVEL_KEY = "VAULT_TASKS_LOG_LEVEL"
LOG_FILE_KEY = "VAULT_TASKS_LOG_FILE"
HOST_KEY = "VAULT_TASKS_HOST"
PORT_KEY = "VAULT_TASKS_PORT"
MAX_RESPONSE_TOKENS_KEY = "VAULT_TASKS_MAX_RESPONSE_TOKENS"


class ConfigError(RuntimeError):
    """Raised when required configuration is missing or invalid."""


@dataclass(frozen=True)
class AppConfig:
    vault_path: Path
    service_token: str | None = None
    log_level: int = logging.INFO
    log_file: Path | None = None
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    max_response_tokens: int = DEFAULT_MAX_RESPONSE_TOKENS


def _read_dotenv_value(dotenv_path: Path, key: str) -> str | None:
    """Read a single key from a .env file without mutating the environment."""
    if not dotenv_path.is_file():
        return None
    try:
        content = dotenv_path.read_text(encoding="utf-8")
    except OSError:
        return None

    for line in content.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if stripped.startswith("export "):
            stripped = stripped[len("export ") :].strip()
        if "=" not in stripped:
            continue
        name, value = stripped.split("=", 1)
        if name.strip() != key:
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
            value = value[1:-1]
        return value or None
    return None


def _read_setting(dotenv_path: Path, key: str) -> str | None:
    value = os.environ.get(key)
    if value is None:
        value = _read_dotenv_value(dotenv_path, key)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _read_int(raw_value: str | None, *, default: int, key: str) -> int:
    if raw_value is None:
        return default
    try:
        value = int(raw_value)
    except ValueError as exc:
        raise ConfigError(f"{key} must be an integer.") from exc
    if value < 1:
        raise ConfigError(f"{key} must be a positive integer.")
    return value


def _read_log_level(raw_value: str | None, *, key: str) -> int:
    name = (raw_value or DEFAULT_LOG_LEVEL).upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        raise ConfigError(f"{key} must be a logging level name such as INFO or DEBUG.")
    return level


def load_config() -> AppConfig:
    """Load configuration from the environment, falling back to ./.env."""
    dotenv_path = Path.cwd() / ".env"

    raw_path = _read_setting(dotenv_path, VAULT_PATH_KEY)
    if not raw_path:
        raise ConfigError(f"{VAULT_PATH_KEY} is required; set it to the vault root path.")

    raw_log_file = _read_setting(dotenv_path, LOG_FILE_KEY)

    return AppConfig(
        vault_path=Path(raw_path).expanduser().resolve(),
        service_token=_read_setting(dotenv_path, SERVICE_TOKEN_KEY),
        log_level=_read_log_level(_read_setting(dotenv_path, LOG_LEVEL_KEY), key=LOG_LEVEL_KEY),
        log_file=Path(raw_log_file).expanduser() if raw_log_file else None,
        host=_read_setting(dotenv_path, HOST_KEY) or DEFAULT_HOST,
        port=_read_int(
            _read_setting(dotenv_path, PORT_KEY), default=DEFAULT_PORT, key=PORT_KEY
        ),
        max_response_tokens=_read_int(
            _read_setting(dotenv_path, MAX_RESPONSE_TOKENS_KEY),
            default=DEFAULT_MAX_RESPONSE_TOKENS,
            key=MAX_RESPONSE_TOKENS_KEY,
        ),
    )
