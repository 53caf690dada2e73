"""Configuration loading for the Chaos Matrix service."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

DEFAULT_PROCESS_HOST = "127.0.0.1"
DEFAULT_PROCESS_PORT = 18170


class ConfigError(RuntimeError):
    """Raised when required configuration is missing or invalid."""


@dataclass(frozen=True)
class AppConfig:
    data_path: Path
    require_user_header: bool
    service_token: str | None
    timezone: ZoneInfo
    random_seed: int | None = None
    host: str = DEFAULT_PROCESS_HOST
    port: int = DEFAULT_PROCESS_PORT


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
        name = name.strip()
        if name != key:
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
            value = value[1:-1]
        return value or None
    return None


def _read_setting(dotenv_path: Path, key: str) -> str | None:
    raw_value = os.environ.get(key)
    if raw_value is None:
        raw_value = _read_dotenv_value(dotenv_path, key)
    if raw_value is None:
        return None
    return raw_value.strip() or None


def _read_bool(raw_value: str | None, *, default: bool, key: str) -> bool:
    if raw_value is None:
        return default
    normalized = raw_value.strip().lower()
    if not normalized:
        return default
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ConfigError(f"{key} must be a boolean value.")


def _read_int(raw_value: str | None, *, default: int | None, key: str) -> int | None:
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError as exc:
        raise ConfigError(f"{key} must be an integer.") from exc


def _read_timezone(raw_value: str | None, *, key: str) -> ZoneInfo:
    name = raw_value or "UTC"
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError(f"{key} must be a valid IANA timezone name.") from exc


def load_config() -> AppConfig:
    """Load required configuration from the environment."""
    dotenv_path = Path.cwd() / ".env"

    env_key = "CHAOS_MATRIX_DATA_PATH"
    raw_path = _read_setting(dotenv_path, env_key)
    if not raw_path:
        raise ConfigError(
            "CHAOS_MATRIX_DATA_PATH is required; set it to the task data root path."
        )

    require_user_key = "CHAOS_MATRIX_REQUIRE_USER_HEADER"
    require_user_header = _read_bool(
        _read_setting(dotenv_path, require_user_key),
        default=True,
        key=require_user_key,
    )

    service_token = _read_setting(dotenv_path, "CHAOS_MATRIX_SERVICE_TOKEN")

    timezone_key = "CHAOS_MATRIX_TIMEZONE"
    timezone = _read_timezone(_read_setting(dotenv_path, timezone_key), key=timezone_key)

    seed_key = "CHAOS_MATRIX_RANDOM_SEED"
    random_seed = _read_int(
        _read_setting(dotenv_path, seed_key), default=None, key=seed_key
    )

    host = _read_setting(dotenv_path, "PROCESS_HOST") or DEFAULT_PROCESS_HOST
    port_key = "PROCESS_PORT"
    port = _read_int(
        _read_setting(dotenv_path, port_key), default=DEFAULT_PROCESS_PORT, key=port_key
    )

    return AppConfig(
        data_path=Path(raw_path).resolve(),
        require_user_header=require_user_header,
        service_token=service_token,
        timezone=timezone,
        random_seed=random_seed,
        host=host,
        port=port,
    )
