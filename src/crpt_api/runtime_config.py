"""Runtime configuration loader (config-first, env and flag overrides)."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from crpt_api.errors import ConfigError

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "runtime.toml"
DEFAULT_LOCAL_OVERRIDE_PATH = Path(__file__).resolve().parents[2] / "config" / "runtime.local.toml"


@dataclass(frozen=True)
class RuntimeConfig:
    """Materialized runtime configuration."""

    config_path: Path
    endpoint: str
    timeout_s: float
    signature_files: tuple[Path, ...]
    request_limit: int
    window_unit: str
    window_amount: float
    max_workers: int
    log_level: str
    log_json: bool


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    out = dict(base)
    for key, value in overlay.items():
        existing = out.get(key)
        if isinstance(existing, dict) and isinstance(value, dict):
            out[key] = _deep_merge(existing, value)
        else:
            out[key] = value
    return out


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        payload = tomllib.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"failed reading runtime config: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"invalid runtime config TOML: {path}") from exc
    return payload


def _as_table(payload: dict[str, Any], key: str) -> dict[str, Any]:
    value = payload.get(key, {})
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"runtime config section [{key}] must be a table")
    return value


def _as_str(value: Any, *, default: str) -> str:
    if isinstance(value, str):
        stripped = value.strip()
        if stripped:
            return stripped
    return default


def _as_bool(value: Any, *, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    return default


def _as_int(value: Any, *, default: int) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return default
    return default


def _as_float(value: Any, *, default: float) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return default
    return default


def _as_paths(values: Any, *, base_dir: Path) -> tuple[Path, ...]:
    if isinstance(values, str):
        values = values.split(",")
    if not isinstance(values, list):
        return ()
    paths: list[Path] = []
    for value in values:
        cleaned = str(value).strip()
        if not cleaned:
            continue
        path = Path(cleaned).expanduser()
        paths.append(path if path.is_absolute() else (base_dir / path).resolve())
    return tuple(paths)


def load_runtime_config(config_path: Path | None = None) -> RuntimeConfig:
    """Load runtime config from `config/runtime.toml` plus optional local override."""
    source = (config_path or DEFAULT_CONFIG_PATH).expanduser().resolve()
    if not source.exists():
        raise ConfigError(f"runtime config file not found: {source}")

    payload = _read_toml(source)
    if source == DEFAULT_CONFIG_PATH and DEFAULT_LOCAL_OVERRIDE_PATH.exists():
        payload = _deep_merge(payload, _read_toml(DEFAULT_LOCAL_OVERRIDE_PATH))

    api = _as_table(payload, "api")
    rate_limit = _as_table(payload, "rate_limit")
    logging_table = _as_table(payload, "logging")

    return RuntimeConfig(
        config_path=source,
        endpoint=_as_str(api.get("endpoint"), default=""),
        timeout_s=_as_float(api.get("timeout_s"), default=10.0),
        signature_files=_as_paths(api.get("signature_files"), base_dir=source.parent),
        request_limit=_as_int(rate_limit.get("request_limit"), default=10),
        window_unit=_as_str(rate_limit.get("window_unit"), default="second"),
        window_amount=_as_float(rate_limit.get("window_amount"), default=1.0),
        max_workers=_as_int(rate_limit.get("max_workers"), default=4),
        log_level=_as_str(logging_table.get("level"), default="info"),
        log_json=_as_bool(logging_table.get("json"), default=False),
    )
