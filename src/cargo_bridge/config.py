from __future__ import annotations

from datetime import date, datetime, time
from pathlib import Path
from typing import Mapping, TypeAlias
import tomllib

from pydantic import ValidationError

from cargo_bridge.exceptions import ConfigError
from cargo_bridge.runtime import env_policy
from cargo_bridge.schema import BridgeSettings

DEFAULT_CONFIG_NAME = "cargo-bridge.toml"
SECTION_NAME = "cargo_bridge"

TomlScalar: TypeAlias = str | int | float | bool | None | date | datetime | time
TomlValue: TypeAlias = TomlScalar | list["TomlValue"] | dict[str, "TomlValue"]
TomlTable: TypeAlias = dict[str, TomlValue]


def _load_toml(path: Path) -> TomlTable:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError:
        return {}
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError:
        return {}
    return data if isinstance(data, dict) else {}


def load_config(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    if config_path is None:
        base = root if root is not None else Path.cwd()
        config_path = base / DEFAULT_CONFIG_NAME
    return _load_toml(config_path)


def bridge_defaults(
    root: Path | None = None, config_path: Path | None = None
) -> TomlTable:
    data = load_config(root=root, config_path=config_path)
    section = data.get(SECTION_NAME, {})
    return section if isinstance(section, dict) else {}


def env_overrides() -> TomlTable:
    overrides: TomlTable = {}
    executable = env_policy.env_text(env_policy.CARGO_EXECUTABLE_ENV)
    if executable:
        overrides["cargo_executable"] = executable
    log_level = env_policy.env_text(env_policy.LOG_LEVEL_ENV)
    if log_level:
        overrides["log_level"] = log_level
    return overrides


def merge_payload(payload: Mapping[str, object], defaults: TomlTable) -> TomlTable:
    merged = dict(defaults)
    for key, value in payload.items():
        if value is None:
            continue
        merged[str(key)] = value
    return merged


def resolve_settings(
    *,
    root: Path | None = None,
    config_path: Path | None = None,
    overrides: Mapping[str, object] | None = None,
) -> BridgeSettings:
    """Build settings from the config file, the environment and explicit overrides.

    Later sources win: file < environment < overrides (for the editor, the
    client's ``initializationOptions``).
    """
    merged = merge_payload(env_overrides(), bridge_defaults(root, config_path))
    if overrides:
        merged = merge_payload(overrides, merged)
    try:
        return BridgeSettings.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"invalid cargo-bridge settings: {exc}") from exc
