from __future__ import annotations

import os

CARGO_EXECUTABLE_ENV = "CARGO_BRIDGE_CARGO"
LOG_LEVEL_ENV = "CARGO_BRIDGE_LOG_LEVEL"

BRIDGE_ENV_KEYS: tuple[str, ...] = (
    CARGO_EXECUTABLE_ENV,
    LOG_LEVEL_ENV,
)


def env_text(name: str, *, default: str = "") -> str:
    return os.getenv(name, default).strip()
