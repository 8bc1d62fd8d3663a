from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, field_validator

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class BridgeSettings(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    cargo_executable: str = "cargo"
    reload_method: str = "rust-analyzer/reloadWorkspace"
    log_level: str = "WARNING"

    @field_validator("cargo_executable", "reload_method")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("must not be blank")
        return text

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"unknown log level {value!r}")
        return level


class CargoCommandRequest(BaseModel):
    """Arguments of one ``cargo_bridge.cargo`` executeCommand request."""

    tokens: List[str] = []


class NotificationDTO(BaseModel):
    level: int
    message: str


class DispatchResponse(BaseModel):
    phase: str
    notifications: List[NotificationDTO] = []
