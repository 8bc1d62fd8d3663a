from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Literal


class MessageLevel(IntEnum):
    """Notification levels; values match the LSP ``MessageType`` numbers."""

    ERROR = 1
    WARNING = 2
    INFO = 3


@dataclass(frozen=True)
class Notification:
    level: MessageLevel
    message: str


@dataclass(frozen=True)
class ProcessOutcome:
    """Result of one cargo invocation: exit status and decoded stderr."""

    succeeded: bool
    text: str


@dataclass(frozen=True)
class ClassifiedOutput:
    summary: str
    warnings: str = ""


DispatchPhase = Literal["reported", "reloaded", "gated", "terminal"]


@dataclass(frozen=True)
class DispatchOutcome:
    phase: DispatchPhase
    notifications: tuple[Notification, ...] = field(default_factory=tuple)

    @property
    def has_errors(self) -> bool:
        return any(item.level is MessageLevel.ERROR for item in self.notifications)
