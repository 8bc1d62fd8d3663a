from __future__ import annotations

import sys
from pathlib import Path
from typing import Sequence

ROOT = Path(__file__).resolve().parents[1]
for entry in (ROOT, ROOT / "src"):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))


import pytest

from cargo_bridge.server_core.command_contract import MessageLevel, ProcessOutcome
from tests.env_helpers import restore_env as _restore_env
from tests.env_helpers import set_env as _set_env


class RecordingEffects:
    def __init__(self) -> None:
        self.events: list[tuple[str, object]] = []
        self.terminal_args: list[list[str]] = []

    def notify(self, message: str, level: MessageLevel) -> None:
        self.events.append(("notify", (level, message)))

    def reload_workspace(self) -> None:
        self.events.append(("reload", None))

    def open_terminal(self, command_line: str, args: Sequence[str]) -> None:
        self.events.append(("terminal", command_line))
        self.terminal_args.append(list(args))

    @property
    def notifications(self) -> list[tuple[MessageLevel, str]]:
        return [payload for kind, payload in self.events if kind == "notify"]

    @property
    def kinds(self) -> list[str]:
        return [kind for kind, _payload in self.events]


class ScriptedRunner:
    """Async stand-in for the cargo runner that replays a fixed outcome."""

    def __init__(self, outcome: ProcessOutcome) -> None:
        self.outcome = outcome
        self.calls: list[list[str]] = []

    async def __call__(self, args) -> ProcessOutcome:
        self.calls.append(list(args))
        return self.outcome


@pytest.fixture
def effects() -> RecordingEffects:
    return RecordingEffects()


@pytest.fixture
def scripted_runner():
    def _make(succeeded: bool, text: str) -> ScriptedRunner:
        return ScriptedRunner(ProcessOutcome(succeeded=succeeded, text=text))

    return _make


@pytest.fixture
def env_scope():
    return _set_env


@pytest.fixture
def restore_env():
    return _restore_env
