from __future__ import annotations

import logging
from typing import Awaitable, Callable, Sequence

from cargo_bridge.commands import command_ids
from cargo_bridge.commands.grammar import Add, Other, ParseError, Reload, Remove, parse
from cargo_bridge.output_classifier import (
    OutputClassifier,
    PrefixOutputClassifier,
    failure_tail,
    remove_summary,
    terminal_command_line,
)
from cargo_bridge.runtime.availability import ensure_available
from cargo_bridge.runtime.process_runner import run_cargo
from cargo_bridge.server_core.command_contract import (
    DispatchOutcome,
    DispatchPhase,
    MessageLevel,
    Notification,
    ProcessOutcome,
)
from cargo_bridge.server_core.command_effects import CommandEffects

logger = logging.getLogger(__name__)

GateFn = Callable[[str, Callable[[str, MessageLevel], None]], Awaitable[bool]]
RunFn = Callable[[Sequence[str]], Awaitable[ProcessOutcome]]


class _RecordingEffects:
    """Forwards to the host effects and keeps what each dispatch reported."""

    def __init__(self, effects: CommandEffects) -> None:
        self._effects = effects
        self.notifications: list[Notification] = []

    def notify(self, message: str, level: MessageLevel) -> None:
        self.notifications.append(Notification(level=level, message=message))
        self._effects.notify(message, level)

    def reload_workspace(self) -> None:
        self._effects.reload_workspace()

    def open_terminal(self, command_line: str, args: Sequence[str]) -> None:
        self._effects.open_terminal(command_line, args)


class CommandDispatcher:
    """Runs one ``:Cargo`` invocation from raw tokens to reported output.

    Collaborators are injected so the flow can run against fakes. Dispatches
    share no mutable state; concurrent invocations proceed independently.
    """

    def __init__(
        self,
        effects: CommandEffects,
        *,
        executable: str = "cargo",
        gate_fn: GateFn | None = None,
        run_fn: RunFn | None = None,
        classifier: OutputClassifier | None = None,
    ) -> None:
        self.effects = effects
        self.executable = executable
        self._gate_fn = gate_fn
        self._run_fn = run_fn
        self.classifier = classifier or PrefixOutputClassifier()

    async def _gate(
        self, subcommand: str, notify: Callable[[str, MessageLevel], None]
    ) -> bool:
        if self._gate_fn is not None:
            return await self._gate_fn(subcommand, notify)
        return await ensure_available(subcommand, notify, executable=self.executable)

    async def _run(self, args: Sequence[str]) -> ProcessOutcome:
        if self._run_fn is not None:
            return await self._run_fn(args)
        return await run_cargo(args, executable=self.executable)

    async def dispatch(self, tokens: Sequence[str]) -> DispatchOutcome:
        effects = _RecordingEffects(self.effects)
        command = parse(tokens)
        if isinstance(command, ParseError):
            level = MessageLevel.INFO if command.help_requested else MessageLevel.ERROR
            effects.notify(command.message, level)
            return _outcome("reported", effects)
        if isinstance(command, Reload):
            effects.reload_workspace()
            return _outcome("reloaded", effects)
        if isinstance(command, Other):
            effects.open_terminal(terminal_command_line(command.args), command.args)
            return _outcome("terminal", effects)
        if isinstance(command, Remove):
            return await self._dispatch_remove(command, effects)
        return await self._dispatch_add(command, effects)

    async def _dispatch_remove(
        self, command: Remove, effects: _RecordingEffects
    ) -> DispatchOutcome:
        if not await self._gate(command_ids.REMOVE_SUBCOMMAND, effects.notify):
            return _outcome("gated", effects)
        outcome = await self._run([command_ids.REMOVE_SUBCOMMAND, command.crate])
        if not outcome.succeeded:
            effects.notify(failure_tail(outcome.text), MessageLevel.ERROR)
            return _outcome("reported", effects)
        effects.reload_workspace()
        effects.notify(remove_summary(outcome.text), MessageLevel.INFO)
        return _outcome("reported", effects)

    async def _dispatch_add(
        self, command: Add, effects: _RecordingEffects
    ) -> DispatchOutcome:
        if not await self._gate(command_ids.ADD_SUBCOMMAND, effects.notify):
            return _outcome("gated", effects)
        outcome = await self._run([command_ids.ADD_SUBCOMMAND, *command.args])
        if not outcome.succeeded:
            effects.notify(failure_tail(outcome.text), MessageLevel.ERROR)
            return _outcome("reported", effects)
        classified = self.classifier.classify(outcome.text)
        if classified.warnings:
            effects.notify(classified.warnings, MessageLevel.WARNING)
        effects.reload_workspace()
        effects.notify(classified.summary, MessageLevel.INFO)
        return _outcome("reported", effects)


def _outcome(phase: DispatchPhase, effects: _RecordingEffects) -> DispatchOutcome:
    logger.debug("dispatch finished in phase %s", phase)
    return DispatchOutcome(phase=phase, notifications=tuple(effects.notifications))
