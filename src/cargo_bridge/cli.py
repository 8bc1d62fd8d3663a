from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
from pathlib import Path
import subprocess
from typing import Callable, List, Optional, Sequence, TypeAlias

import typer

from cargo_bridge.config import resolve_settings
from cargo_bridge.exceptions import ConfigError, NeverThrown
from cargo_bridge.runtime.logging_policy import configure_logging
from cargo_bridge.schema import BridgeSettings
from cargo_bridge.server_core.command_contract import MessageLevel
from cargo_bridge.server_core.command_effects import CommandEffects
from cargo_bridge.server_core.command_orchestrator import CommandDispatcher

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False)

DispatcherFactory: TypeAlias = Callable[[CommandEffects, BridgeSettings], CommandDispatcher]
RunCommand: TypeAlias = Callable[..., subprocess.CompletedProcess]

_ENVIRONMENT_FAILURE_EXIT = 2


def _default_dispatcher(effects: CommandEffects, settings: BridgeSettings) -> CommandDispatcher:
    return CommandDispatcher(effects, executable=settings.cargo_executable)


DEFAULT_DISPATCHER_FACTORY: DispatcherFactory = _default_dispatcher


@dataclass
class CliOptions:
    root: Path
    log_level: Optional[str]


class TerminalEffects:
    """Effects for a dispatch started from a shell instead of an editor.

    Informational messages go to stdout, warnings and errors to stderr. There
    is no language server to reload, so reload requests are only logged.
    Proxied commands run in the current terminal.
    """

    def __init__(
        self,
        settings: BridgeSettings,
        *,
        echo_fn: Callable[..., None] = typer.echo,
        run_fn: RunCommand | None = None,
    ) -> None:
        self._settings = settings
        self._echo = echo_fn
        self._run = run_fn or subprocess.run
        self.terminal_returncode = 0

    def notify(self, message: str, level: MessageLevel) -> None:
        if level is MessageLevel.INFO:
            self._echo(message)
        else:
            self._echo(message.lstrip("\n"), err=True)

    def reload_workspace(self) -> None:
        logger.info("workspace reload requested (%s)", self._settings.reload_method)

    def open_terminal(self, command_line: str, args: Sequence[str]) -> None:
        # The invoking shell already split the tokens; no second shell pass.
        argv = [self._settings.cargo_executable, *args]
        logger.debug("running proxied command %s", command_line)
        completed = self._run(argv, check=False)
        self.terminal_returncode = int(completed.returncode)


def _options(ctx: typer.Context) -> CliOptions:
    options = ctx.obj
    if isinstance(options, CliOptions):
        return options
    return CliOptions(root=Path("."), log_level=None)


def _settings(options: CliOptions) -> BridgeSettings:
    overrides = {"log_level": options.log_level} if options.log_level else None
    try:
        return resolve_settings(root=options.root, overrides=overrides)
    except ConfigError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=_ENVIRONMENT_FAILURE_EXIT)


@app.callback()
def main(
    ctx: typer.Context,
    root: Path = typer.Option(Path("."), "--root", help="Directory holding cargo-bridge.toml."),
    log_level: Optional[str] = typer.Option(None, "--log-level"),
) -> None:
    ctx.obj = CliOptions(root=root, log_level=log_level)


@app.command(
    "run",
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
)
def run(
    ctx: typer.Context,
    tokens: List[str] = typer.Argument(None, help="Arguments of the :Cargo command."),
) -> None:
    """Dispatch one :Cargo invocation from the shell."""
    settings = _settings(_options(ctx))
    configure_logging(settings.log_level)
    effects = TerminalEffects(settings)
    dispatcher = DEFAULT_DISPATCHER_FACTORY(effects, settings)
    argv = [*(tokens or []), *ctx.args]
    try:
        outcome = asyncio.run(dispatcher.dispatch(argv))
    except NeverThrown as exc:
        typer.echo(f"cargo-bridge: {exc.reason}", err=True)
        raise typer.Exit(code=_ENVIRONMENT_FAILURE_EXIT)
    if outcome.has_errors:
        raise typer.Exit(code=1)
    if effects.terminal_returncode:
        raise typer.Exit(code=effects.terminal_returncode)


@app.command("lsp")
def lsp(ctx: typer.Context) -> None:
    """Serve the :Cargo command over LSP on stdio."""
    options = _options(ctx)
    if options.log_level:
        configure_logging(options.log_level)
    try:
        from cargo_bridge import server
    except ImportError as exc:
        typer.echo(
            f"the language server needs the `lsp` extra ({exc.name} is missing): "
            "pip install 'cargo-bridge[lsp]'",
            err=True,
        )
        raise typer.Exit(code=_ENVIRONMENT_FAILURE_EXIT)
    server.start()


if __name__ == "__main__":  # pragma: no cover
    app()  # pragma: no cover
