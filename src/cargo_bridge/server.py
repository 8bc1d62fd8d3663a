from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Callable, Mapping, Sequence
from urllib.parse import unquote, urlparse

from pygls.lsp.server import LanguageServer
from pydantic import ValidationError
from lsprotocol.types import (
    INITIALIZE,
    InitializeParams,
    MessageType,
    ShowMessageParams,
)

from cargo_bridge import __version__
from cargo_bridge.commands import command_ids
from cargo_bridge.config import resolve_settings
from cargo_bridge.invariants import never
from cargo_bridge.runtime.logging_policy import configure_logging
from cargo_bridge.schema import (
    BridgeSettings,
    CargoCommandRequest,
    DispatchResponse,
    NotificationDTO,
)
from cargo_bridge.server_core.command_contract import DispatchOutcome, MessageLevel
from cargo_bridge.server_core.command_orchestrator import CommandDispatcher

logger = logging.getLogger(__name__)

server = LanguageServer("cargo-bridge", __version__)
CARGO_COMMAND = command_ids.CARGO_COMMAND


@dataclass
class _ServerState:
    settings: BridgeSettings


_STATE = _ServerState(settings=BridgeSettings())


class LanguageServerEffects:
    """Delivers dispatch effects to the editor client.

    Messages become ``window/showMessage``; reload and terminal requests are
    custom notifications the client forwards to rust-analyzer and to a
    terminal window.
    """

    def __init__(self, ls: LanguageServer, settings: BridgeSettings) -> None:
        self._ls = ls
        self._settings = settings

    def notify(self, message: str, level: MessageLevel) -> None:
        self._ls.window_show_message(
            ShowMessageParams(type=MessageType(int(level)), message=message)
        )

    def reload_workspace(self) -> None:
        params: dict[str, str] = {"method": self._settings.reload_method}
        self._ls.protocol.notify(command_ids.RELOAD_NOTIFICATION, params)

    def open_terminal(self, command_line: str, args: Sequence[str]) -> None:
        params: dict[str, str] = {
            "commandLine": f"{self._settings.cargo_executable} {command_line}".rstrip()
        }
        self._ls.protocol.notify(command_ids.TERMINAL_NOTIFICATION, params)


def _uri_to_path(uri: str) -> Path:
    parsed = urlparse(uri)
    if parsed.scheme == "file":
        return Path(unquote(parsed.path))
    return Path(uri)


def _workspace_root(params: InitializeParams) -> Path | None:
    if params.root_uri:
        return _uri_to_path(params.root_uri)
    if params.root_path:
        return Path(params.root_path)
    return None


def _tokens_from_arguments(arguments: Sequence[object]) -> list[str]:
    if len(arguments) == 1 and isinstance(arguments[0], list):
        arguments = arguments[0]
    if len(arguments) == 1 and isinstance(arguments[0], Mapping):
        try:
            request = CargoCommandRequest.model_validate(dict(arguments[0]))
        except ValidationError as exc:
            never("invalid cargo command payload", error=str(exc))
        return list(request.tokens)
    if not all(isinstance(item, str) for item in arguments):
        never(
            "cargo command arguments must be strings",
            argument_types=[type(item).__name__ for item in arguments],
        )
    return [str(item) for item in arguments]


def _response(outcome: DispatchOutcome) -> dict:
    return DispatchResponse(
        phase=outcome.phase,
        notifications=[
            NotificationDTO(level=int(item.level), message=item.message)
            for item in outcome.notifications
        ],
    ).model_dump()


@server.feature(INITIALIZE)
def initialize(ls: LanguageServer, params: InitializeParams) -> None:
    options = params.initialization_options
    overrides = options if isinstance(options, Mapping) else None
    _STATE.settings = resolve_settings(root=_workspace_root(params), overrides=overrides)
    configure_logging(_STATE.settings.log_level)
    logger.info("cargo-bridge %s using %s", __version__, _STATE.settings.cargo_executable)


def dispatcher_for(
    ls: LanguageServer,
    settings: BridgeSettings | None = None,
) -> CommandDispatcher:
    settings = settings or _STATE.settings
    return CommandDispatcher(
        LanguageServerEffects(ls, settings),
        executable=settings.cargo_executable,
    )


@server.command(CARGO_COMMAND)
async def execute_cargo(ls: LanguageServer, *arguments: object) -> dict:
    tokens = _tokens_from_arguments(arguments)
    outcome = await dispatcher_for(ls).dispatch(tokens)
    return _response(outcome)


def start(start_fn: Callable[[], None] | None = None) -> None:
    """Start the language server on stdio."""
    (start_fn or server.start_io)()


if __name__ == "__main__":  # pragma: no cover
    start()  # pragma: no cover
