from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

from cargo_bridge.server_core.command_contract import MessageLevel


@runtime_checkable
class CommandEffects(Protocol):
    """Host boundary used by command dispatch.

    Every method is one-way: dispatch never inspects a return value, so a host
    can deliver these asynchronously.

    ``open_terminal`` receives the escaped display line for editor terminals
    and the raw tokens for hosts that spawn cargo directly.
    """

    def notify(self, message: str, level: MessageLevel) -> None: ...

    def reload_workspace(self) -> None: ...

    def open_terminal(self, command_line: str, args: Sequence[str]) -> None: ...
