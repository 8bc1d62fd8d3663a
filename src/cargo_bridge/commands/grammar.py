"""Grammar of the editor ``:Cargo`` command.

``parse`` maps every token sequence to exactly one command value or a
``ParseError``. Unknown verbs are never rejected; they become ``Other`` and
are proxied to cargo untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Sequence, TypeAlias

from cargo_bridge.exceptions import CargoBridgeError

logger = logging.getLogger(__name__)

BIN_NAME = ":Cargo"
HELP_VERB = "help"


@dataclass(frozen=True)
class Add:
    args: tuple[str, ...] = ()


@dataclass(frozen=True)
class Remove:
    crate: str


@dataclass(frozen=True)
class Reload:
    pass


@dataclass(frozen=True)
class Other:
    args: tuple[str, ...] = ()


Command: TypeAlias = Add | Remove | Reload | Other


class ParseError(CargoBridgeError):
    """An invocation that did not match the grammar.

    ``help_requested`` distinguishes an explicit ``help`` request (reported at
    informational level) from malformed input (reported as an error).
    """

    def __init__(self, message: str, *, help_requested: bool = False) -> None:
        super().__init__(message)
        self.message = message
        self.help_requested = help_requested

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParseError):
            return NotImplemented
        return (self.message, self.help_requested) == (
            other.message,
            other.help_requested,
        )

    def __hash__(self) -> int:
        return hash((self.message, self.help_requested))

    def __repr__(self) -> str:
        return f"ParseError({self.message!r}, help_requested={self.help_requested})"


@dataclass(frozen=True)
class _VerbSpec:
    name: str
    usage: str
    about: str
    aliases: tuple[str, ...] = ()


_VERBS: tuple[_VerbSpec, ...] = (
    _VerbSpec(
        name="add",
        usage=f"{BIN_NAME} add [ARGS]...",
        about="Add dependencies to the manifest (runs `cargo add`)",
    ),
    _VerbSpec(
        name="reload",
        usage=f"{BIN_NAME} reload",
        about="Ask the language server to reload the workspace",
    ),
    _VerbSpec(
        name="remove",
        usage=f"{BIN_NAME} remove <crate>",
        about="Remove a dependency from the manifest (runs `cargo rm`)",
        aliases=("rm",),
    ),
)

_VERB_BY_TOKEN: dict[str, _VerbSpec] = {
    token: entry for entry in _VERBS for token in (entry.name, *entry.aliases)
}

_ROOT_USAGE = f"{BIN_NAME} <COMMAND>"


def usage_text(verb: str | None = None) -> str:
    entry = _VERB_BY_TOKEN.get(verb) if verb is not None else None
    if entry is not None:
        lines = [entry.about, "", f"Usage: {entry.usage}"]
        if entry.aliases:
            lines.extend(["", f"Aliases: {', '.join(entry.aliases)}"])
        return "\n".join(lines)
    width = max(len(name) for name in (*(entry.name for entry in _VERBS), HELP_VERB))
    lines = [f"Usage: {_ROOT_USAGE}", "", "Commands:"]
    for entry in _VERBS:
        about = entry.about
        if entry.aliases:
            about += f" [aliases: {', '.join(entry.aliases)}]"
        lines.append(f"  {entry.name.ljust(width)}  {about}")
    lines.append(
        f"  {HELP_VERB.ljust(width)}  Print this message or the help of the given subcommand"
    )
    lines.extend(["", "Any other command is passed to cargo in a terminal."])
    return "\n".join(lines)


def _is_flag(token: str) -> bool:
    # A lone "-" is a value (stdin by convention), not a flag.
    return token.startswith("-") and token != "-"


def _error(what: str, *, usage: str) -> ParseError:
    return ParseError(
        f"error: {what}\n\nUsage: {usage}\n\nFor more information, try '{HELP_VERB}'."
    )


def _unexpected(token: str, *, usage: str) -> ParseError:
    return _error(f"unexpected argument '{token}' found", usage=usage)


def _parse_help(rest: Sequence[str]) -> ParseError:
    if not rest:
        return ParseError(usage_text(), help_requested=True)
    verb = rest[0]
    if verb not in _VERB_BY_TOKEN and verb != HELP_VERB:
        return _error(f"unrecognized subcommand '{verb}'", usage=_ROOT_USAGE)
    if len(rest) > 1:
        return _unexpected(rest[1], usage=f"{BIN_NAME} {HELP_VERB} [COMMAND]")
    if verb == HELP_VERB:
        return ParseError(usage_text(), help_requested=True)
    return ParseError(usage_text(verb), help_requested=True)


def _parse_remove(rest: Sequence[str], entry: _VerbSpec) -> Remove | ParseError:
    if not rest:
        return _error(
            "the following required arguments were not provided:\n  <crate>",
            usage=entry.usage,
        )
    crate = rest[0]
    if _is_flag(crate):
        return _unexpected(crate, usage=entry.usage)
    if len(rest) > 1:
        return _unexpected(rest[1], usage=entry.usage)
    return Remove(crate=crate)


def parse(tokens: Sequence[str]) -> Command | ParseError:
    """Parse raw ``:Cargo`` arguments into a command.

    Never raises; malformed input is returned as a ``ParseError``.
    """
    items = tuple(str(token) for token in tokens)
    if not items:
        return Other(args=())
    verb, rest = items[0], items[1:]
    if verb == HELP_VERB:
        result: Command | ParseError = _parse_help(rest)
    elif verb not in _VERB_BY_TOKEN:
        if _is_flag(verb):
            result = _unexpected(verb, usage=_ROOT_USAGE)
        else:
            result = Other(args=items)
    else:
        entry = _VERB_BY_TOKEN[verb]
        if entry.name == "add":
            result = Add(args=rest)
        elif entry.name == "remove":
            result = _parse_remove(rest, entry)
        elif rest:
            result = _unexpected(rest[0], usage=entry.usage)
        else:
            result = Reload()
    logger.debug("parsed %r as %r", items, result)
    return result
