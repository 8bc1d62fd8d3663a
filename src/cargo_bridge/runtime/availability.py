from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from cargo_bridge.server_core.command_contract import MessageLevel

logger = logging.getLogger(__name__)

SpawnFn = Callable[..., Awaitable[asyncio.subprocess.Process]]
NotifyFn = Callable[[str, MessageLevel], None]


def missing_cargo_message(executable: str = "cargo") -> str:
    return f"command `{executable}` is not available, make sure to install `{executable}`"


def missing_subcommand_message(subcommand: str, executable: str = "cargo") -> str:
    return (
        f"command `{executable} {subcommand}` is not available, "
        "make sure to install `cargo-edit`"
    )


async def ensure_available(
    subcommand: str,
    notify: NotifyFn,
    *,
    executable: str = "cargo",
    spawn_fn: SpawnFn = asyncio.create_subprocess_exec,
) -> bool:
    """Probe ``<executable> help <subcommand>`` before running it.

    The calling dispatch waits for the probe to exit; the event loop keeps
    serving other requests meanwhile. On failure exactly one error-level
    notification names the missing piece: cargo itself or the cargo-edit
    extension providing ``subcommand``.
    """
    try:
        proc = await spawn_fn(
            executable,
            "help",
            subcommand,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
        )
    except OSError as exc:
        logger.debug("probe of %s failed to launch: %s", executable, exc)
        notify(missing_cargo_message(executable), MessageLevel.ERROR)
        return False
    returncode = await proc.wait()
    if returncode != 0:
        logger.debug("probe `%s help %s` exited with %s", executable, subcommand, returncode)
        notify(missing_subcommand_message(subcommand, executable), MessageLevel.ERROR)
        return False
    return True
