from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Sequence

from cargo_bridge.invariants import never
from cargo_bridge.server_core.command_contract import ProcessOutcome

logger = logging.getLogger(__name__)

SpawnFn = Callable[..., Awaitable[asyncio.subprocess.Process]]


async def run_cargo(
    args: Sequence[str],
    *,
    executable: str = "cargo",
    spawn_fn: SpawnFn = asyncio.create_subprocess_exec,
) -> ProcessOutcome:
    """Run cargo with ``args`` and wait for it without blocking the event loop.

    Only stderr is captured; cargo reports progress and errors there. Success
    is the exit status alone. A cargo that cannot be launched or that writes
    non-UTF-8 text violates the environment contract and raises ``NeverThrown``.
    """
    argv = [str(arg) for arg in args]
    try:
        proc = await spawn_fn(
            executable,
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        never("cargo could not be launched", executable=executable, error=str(exc))
    _stdout, stderr = await proc.communicate()
    try:
        text = (stderr or b"").decode("utf-8")
    except UnicodeDecodeError as exc:
        never("cargo wrote non-utf8 output", executable=executable, error=str(exc))
    logger.debug("`%s %s` exited with %s", executable, " ".join(argv), proc.returncode)
    return ProcessOutcome(succeeded=proc.returncode == 0, text=text)
