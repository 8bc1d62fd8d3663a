"""Exception types for cargo-bridge."""

from __future__ import annotations


class CargoBridgeError(RuntimeError):
    """Base class for errors raised by cargo-bridge itself."""


class ConfigError(CargoBridgeError):
    """Configuration could not be turned into valid settings."""


class NeverThrown(CargoBridgeError):
    """Raised when a code path assumed unreachable is reached.

    These mark environment preconditions (cargo is launchable, cargo writes
    UTF-8) rather than user errors, so they never become notifications.
    """

    def __init__(self, message: str, *, env: dict[str, object] | None = None):
        super().__init__(message)
        self.reason = message
        self.env = dict(env or {})
