"""cargo-bridge package root."""

from cargo_bridge.exceptions import CargoBridgeError, ConfigError, NeverThrown
from cargo_bridge.invariants import never

__all__ = ["__version__", "CargoBridgeError", "ConfigError", "NeverThrown", "never"]

__version__ = "0.1.0"
