from __future__ import annotations

# Identifiers shared by the language server, the CLI and editor clients.
CARGO_COMMAND = "cargo_bridge.cargo"

RELOAD_NOTIFICATION = "cargo_bridge/reloadWorkspace"
TERMINAL_NOTIFICATION = "cargo_bridge/openTerminal"

# Cargo subcommands provided by cargo-edit that the bridge runs natively.
ADD_SUBCOMMAND = "add"
REMOVE_SUBCOMMAND = "rm"
