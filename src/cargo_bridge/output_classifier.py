"""Interpretation of cargo's free-form stderr.

cargo has no machine-readable output for ``add``/``rm``; these rules follow
the ``Warning``/``Adding`` line prefixes cargo-edit prints today. The ``add``
rule is reached through ``OutputClassifier`` so another convention can be
plugged into the dispatcher.
"""

from __future__ import annotations

from typing import Protocol, Sequence

from cargo_bridge.server_core.command_contract import ClassifiedOutput

WARNING_PREFIX = "Warning"
SUMMARY_PREFIX = "Adding"


def _lines(text: str) -> list[str]:
    # Split on \n only; a lone \r or \u2028 stays inside its line.
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line.removesuffix("\r") for line in lines]


class OutputClassifier(Protocol):
    def classify(self, text: str) -> ClassifiedOutput: ...


class PrefixOutputClassifier:
    """Split successful ``cargo add`` output into warnings and a summary.

    A line starting with ``Warning`` joins the warnings block, each on its own
    line. The first line starting with ``Adding`` opens the summary, and every
    line after it is appended, space-joined, until the output ends.
    """

    def __init__(
        self,
        *,
        warning_prefix: str = WARNING_PREFIX,
        summary_prefix: str = SUMMARY_PREFIX,
    ) -> None:
        self.warning_prefix = warning_prefix
        self.summary_prefix = summary_prefix

    def classify(self, text: str) -> ClassifiedOutput:
        warnings: list[str] = []
        summary: list[str] = []
        for line in _lines(text):
            stripped = line.strip()
            if stripped.startswith(self.warning_prefix):
                warnings.append(f"\n{stripped}")
            if summary:
                summary.append(line.rstrip())
            elif stripped.startswith(self.summary_prefix):
                summary.append(stripped)
        return ClassifiedOutput(
            summary=" ".join(summary).rstrip(),
            warnings="".join(warnings),
        )


def classify_add_output(text: str) -> ClassifiedOutput:
    return PrefixOutputClassifier().classify(text)


def failure_tail(text: str) -> str:
    """Last line of failed output; cargo puts the actual cause there."""
    lines = _lines(text)
    return lines[-1].strip() if lines else ""


def remove_summary(text: str) -> str:
    return text.strip()


def terminal_command_line(args: Sequence[str]) -> str:
    """Join proxied tokens for a single-quoted terminal command fragment.

    Single quotes are escaped; backslashes pass through unchanged.
    """
    return " ".join(args).replace("'", "\\'")
