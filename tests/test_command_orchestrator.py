from __future__ import annotations

import asyncio

import pytest

from cargo_bridge.exceptions import NeverThrown
from cargo_bridge.server_core.command_contract import (
    ClassifiedOutput,
    MessageLevel,
    ProcessOutcome,
)
from cargo_bridge.server_core.command_orchestrator import CommandDispatcher


def _gate(result: bool, calls: list[str] | None = None, message: str = "missing"):
    async def _fn(subcommand, notify):
        if calls is not None:
            calls.append(subcommand)
        if not result:
            notify(message, MessageLevel.ERROR)
        return result

    return _fn


def _dispatcher(effects, *, gate=None, runner=None, classifier=None) -> CommandDispatcher:
    return CommandDispatcher(
        effects,
        gate_fn=gate or _gate(True),
        run_fn=runner,
        classifier=classifier,
    )


@pytest.mark.asyncio
async def test_help_request_is_informational(effects) -> None:
    outcome = await _dispatcher(effects).dispatch(["help"])
    assert outcome.phase == "reported"
    assert len(effects.notifications) == 1
    level, message = effects.notifications[0]
    assert level is MessageLevel.INFO
    assert "Usage: :Cargo" in message
    assert not outcome.has_errors


@pytest.mark.asyncio
async def test_parse_error_is_reported_once(effects) -> None:
    gate_calls: list[str] = []
    outcome = await _dispatcher(effects, gate=_gate(True, gate_calls)).dispatch(
        ["remove", "a", "b"]
    )
    assert outcome.phase == "reported"
    assert outcome.has_errors
    assert [level for level, _ in effects.notifications] == [MessageLevel.ERROR]
    assert gate_calls == []


@pytest.mark.asyncio
async def test_reload_skips_gate_and_process(effects, scripted_runner) -> None:
    gate_calls: list[str] = []
    runner = scripted_runner(True, "")
    outcome = await _dispatcher(
        effects, gate=_gate(True, gate_calls), runner=runner
    ).dispatch(["reload"])
    assert outcome.phase == "reloaded"
    assert effects.events == [("reload", None)]
    assert gate_calls == []
    assert runner.calls == []


@pytest.mark.asyncio
async def test_other_hands_off_to_terminal(effects, scripted_runner) -> None:
    gate_calls: list[str] = []
    runner = scripted_runner(True, "")
    outcome = await _dispatcher(
        effects, gate=_gate(True, gate_calls), runner=runner
    ).dispatch(["build", "--release"])
    assert outcome.phase == "terminal"
    assert effects.events == [("terminal", "build --release")]
    assert gate_calls == []
    assert runner.calls == []


@pytest.mark.asyncio
async def test_other_escapes_single_quotes(effects) -> None:
    await _dispatcher(effects).dispatch(["run", "--", "don't"])
    assert effects.events == [("terminal", "run -- don\\'t")]
    assert effects.terminal_args == [["run", "--", "don't"]]


@pytest.mark.asyncio
async def test_other_passes_raw_tokens_alongside_display_line(effects) -> None:
    await _dispatcher(effects).dispatch(["run", "--", "a b", "$HOME"])
    assert effects.events == [("terminal", "run -- a b $HOME")]
    assert effects.terminal_args == [["run", "--", "a b", "$HOME"]]


@pytest.mark.asyncio
async def test_gate_failure_stops_add(effects, scripted_runner) -> None:
    gate_calls: list[str] = []
    runner = scripted_runner(True, "Adding serde")
    outcome = await _dispatcher(
        effects, gate=_gate(False, gate_calls, "no cargo-edit"), runner=runner
    ).dispatch(["add", "serde"])
    assert outcome.phase == "gated"
    assert gate_calls == ["add"]
    assert runner.calls == []
    assert effects.events == [("notify", (MessageLevel.ERROR, "no cargo-edit"))]


@pytest.mark.asyncio
async def test_gate_failure_stops_remove(effects, scripted_runner) -> None:
    gate_calls: list[str] = []
    runner = scripted_runner(True, "")
    outcome = await _dispatcher(
        effects, gate=_gate(False, gate_calls), runner=runner
    ).dispatch(["rm", "serde"])
    assert outcome.phase == "gated"
    assert gate_calls == ["rm"]
    assert runner.calls == []
    assert effects.kinds == ["notify"]


@pytest.mark.asyncio
async def test_add_success_reports_warnings_reload_then_summary(
    effects, scripted_runner
) -> None:
    runner = scripted_runner(
        True,
        "    Updating index\nWarning: foo is deprecated\n      Adding foo v1.0\n  Features: default\n",
    )
    outcome = await _dispatcher(effects, runner=runner).dispatch(
        ["add", "foo", "--features", "default"]
    )
    assert runner.calls == [["add", "foo", "--features", "default"]]
    assert outcome.phase == "reported"
    assert effects.events == [
        ("notify", (MessageLevel.WARNING, "\nWarning: foo is deprecated")),
        ("reload", None),
        ("notify", (MessageLevel.INFO, "Adding foo v1.0   Features: default")),
    ]


@pytest.mark.asyncio
async def test_add_success_without_summary_still_notifies(effects, scripted_runner) -> None:
    runner = scripted_runner(True, "Updating index\n")
    await _dispatcher(effects, runner=runner).dispatch(["add", "foo"])
    assert effects.events == [
        ("reload", None),
        ("notify", (MessageLevel.INFO, "")),
    ]


@pytest.mark.parametrize("tokens", [["add", "foo"], ["remove", "foo"]])
@pytest.mark.asyncio
async def test_failure_reports_last_line_without_reload(
    effects, scripted_runner, tokens
) -> None:
    runner = scripted_runner(False, "line1\nline2\nActual cause")
    outcome = await _dispatcher(effects, runner=runner).dispatch(tokens)
    assert outcome.has_errors
    assert effects.events == [("notify", (MessageLevel.ERROR, "Actual cause"))]


@pytest.mark.asyncio
async def test_remove_success_reloads_and_reports_trimmed_text(
    effects, scripted_runner
) -> None:
    class _ExplodingClassifier:
        def classify(self, text: str) -> ClassifiedOutput:
            raise AssertionError("remove output must not be classified")

    runner = scripted_runner(True, "    Removing serde from dependencies\n")
    outcome = await _dispatcher(
        effects, runner=runner, classifier=_ExplodingClassifier()
    ).dispatch(["remove", "serde"])
    assert runner.calls == [["rm", "serde"]]
    assert outcome.phase == "reported"
    assert effects.events == [
        ("reload", None),
        ("notify", (MessageLevel.INFO, "Removing serde from dependencies")),
    ]


@pytest.mark.asyncio
async def test_injected_classifier_is_used_for_add(effects, scripted_runner) -> None:
    class _Fixed:
        def classify(self, text: str) -> ClassifiedOutput:
            return ClassifiedOutput(summary=f"classified {len(text)}", warnings="")

    runner = scripted_runner(True, "abc")
    await _dispatcher(effects, runner=runner, classifier=_Fixed()).dispatch(["add"])
    assert effects.notifications == [(MessageLevel.INFO, "classified 3")]


@pytest.mark.asyncio
async def test_outcome_records_notifications(effects, scripted_runner) -> None:
    runner = scripted_runner(True, "Warning: w\nAdding x")
    outcome = await _dispatcher(effects, runner=runner).dispatch(["add", "x"])
    assert [item.level for item in outcome.notifications] == [
        MessageLevel.WARNING,
        MessageLevel.INFO,
    ]


@pytest.mark.asyncio
async def test_environment_failure_propagates(effects) -> None:
    async def _runner(_args) -> ProcessOutcome:
        raise NeverThrown("cargo could not be launched")

    with pytest.raises(NeverThrown):
        await _dispatcher(effects, runner=_runner).dispatch(["add", "serde"])
    assert effects.events == []


@pytest.mark.asyncio
async def test_concurrent_dispatches_report_independently(effects) -> None:
    release = asyncio.Event()

    async def _runner(args) -> ProcessOutcome:
        if args[1] == "slow":
            await release.wait()
            return ProcessOutcome(succeeded=True, text="Adding slow")
        return ProcessOutcome(succeeded=True, text="Adding fast")

    dispatcher = _dispatcher(effects, runner=_runner)
    slow = asyncio.create_task(dispatcher.dispatch(["add", "slow"]))
    fast = await dispatcher.dispatch(["add", "fast"])
    release.set()
    slow_outcome = await slow
    assert [item.message for item in fast.notifications] == ["Adding fast"]
    assert [item.message for item in slow_outcome.notifications] == ["Adding slow"]
    assert effects.notifications == [
        (MessageLevel.INFO, "Adding fast"),
        (MessageLevel.INFO, "Adding slow"),
    ]


@pytest.mark.asyncio
async def test_default_gate_uses_configured_executable(effects, monkeypatch) -> None:
    from cargo_bridge.server_core import command_orchestrator

    probed: list[tuple[str, str]] = []

    async def _ensure(subcommand, notify, *, executable):
        probed.append((subcommand, executable))
        notify("missing", MessageLevel.ERROR)
        return False

    monkeypatch.setattr(command_orchestrator, "ensure_available", _ensure)
    dispatcher = CommandDispatcher(effects, executable="cargo-nightly")
    outcome = await dispatcher.dispatch(["add", "serde"])
    assert outcome.phase == "gated"
    assert probed == [("add", "cargo-nightly")]
