import json

import pytest
from typer.testing import CliRunner

from spirewatch.cli import app
from spirewatch.config import DetectorSettings
from spirewatch.replay import TraceStep, load_trace, replay

COMBAT = {"room_phase": "COMBAT", "room_kind": "MONSTER"}


def write_trace(path, steps):
    path.write_text("\n".join(json.dumps(step) for step in steps) + "\n", encoding="utf-8")
    return path


def test_load_trace_parses_enums_and_skips_comments(tmp_path):
    trace = tmp_path / "trace.jsonl"
    trace.write_text(
        "# recorded run\n"
        "\n"
        '{"at": 0.5, "frame": {"screen": "GRID", "is_screen_up": true}, "signals": ["turn_start"]}\n'
        '{"wait": {"condition": "VISUAL_STABLE", "target": true}}\n',
        encoding="utf-8",
    )
    steps = load_trace(trace)
    assert len(steps) == 2
    assert steps[0].frame.screen.value == "GRID"
    assert steps[0].signals == ["turn_start"]
    assert steps[1].wait.condition.value == "visual_stable"


def test_load_trace_reports_bad_lines(tmp_path):
    trace = write_trace(tmp_path / "bad.jsonl", [{"frame": {"screen": "NOWHERE"}}])
    with pytest.raises(ValueError, match="bad.jsonl:1"):
        load_trace(trace)


def test_replay_reports_combat_overlay_and_debounce():
    steps = [
        TraceStep.model_validate({"frame": COMBAT, "signals": ["turn_start"]}),
        TraceStep.model_validate({"frame": COMBAT, "signals": ["command"]}),
        TraceStep.model_validate(
            {"frame": {**COMBAT, "screen": "HAND_SELECT", "is_screen_up": True}, "signals": ["command"]}
        ),
        TraceStep.model_validate({"frame": {"screen": "COMBAT_REWARD", "is_screen_up": True}, "signals": ["command"]}),
        TraceStep.model_validate({"frame": {"screen": "COMBAT_REWARD", "is_screen_up": True}}),
    ]
    outcomes = replay(steps)
    assert [outcome.tick for outcome in outcomes] == [0, 2, 4]
    assert all(outcome.ready for outcome in outcomes)


def test_replay_visual_timeout_uses_trace_clock():
    steps = [
        TraceStep.model_validate(
            {"at": 0, "frame": {"in_dungeon": False, "loading_save": True}, "wait": {"condition": "visual_stable"}}
        ),
        TraceStep.model_validate({"at": 4, "frame": {"in_dungeon": False, "loading_save": True}}),
        TraceStep.model_validate({"at": 11, "frame": {"in_dungeon": False, "loading_save": True}}),
    ]
    outcomes = replay(steps, DetectorSettings(visual_stable_timeout_s=10))
    assert len(outcomes) == 1
    assert outcomes[0].tick == 2
    assert outcomes[0].error == "Timeout waiting for visual stability after 10 seconds"


def test_replay_include_all():
    steps = [TraceStep(), TraceStep(), TraceStep()]
    outcomes = replay(steps, include_all=True)
    assert [outcome.changed for outcome in outcomes] == [False, True, False]


def test_cli_replay_prints_outcomes(tmp_path, monkeypatch):
    monkeypatch.setenv("SPIREWATCH_HOME", str(tmp_path / "home"))
    trace = write_trace(tmp_path / "trace.jsonl", [{"frame": {}}, {"frame": {}}])
    result = CliRunner().invoke(app, ["replay", str(trace)])
    assert result.exit_code == 0, result.output
    outcomes = [json.loads(line) for line in result.stdout.splitlines() if line.startswith('{"tick"')]
    assert outcomes == [{"tick": 1, "at": 0.0, "changed": True, "ready": True, "error": None}]


def test_cli_replay_rejects_invalid_trace(tmp_path, monkeypatch):
    monkeypatch.setenv("SPIREWATCH_HOME", str(tmp_path / "home"))
    trace = tmp_path / "broken.jsonl"
    trace.write_text("{not json\n", encoding="utf-8")
    result = CliRunner().invoke(app, ["replay", str(trace)])
    assert result.exit_code == 1


def test_cli_settings_section(tmp_path, monkeypatch):
    monkeypatch.setenv("SPIREWATCH_HOME", str(tmp_path / "home"))
    result = CliRunner().invoke(app, ["settings", "detector"])
    assert result.exit_code == 0
    assert json.loads(result.stdout)["initial_gold"] == 99


def test_cli_doctor_reports_listener(tmp_path, monkeypatch):
    monkeypatch.setenv("SPIREWATCH_HOME", str(tmp_path / "home"))
    result = CliRunner().invoke(app, ["doctor"])
    assert result.exit_code == 0, result.output
    start = result.stdout.index("{")
    info = json.loads(result.stdout[start:])
    assert info["listener"]["wait"] == "none"
    assert info["listener"]["ready"] is False
