"""Replay recorded host ticks through a listener."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from spirewatch.config import DetectorSettings
from spirewatch.core.game import GameFrame
from spirewatch.core.listener import GameStateListener
from spirewatch.core.state import WaitCondition
from spirewatch.logging import get_logger

logger = get_logger("replay")

Signal = Literal[
    "turn_start",
    "turn_end",
    "state_change",
    "command",
    "block",
    "resume",
    "ready",
    "reset",
]


class WaitRequest(BaseModel):
    condition: WaitCondition
    target: bool = False

    @field_validator("condition", mode="before")
    @classmethod
    def _parse_condition(cls, value: object) -> object:
        if isinstance(value, str) and not isinstance(value, WaitCondition):
            return WaitCondition.parse(value)
        return value


class TraceStep(BaseModel):
    """One host tick: signals and arming happen before the frame is evaluated."""

    at: float = Field(default=0.0, ge=0.0)
    frame: GameFrame = Field(default_factory=GameFrame)
    signals: list[Signal] = Field(default_factory=list)
    timeout: int | None = Field(default=None, ge=0)
    wait: WaitRequest | None = None


class ReplayOutcome(BaseModel):
    tick: int
    at: float
    changed: bool
    ready: bool
    error: str | None = None


def load_trace(path: Path) -> list[TraceStep]:
    """Parse a JSON-lines trace; blank lines and ``#`` comments are skipped."""
    steps: list[TraceStep] = []
    with path.open("r", encoding="utf-8") as handle:
        for lineno, raw in enumerate(handle, start=1):
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            try:
                steps.append(TraceStep.model_validate(json.loads(line)))
            except (json.JSONDecodeError, ValueError) as exc:
                raise ValueError(f"{path}:{lineno}: invalid trace step: {exc}") from exc
    return steps


def _apply_signals(listener: GameStateListener, step: TraceStep) -> None:
    actions = {
        "turn_start": listener.signal_turn_start,
        "turn_end": listener.signal_turn_end,
        "state_change": listener.register_state_change,
        "command": listener.register_command_execution,
        "block": listener.block_state_update,
        "resume": listener.resume_state_update,
        "ready": listener.signal_ready_for_command,
        "reset": listener.reset,
    }
    for signal in step.signals:
        actions[signal]()
    if step.timeout is not None:
        listener.set_timeout(step.timeout)
    if step.wait is not None:
        listener.set_wait_condition(step.wait.condition, step.wait.target)


def replay(
    steps: list[TraceStep],
    settings: DetectorSettings | None = None,
    include_all: bool = False,
) -> list[ReplayOutcome]:
    """Run ``steps`` through a fresh listener whose clock follows each step's ``at``.

    Every tick the boundary layer's read is simulated with ``take_response``.
    Only ticks that declared readiness or carried an error are returned unless
    ``include_all`` is set.
    """
    now = [0.0]
    listener = GameStateListener(settings, clock=lambda: now[0])
    outcomes: list[ReplayOutcome] = []

    for index, step in enumerate(steps):
        now[0] = step.at
        _apply_signals(listener, step)
        changed = listener.tick(step.frame)
        response = listener.take_response()
        if include_all or changed or response.error is not None:
            outcomes.append(
                ReplayOutcome(
                    tick=index,
                    at=step.at,
                    changed=changed,
                    ready=response.ready,
                    error=response.error,
                )
            )

    logger.info("Replayed {} ticks, {} reported", len(steps), len(outcomes))
    return outcomes
