"""Facade the host tick loop and the boundary layer talk to."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any

from spirewatch.config import DetectorSettings
from spirewatch.core.detector import StabilityDetector
from spirewatch.core.events import STATE_ERROR, STATE_STABLE, WAIT_SATISFIED, EventBus
from spirewatch.core.game import GameView
from spirewatch.core.state import ListenerState, WaitCondition
from spirewatch.core.waits import Clock, WaitConditionEngine
from spirewatch.logging import get_logger


@dataclass(frozen=True, slots=True)
class Response:
    ready: bool
    error: str | None = None


class GameStateListener:
    """Owns the shared flags and drives detection once per host tick.

    All public methods take the same re-entrant lock, so a controller thread
    may call into the listener while the host ticks. Readiness, the pending
    error and the armed wait condition therefore change together. Event
    handlers are invoked after the lock is released.
    """

    def __init__(
        self,
        settings: DetectorSettings | None = None,
        events: EventBus | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self.settings = settings or DetectorSettings()
        self.events = events or EventBus()
        self.state = ListenerState(initial_gold=self.settings.initial_gold)
        self.detector = StabilityDetector(self.state)
        self.waits = WaitConditionEngine(self.state, self.settings, clock)
        self.logger = get_logger("listener")
        self._lock = threading.RLock()

    # -- host-side triggers -------------------------------------------------

    def register_state_change(self) -> None:
        """Something in game logic changed state; report once it settles."""
        with self._lock:
            self.state.external_change = True
            self.state.waiting_for_command = False

    def register_command_execution(self) -> None:
        with self._lock:
            self.state.waiting_for_command = False

    def set_timeout(self, ticks: int) -> None:
        """Declare a boundary after ``ticks`` evaluations unless one happens first."""
        if ticks < 0:
            raise ValueError(f"timeout must be non-negative, got {ticks}")
        with self._lock:
            self.state.timeout = ticks

    def block_state_update(self) -> None:
        with self._lock:
            self.state.blocked = True

    def resume_state_update(self) -> None:
        with self._lock:
            self.state.blocked = False

    def signal_turn_start(self) -> None:
        with self._lock:
            self.state.my_turn = True

    def signal_turn_end(self) -> None:
        with self._lock:
            self.state.my_turn = False

    def signal_ready_for_command(self) -> None:
        """Force the next readiness read to report True, even without a detected change."""
        with self._lock:
            self.state.force_ready = True

    def reset(self) -> None:
        """Restore every flag for the start of a new run."""
        with self._lock:
            self.state.reset()
        self.logger.info("State detection reset")

    # -- wait conditions ------------------------------------------------------

    def set_wait_condition(self, condition: WaitCondition | str, target: bool = False) -> None:
        if isinstance(condition, str) and not isinstance(condition, WaitCondition):
            condition = WaitCondition.parse(condition)
        with self._lock:
            if condition is WaitCondition.NONE:
                self.waits.clear()
            else:
                self.waits.arm(condition, target)

    def clear_wait_condition(self) -> None:
        with self._lock:
            self.waits.clear()

    def is_waiting_for_condition(self) -> bool:
        with self._lock:
            return self.waits.armed

    def check_wait_condition(self, view: GameView) -> bool:
        with self._lock:
            condition = self.state.wait.condition
            met = self.waits.check(view)
            error = self.waits.raised_error
        if met:
            self.events.emit(WAIT_SATISFIED, condition)
        if error is not None:
            self.events.emit(STATE_ERROR, error)
        return met

    # -- per-tick detection ---------------------------------------------------

    def check_for_dungeon_state_change(self, view: GameView) -> bool:
        """In-session tick. Outside a session this only drops turn ownership."""
        with self._lock:
            if not view.in_dungeon:
                self.detector.leave_session()
                return False
            changed = self.detector.evaluate(view)
        if changed:
            self._announce(view)
        return changed

    def check_for_menu_state_change(self, view: GameView) -> bool:
        with self._lock:
            changed = self.detector.check_menu(view)
        if changed:
            self._announce(view)
        return changed

    def tick(self, view: GameView) -> bool:
        """Run every check for one host tick; True when readiness was declared."""
        changed = self.check_for_dungeon_state_change(view)
        if not view.in_dungeon:
            changed = self.check_for_menu_state_change(view)
        if self.check_wait_condition(view):
            changed = True
        return changed

    # -- boundary-side reads --------------------------------------------------

    def is_waiting_for_command(self) -> bool:
        with self._lock:
            if self.state.force_ready:
                self.state.force_ready = False
                return True
            return self.state.waiting_for_command

    def set_error(self, message: str) -> None:
        with self._lock:
            self.state.error = message
        self.events.emit(STATE_ERROR, message)

    def get_and_clear_error(self) -> str | None:
        with self._lock:
            error, self.state.error = self.state.error, None
            return error

    def has_error(self) -> bool:
        with self._lock:
            return self.state.error is not None

    def take_response(self) -> Response:
        """Consume the readiness read and the pending error in one step."""
        with self._lock:
            return Response(ready=self.is_waiting_for_command(), error=self.get_and_clear_error())

    def describe(self) -> dict[str, Any]:
        with self._lock:
            state = self.state
            return {
                "ready": state.waiting_for_command,
                "force_ready": state.force_ready,
                "blocked": state.blocked,
                "my_turn": state.my_turn,
                "external_change": state.external_change,
                "timeout": state.timeout,
                "wait": state.wait.condition.value,
                "error": state.error,
            }

    def _announce(self, view: GameView) -> None:
        self.logger.info("State stable; ready for command")
        self.events.emit(STATE_STABLE, view)
