"""One-shot wait conditions armed by the controller."""

from __future__ import annotations

import time
from collections.abc import Callable

from spirewatch.config import DetectorSettings
from spirewatch.core.game import GameMode, GameView, in_combat
from spirewatch.core.state import ArmedWait, ListenerState, WaitCondition
from spirewatch.core.visual import visual_effects_stable
from spirewatch.logging import get_logger

Clock = Callable[[], float]


class WaitConditionEngine:
    """Polls an armed condition until it holds, then marks the state ready."""

    def __init__(
        self,
        state: ListenerState,
        settings: DetectorSettings | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self.state = state
        self.settings = settings or DetectorSettings()
        self.clock = clock
        self.logger = get_logger("waits")
        # Message raised by the most recent check, if any.
        self.raised_error: str | None = None

    @property
    def armed(self) -> bool:
        return self.state.wait.active

    def arm(self, condition: WaitCondition, target: bool = False) -> None:
        started_at = self.clock() if condition is WaitCondition.VISUAL_STABLE else None
        self.state.wait = ArmedWait(condition=condition, target=target, started_at=started_at)
        self.state.waiting_for_command = False
        self.logger.info("Waiting for {} (target={})", condition.value, target)

    def clear(self) -> None:
        self.state.wait = ArmedWait()

    def check(self, view: GameView) -> bool:
        """Return True on the tick the armed condition resolves."""
        self.raised_error = None
        wait = self.state.wait
        if not wait.active:
            return False

        if wait.condition is WaitCondition.IN_GAME:
            met = view.in_dungeon == wait.target
        elif wait.condition is WaitCondition.IN_COMBAT:
            if view.in_dungeon:
                met = in_combat(view) == wait.target
            else:
                met = not wait.target
        elif wait.condition is WaitCondition.MAIN_MENU:
            at_char_select = view.mode == GameMode.CHAR_SELECT and view.main_menu_present
            at_splash = view.mode == GameMode.SPLASH
            met = not view.in_dungeon and (at_char_select or at_splash)
        else:
            met = self._check_visual(view, wait)

        if not met:
            return False

        self.logger.info("Wait condition {} met", wait.condition.value)
        self.state.wait = ArmedWait()
        self.state.waiting_for_command = True
        return True

    def _check_visual(self, view: GameView, wait: ArmedWait) -> bool:
        timeout = self.settings.visual_stable_timeout_s
        if wait.started_at is not None and self.clock() - wait.started_at > timeout:
            message = f"Timeout waiting for visual stability after {timeout:g} seconds"
            self.logger.warning("{}", message)
            self.state.error = message
            self.raised_error = message
            return True
        return visual_effects_stable(view, self.settings.wait_timer_epsilon)
