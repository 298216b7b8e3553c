"""Stability detection over the host's per-tick state."""

from __future__ import annotations

from spirewatch.core.game import (
    EVENT_ROOM_KINDS,
    NON_INTERACTIVE_SCREENS,
    GameMode,
    GameView,
    Screen,
    actions_idle,
    in_combat,
)
from spirewatch.core.state import ListenerState
from spirewatch.logging import get_logger


class StabilityDetector:
    """Decides the tick at which the host state is safe to report.

    The detector only reads the view and writes ``ListenerState``. A boundary
    is declared at most once per change: the snapshot is refreshed on every
    declared boundary and nowhere else, except for the provisional update made
    while debouncing an out-of-combat screen change.
    """

    def __init__(self, state: ListenerState) -> None:
        self.state = state
        self.logger = get_logger("detector")

    def evaluate(self, view: GameView) -> bool:
        """Run one in-session tick. Commits the snapshot when a boundary is declared."""
        changed = self._has_dungeon_state_changed(view)
        if changed:
            state = self.state
            state.external_change = False
            state.waiting_for_command = True
            state.snapshot.capture(view)
            state.timeout = 0
            self.logger.debug(
                "Boundary declared: screen={} up={} phase={}",
                view.screen,
                view.is_screen_up,
                view.room_phase,
            )
        return changed

    def leave_session(self) -> None:
        self.state.my_turn = False

    def check_menu(self, view: GameView) -> bool:
        """Report the character-select menu once per arrival."""
        state = self.state
        if state.presented_menu:
            return False
        if view.mode != GameMode.CHAR_SELECT or not view.main_menu_present:
            return False
        state.presented_menu = True
        state.external_change = False
        state.waiting_for_command = True
        self.logger.debug("Main menu reached")
        return True

    def _has_dungeon_state_changed(self, view: GameView) -> bool:
        state = self.state
        previous = state.snapshot
        if state.blocked:
            return False
        state.presented_menu = False

        screen = view.screen
        screen_up = view.is_screen_up
        phase = view.room_phase
        combat = in_combat(view)

        # Nothing that fades in or out needs input.
        if view.is_fading_in or view.is_fading_out:
            return False

        # Death can happen mid-combat, so it is checked before the busy conditions.
        if screen == Screen.DEATH and screen != previous.screen:
            return True

        if screen in NON_INTERACTIVE_SCREENS:
            return False

        if combat and (not state.my_turn or view.monsters_basically_dead) and not screen_up:
            return False

        if (
            view.room_kind in EVENT_ROOM_KINDS
            and view.event_wait_timer is not None
            and view.event_wait_timer != 0.0
        ):
            return False

        if screen != previous.screen or screen_up != previous.screen_up or phase != previous.phase:
            if combat:
                # An overlay raised in combat needs an answer right away.
                if screen_up:
                    return True
                if actions_idle(view, include_pre_turn=False):
                    return True
            else:
                # Screen transitions out of combat often trigger a second wave of
                # changes on the next tick.
                state.wait_one_update = True
                previous.screen = screen
                previous.screen_up = screen_up
                previous.phase = phase
                return False
        elif state.wait_one_update:
            state.wait_one_update = False
            return True

        # Hold off between the end-turn request and the turn actually ending.
        if combat and view.end_turn_queued:
            return False

        if (state.external_change or previous.gold != view.gold) and actions_idle(view):
            return True

        # The grid confirm overlay changes the options without touching the fields above.
        if (
            screen == Screen.GRID
            and previous.screen == Screen.GRID
            and view.grid_confirm_up != previous.grid_confirm_up
        ):
            return True

        if state.external_change and combat and screen_up:
            return True

        if state.timeout > 0:
            state.timeout -= 1
            if state.timeout == 0:
                self.logger.debug("Frame timeout elapsed")
                return True

        return False
