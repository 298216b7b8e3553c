"""Observable host state read by the detector each tick."""

from __future__ import annotations

from enum import Enum
from typing import Protocol

from pydantic import BaseModel, ConfigDict


class Screen(str, Enum):
    """Overlay identities the host can display."""

    NONE = "NONE"
    MASTER_DECK_VIEW = "MASTER_DECK_VIEW"
    GAME_DECK_VIEW = "GAME_DECK_VIEW"
    DISCARD_VIEW = "DISCARD_VIEW"
    EXHAUST_VIEW = "EXHAUST_VIEW"
    SETTINGS = "SETTINGS"
    INPUT_SETTINGS = "INPUT_SETTINGS"
    MAP = "MAP"
    FTUE = "FTUE"
    CHOOSE_ONE = "CHOOSE_ONE"
    HAND_SELECT = "HAND_SELECT"
    GRID = "GRID"
    CARD_REWARD = "CARD_REWARD"
    COMBAT_REWARD = "COMBAT_REWARD"
    BOSS_REWARD = "BOSS_REWARD"
    SHOP = "SHOP"
    DEATH = "DEATH"
    VICTORY = "VICTORY"
    UNLOCK = "UNLOCK"
    DOOR_UNLOCK = "DOOR_UNLOCK"
    CREDITS = "CREDITS"
    NO_INTERACT = "NO_INTERACT"
    NEOW_UNLOCK = "NEOW_UNLOCK"


# Overlays during which no input is accepted.
NON_INTERACTIVE_SCREENS = frozenset({Screen.DOOR_UNLOCK, Screen.NO_INTERACT})


class RoomPhase(str, Enum):
    COMBAT = "COMBAT"
    EVENT = "EVENT"
    COMPLETE = "COMPLETE"
    INCOMPLETE = "INCOMPLETE"


class RoomKind(str, Enum):
    EVENT = "EVENT"
    NEOW = "NEOW"
    HEART_VICTORY = "HEART_VICTORY"
    VICTORY = "VICTORY"
    MONSTER = "MONSTER"
    OTHER = "OTHER"


# Rooms whose event keeps animating until its own wait-timer runs out.
EVENT_ROOM_KINDS = frozenset({RoomKind.EVENT, RoomKind.NEOW, RoomKind.HEART_VICTORY})


class GameMode(str, Enum):
    CHAR_SELECT = "CHAR_SELECT"
    GAMEPLAY = "GAMEPLAY"
    DUNGEON_TRANSITION = "DUNGEON_TRANSITION"
    SPLASH = "SPLASH"


class ActionPhase(str, Enum):
    WAITING_ON_USER = "WAITING_ON_USER"
    EXECUTING_ACTIONS = "EXECUTING_ACTIONS"


class GameView(Protocol):
    """Read-only view of the host for a single tick.

    Hosts may additionally expose ``read_fade_timer() -> float``. It reads a
    field that is not part of the host's public surface, so it is optional
    and allowed to raise.
    """

    in_dungeon: bool
    screen: Screen | None
    is_screen_up: bool
    room_phase: RoomPhase | None
    room_kind: RoomKind
    event_wait_timer: float | None
    room_wait_timer: float
    is_fading_in: bool
    is_fading_out: bool
    screen_swap: bool
    action_phase: ActionPhase
    pending_pre_turn_actions: int
    pending_actions: int
    pending_cards: int
    gold: int
    end_turn_queued: bool
    grid_confirm_up: bool
    monsters_basically_dead: bool
    mode: GameMode | None
    main_menu_present: bool
    loading_save: bool
    screen_timer: float


class GameFrame(BaseModel):
    """Plain record of one tick's observable state.

    Defaults describe a settled, out-of-combat dungeon tick with no overlay.
    """

    model_config = ConfigDict(extra="forbid")

    in_dungeon: bool = True
    screen: Screen | None = Screen.NONE
    is_screen_up: bool = False
    room_phase: RoomPhase | None = RoomPhase.COMPLETE
    room_kind: RoomKind = RoomKind.OTHER
    event_wait_timer: float | None = None
    room_wait_timer: float = 0.0
    is_fading_in: bool = False
    is_fading_out: bool = False
    screen_swap: bool = False
    action_phase: ActionPhase = ActionPhase.WAITING_ON_USER
    pending_pre_turn_actions: int = 0
    pending_actions: int = 0
    pending_cards: int = 0
    gold: int = 99
    end_turn_queued: bool = False
    grid_confirm_up: bool = False
    monsters_basically_dead: bool = False
    mode: GameMode | None = GameMode.GAMEPLAY
    main_menu_present: bool = False
    loading_save: bool = False
    screen_timer: float = 0.0
    fade_timer: float | None = None

    def read_fade_timer(self) -> float:
        if self.fade_timer is None:
            raise AttributeError("fade timer is not exposed by this frame")
        return self.fade_timer


def in_combat(view: GameView) -> bool:
    return view.room_phase == RoomPhase.COMBAT


def actions_idle(view: GameView, include_pre_turn: bool = True) -> bool:
    """True when the action manager is waiting on the user with nothing queued."""
    if view.action_phase != ActionPhase.WAITING_ON_USER:
        return False
    if include_pre_turn and view.pending_pre_turn_actions:
        return False
    return not view.pending_actions and not view.pending_cards
