"""Runtime state containers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from spirewatch.core.game import GameView, RoomPhase, Screen


class WaitCondition(str, Enum):
    NONE = "none"
    IN_GAME = "in_game"
    IN_COMBAT = "in_combat"
    MAIN_MENU = "main_menu"
    VISUAL_STABLE = "visual_stable"

    @classmethod
    def parse(cls, name: str) -> WaitCondition:
        """Accept either the value (``in_game``) or the member name (``IN_GAME``)."""
        key = name.strip()
        try:
            return cls(key.lower())
        except ValueError:
            pass
        try:
            return cls[key.upper()]
        except KeyError:
            valid = ", ".join(member.value for member in cls)
            raise ValueError(f"unknown wait condition {name!r} (expected one of: {valid})") from None


@dataclass(slots=True)
class Snapshot:
    """Host state as of the last declared command boundary."""

    screen: Screen | None = None
    screen_up: bool = False
    phase: RoomPhase | None = None
    grid_confirm_up: bool = False
    gold: int = 99

    def capture(self, view: GameView) -> None:
        self.screen = view.screen
        self.screen_up = view.is_screen_up
        self.phase = view.room_phase
        self.gold = view.gold
        self.grid_confirm_up = view.grid_confirm_up


@dataclass(slots=True)
class ArmedWait:
    condition: WaitCondition = WaitCondition.NONE
    target: bool = False
    started_at: float | None = None

    @property
    def active(self) -> bool:
        return self.condition is not WaitCondition.NONE


@dataclass(slots=True)
class ListenerState:
    """Every flag shared by the detector, the wait engine and the boundary layer."""

    initial_gold: int = 99
    snapshot: Snapshot = field(default_factory=Snapshot)
    external_change: bool = False
    my_turn: bool = False
    blocked: bool = False
    waiting_for_command: bool = False
    presented_menu: bool = False
    wait_one_update: bool = False
    timeout: int = 0
    force_ready: bool = False
    error: str | None = None
    wait: ArmedWait = field(default_factory=ArmedWait)

    def __post_init__(self) -> None:
        self.snapshot.gold = self.initial_gold

    def reset(self) -> None:
        self.snapshot = Snapshot(gold=self.initial_gold)
        self.external_change = False
        self.my_turn = False
        self.blocked = False
        self.waiting_for_command = False
        self.presented_menu = False
        self.wait_one_update = False
        self.timeout = 0
        self.force_ready = False
        self.error = None
        self.wait = ArmedWait()
