"""Visual-stability predicate used by the ``visual_stable`` wait condition."""

from __future__ import annotations

from spirewatch.core.game import GameMode, GameView, RoomKind
from spirewatch.logging import get_logger

logger = get_logger("visual")

DEFAULT_EPSILON = 0.1

_EVENT_KINDS = frozenset({RoomKind.EVENT, RoomKind.NEOW})


def read_fade_timer(view: GameView) -> float | None:
    """Return the host's internal fade timer, or None when it cannot be read."""
    reader = getattr(view, "read_fade_timer", None)
    if reader is None:
        return None
    try:
        return float(reader())
    except Exception as exc:
        logger.debug("Visual stability: fade timer unavailable: {}", exc)
        return None


def visual_effects_stable(view: GameView, epsilon: float = DEFAULT_EPSILON) -> bool:
    """Check that no fade, screen swap or settling timer is in flight.

    Ambient effects (particles, lighting) never stop playing, so effect lists
    are not inspected. Room and event wait-timers below ``epsilon`` count as
    settled: some rooms leave a small residual value that decays over the
    next few ticks, and requiring exactly zero would block indefinitely.
    """
    if view.mode == GameMode.SPLASH:
        logger.debug("Visual stability blocked: mode={}", view.mode)
        return False

    if view.loading_save:
        logger.debug("Visual stability blocked: loading_save=True")
        return False

    if view.in_dungeon:
        if view.is_fading_in or view.is_fading_out:
            logger.debug(
                "Visual stability blocked: is_fading_in={} is_fading_out={}",
                view.is_fading_in,
                view.is_fading_out,
            )
            return False

        fade_timer = read_fade_timer(view)
        if fade_timer is not None and fade_timer > 0:
            logger.debug("Visual stability blocked: fade_timer={}", fade_timer)
            return False

        if view.screen_swap:
            logger.debug("Visual stability blocked: screen_swap=True")
            return False

        if view.room_wait_timer > epsilon:
            logger.debug("Visual stability blocked: room_wait_timer={}", view.room_wait_timer)
            return False

        if (
            view.room_kind in _EVENT_KINDS
            and view.event_wait_timer is not None
            and view.event_wait_timer > epsilon
        ):
            logger.debug("Visual stability blocked: event_wait_timer={}", view.event_wait_timer)
            return False

    if view.screen_timer > 0:
        logger.debug("Visual stability blocked: screen_timer={}", view.screen_timer)
        return False

    logger.debug("Visual stability: all checks passed")
    return True
