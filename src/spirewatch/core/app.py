"""spirewatch composition root."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import IO

from spirewatch.config import SpirewatchSettings
from spirewatch.core.events import EventBus
from spirewatch.core.listener import GameStateListener
from spirewatch.core.waits import Clock
from spirewatch.logging import get_logger
from spirewatch.utils.process import StreamRelay


@dataclass(slots=True)
class SpirewatchContext:
    settings: SpirewatchSettings
    events: EventBus
    listener: GameStateListener

    def relay(self, stream: IO[str] | IO[bytes]) -> StreamRelay:
        """Build a relay for a child process stream using the configured prefix."""
        return StreamRelay(stream, prefix=self.settings.relay.prefix)


def build_context(settings: SpirewatchSettings, clock: Clock = time.monotonic) -> SpirewatchContext:
    events = EventBus()
    listener = GameStateListener(settings.detector, events, clock)

    logger = get_logger("bootstrap")
    logger.info(
        "Listener ready (visual timeout {}s, wait epsilon {})",
        settings.detector.visual_stable_timeout_s,
        settings.detector.wait_timer_epsilon,
    )

    return SpirewatchContext(settings=settings, events=events, listener=listener)
