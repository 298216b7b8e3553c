import io

from loguru import logger

from spirewatch.config import DetectorSettings, SpirewatchSettings, load_settings
from spirewatch.core.app import build_context
from spirewatch.core.events import STATE_STABLE
from spirewatch.core.game import GameFrame


def test_build_context_wires_listener_to_bus():
    settings = SpirewatchSettings(detector=DetectorSettings(initial_gold=7))
    ctx = build_context(settings, clock=lambda: 0.0)
    assert ctx.listener.events is ctx.events
    assert ctx.listener.state.snapshot.gold == 7

    seen = []
    ctx.events.subscribe(STATE_STABLE, seen.append)
    ctx.listener.tick(GameFrame(gold=7))
    ctx.listener.tick(GameFrame(gold=7))
    assert len(seen) == 1


def test_relay_uses_configured_prefix(tmp_path, monkeypatch):
    monkeypatch.setenv("SPIREWATCH_HOME", str(tmp_path))
    monkeypatch.setenv("SPIREWATCH_RELAY_PREFIX", "[controller]")
    ctx = build_context(load_settings(tmp_path / "missing.env"))

    captured = []
    handler_id = logger.add(captured.append, format="{message}", level="INFO")
    try:
        ctx.relay(io.StringIO("collected 2 items\n")).run()
    finally:
        logger.remove(handler_id)
    assert "[controller] collected 2 items\n" in captured
