"""Application configuration models and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field

LogLevel = Literal["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]


class AppPaths(BaseModel):
    """Resolved directories for spirewatch runtime files."""

    base_dir: Path = Field(
        default_factory=lambda: Path(os.getenv("SPIREWATCH_HOME", Path.home() / ".spirewatch"))
    )

    @property
    def logs_dir(self) -> Path:
        return self.base_dir / "logs"

    def ensure(self) -> None:
        for path in (self.base_dir, self.logs_dir):
            path.mkdir(parents=True, exist_ok=True)


class DetectorSettings(BaseModel):
    initial_gold: int = Field(default=99, ge=0)
    # Timers below this are treated as settled; they decay within a couple of ticks.
    wait_timer_epsilon: float = Field(default=0.1, ge=0.0, le=1.0)
    visual_stable_timeout_s: float = Field(default=30.0, gt=0.0, le=600.0)


class RelaySettings(BaseModel):
    prefix: str = "[subprocess]"


class LoggingSettings(BaseModel):
    level: LogLevel = "INFO"
    file_level: LogLevel = "DEBUG"


class SpirewatchSettings(BaseModel):
    app_name: str = "spirewatch"
    paths: AppPaths = Field(default_factory=AppPaths)
    detector: DetectorSettings = Field(default_factory=DetectorSettings)
    relay: RelaySettings = Field(default_factory=RelaySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def _maybe_float(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def load_settings(env_path: Path | None = None) -> SpirewatchSettings:
    """Load settings from environment variables and defaults."""

    env_file = env_path or Path('.env')
    if env_file.exists():
        load_dotenv(env_file)

    overrides: dict[str, Any] = {}

    if (epsilon := _maybe_float(os.getenv('SPIREWATCH_WAIT_EPSILON'))) is not None:
        overrides.setdefault('detector', {})['wait_timer_epsilon'] = epsilon

    if (timeout := _maybe_float(os.getenv('SPIREWATCH_VISUAL_TIMEOUT'))) is not None:
        overrides.setdefault('detector', {})['visual_stable_timeout_s'] = timeout

    if level := os.getenv('SPIREWATCH_LOG_LEVEL'):
        overrides.setdefault('logging', {})['level'] = level.upper()

    if prefix := os.getenv('SPIREWATCH_RELAY_PREFIX'):
        overrides.setdefault('relay', {})['prefix'] = prefix

    settings = SpirewatchSettings(**overrides)
    settings.paths.ensure()
    return settings
