"""Process-wide helpers."""

from __future__ import annotations

import threading
from typing import IO

from spirewatch.logging import get_logger


class StreamRelay:
    """Forwards a child process's diagnostic stream to the log, line by line.

    The relay owns ``stream`` exclusively. It ends at end-of-stream or, once
    ``stop()`` is requested, before reading the next line; a read already
    blocked on the stream is never interrupted forcibly.
    """

    def __init__(self, stream: IO[str] | IO[bytes], prefix: str = "[subprocess]") -> None:
        self.stream = stream
        self.prefix = prefix
        self.logger = get_logger("relay")
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def stopping(self) -> bool:
        return self._stop.is_set()

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._thread = threading.Thread(target=self.run, name="stream-relay", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the relay thread; True when it has finished."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def run(self) -> None:
        try:
            while not self._stop.is_set():
                line = self.stream.readline()
                if not line:
                    break
                if isinstance(line, bytes):
                    line = line.decode("utf-8", errors="replace")
                self.logger.info("{} {}", self.prefix, line.rstrip("\r\n"))
        except (OSError, ValueError) as exc:
            if not self._stop.is_set():
                self.logger.error("Error reading from subprocess stream: {}", exc)
        self.logger.info("Subprocess stream relay finished")

    def __enter__(self) -> StreamRelay:
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        self.stop()
        self.join(timeout=1.0)
