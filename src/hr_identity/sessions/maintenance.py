from __future__ import annotations

import logging
import threading
from datetime import timedelta

from ..core.exceptions import StoreUnavailableError
from .model import SessionStats
from .service import SessionRegistry

logger = logging.getLogger(__name__)


class SessionMaintenance:
    """Runs ``sweep_expired`` on a background thread at a fixed interval.

    The sweep only tidies stored state; liveness checks never depend on it.
    """

    def __init__(self, registry: SessionRegistry, *, interval: timedelta):
        if interval.total_seconds() <= 0:
            raise ValueError("interval must be positive")
        self._registry = registry
        self._interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> SessionStats | None:
        try:
            swept = self._registry.sweep_expired()
            stats = self._registry.stats()
        except StoreUnavailableError:
            logger.warning("session maintenance skipped: store unavailable")
            return None
        logger.info(
            "session maintenance: swept=%d total=%d live=%d identities=%d",
            swept,
            stats.total,
            stats.live,
            stats.identities,
        )
        return stats

    def start(self) -> None:
        if self.is_running:
            logger.warning("session maintenance already running")
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="session-maintenance", daemon=True)
        self._thread.start()
        logger.info("session maintenance started (every %s)", self._interval)

    def stop(self, timeout: float | None = 5.0) -> None:
        if not self.is_running:
            return
        self._stop.set()
        self._thread.join(timeout)
        self._thread = None
        logger.info("session maintenance stopped")

    def _loop(self) -> None:
        while not self._stop.is_set():
            try:
                self.run_once()
            except Exception:
                # keep the schedule; the next tick retries
                logger.exception("session maintenance run failed")
            self._stop.wait(self._interval.total_seconds())
