"""Readiness handle for the browser-resident AI capability."""

from __future__ import annotations

import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from app.config.log import get_logger

logger = get_logger(__name__)


class ActorHandle(ABC):
    """What the bridge needs to know about the capability it cannot call directly."""

    @abstractmethod
    def is_ready(self) -> bool:
        """True when work handed to the bridge can be fulfilled."""
        pass

    @abstractmethod
    def status(self) -> Dict[str, Any]:
        pass

    def mark_fulfiller_seen(self) -> None:
        """Called each time a fulfiller polls for work."""
        pass


class BrowserSession(ActorHandle):
    """Session token registered by the signed-in browser tab.

    When `stale_after` is set, the session also requires a fulfiller poll
    within that many seconds.
    """

    def __init__(self, token: Optional[str] = None, stale_after: Optional[float] = None):
        self._token = token or None
        self.stale_after = stale_after
        self._last_poll: Optional[float] = None
        self._lock = threading.Lock()

    def set_token(self, token: str) -> None:
        with self._lock:
            self._token = token
        logger.info('Browser session token set')

    def clear(self) -> None:
        with self._lock:
            self._token = None
        logger.info('Browser session token cleared')

    def mark_fulfiller_seen(self) -> None:
        with self._lock:
            self._last_poll = time.monotonic()

    @property
    def has_token(self) -> bool:
        return self._token is not None

    def fulfiller_active(self) -> bool:
        if self.stale_after is None:
            return True
        with self._lock:
            last_poll = self._last_poll
        return last_poll is not None and time.monotonic() - last_poll <= self.stale_after

    def is_ready(self) -> bool:
        return self.has_token and self.fulfiller_active()

    def status(self) -> Dict[str, Any]:
        with self._lock:
            last_poll = self._last_poll
        return {
            'authenticated': self.has_token,
            'fulfiller_active': self.fulfiller_active(),
            'seconds_since_poll': None if last_poll is None else round(time.monotonic() - last_poll, 3),
            'ready': self.is_ready(),
        }
