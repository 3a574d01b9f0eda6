"""Per-exchange deadlines."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Callable, Optional

from app.config.log import get_logger

if TYPE_CHECKING:
    from app.bridge.models import Exchange

logger = get_logger(__name__)


class TimeoutSweeper:
    """Arms one deadline per exchange on the running event loop.

    Expiry only invokes the bound callback with the exchange id; whether the
    exchange still exists is for the callback to decide.
    """

    def __init__(self, timeout: float):
        if timeout <= 0:
            raise ValueError('timeout must be positive')
        self.timeout = timeout
        self._callback: Optional[Callable[[int], None]] = None

    def on_expire(self, callback: Callable[[int], None]) -> None:
        self._callback = callback

    def schedule(self, exchange: Exchange) -> None:
        loop = asyncio.get_running_loop()
        exchange.timer = loop.call_later(self.timeout, self._expire, exchange.id)

    def cancel(self, exchange: Exchange) -> None:
        if exchange.timer is not None:
            exchange.timer.cancel()
            exchange.timer = None

    def _expire(self, exchange_id: int) -> None:
        if self._callback is None:
            logger.warning('Deadline elapsed with no expiry callback bound', exchange_id=exchange_id)
            return
        self._callback(exchange_id)
