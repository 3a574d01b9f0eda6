"""In-memory table of outstanding exchanges keyed by correlation id."""

from __future__ import annotations

import copy
import itertools
import threading
from typing import Any, Dict, List, Optional

from app.bridge.exceptions import ExchangeNotFoundException
from app.bridge.formatters import EnvelopeFormatter
from app.bridge.models import Exchange, ExchangeOptions, PendingExchange
from app.bridge.sink import ExchangeSink
from app.bridge.sweeper import TimeoutSweeper
from app.config.log import get_logger

logger = get_logger(__name__)


class CorrelationRegistry:
    """Owns creation, lookup and removal of exchanges.

    Ids come from a counter that is never rewound, so an id is not reused
    even after its exchange is deleted. Id allocation and every map mutation
    share one lock.
    """

    def __init__(self, sweeper: Optional[TimeoutSweeper] = None):
        self._sweeper = sweeper
        self._exchanges: Dict[int, Exchange] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def create(
        self,
        input: Any,
        options: ExchangeOptions,
        sink: ExchangeSink,
        formatter: EnvelopeFormatter,
        correlation_id: Optional[str] = None,
    ) -> int:
        with self._lock:
            exchange_id = next(self._ids)
        exchange = Exchange(
            id=exchange_id,
            input=copy.deepcopy(input),
            options=options,
            sink=sink,
            formatter=formatter,
            correlation_id=correlation_id,
        )

        # The deadline is armed before the exchange becomes visible to fulfillers.
        if self._sweeper is not None:
            self._sweeper.schedule(exchange)

        with self._lock:
            self._exchanges[exchange_id] = exchange

        logger.info('Exchange registered', exchange_id=exchange_id, stream=options.stream, model=options.model)
        return exchange_id

    def get(self, exchange_id: int) -> Exchange:
        with self._lock:
            exchange = self._exchanges.get(exchange_id)
        if exchange is None:
            raise ExchangeNotFoundException(exchange_id)
        return exchange

    def claim(self, exchange_id: int) -> Optional[Exchange]:
        """Remove and return the exchange; only one caller ever gets it."""
        with self._lock:
            exchange = self._exchanges.pop(exchange_id, None)
        if exchange is not None and self._sweeper is not None:
            self._sweeper.cancel(exchange)
        return exchange

    def delete(self, exchange_id: int) -> bool:
        return self.claim(exchange_id) is not None

    def drain(self) -> List[Exchange]:
        with self._lock:
            exchanges = list(self._exchanges.values())
            self._exchanges.clear()
        if self._sweeper is not None:
            for exchange in exchanges:
                self._sweeper.cancel(exchange)
        return exchanges

    def list_pending(self) -> List[PendingExchange]:
        with self._lock:
            exchanges = sorted(self._exchanges.values(), key=lambda item: item.id)
        return [exchange.snapshot() for exchange in exchanges]

    def __len__(self) -> int:
        with self._lock:
            return len(self._exchanges)

    def __contains__(self, exchange_id: object) -> bool:
        with self._lock:
            return exchange_id in self._exchanges
