"""Poll-side contract used by the independent fulfiller."""

from __future__ import annotations

from typing import List, Optional

from app.bridge.models import Chunk, ExchangeResult, PendingExchange
from app.bridge.registry import CorrelationRegistry
from app.bridge.relay import StreamingRelay
from app.config.log import get_logger
from app.session.browser import ActorHandle

logger = get_logger(__name__)


class FulfillerService:
    """Lets a fulfiller discover pending exchanges and push their output.

    Pushes for unknown or already resolved ids raise
    `ExchangeNotFoundException` and leave the registry untouched.
    """

    def __init__(self, registry: CorrelationRegistry, relay: StreamingRelay, session: Optional[ActorHandle] = None):
        self.registry = registry
        self.relay = relay
        self.session = session

    def list_pending(self) -> List[PendingExchange]:
        if self.session is not None:
            self.session.mark_fulfiller_seen()
        return self.registry.list_pending()

    def submit_chunk(self, exchange_id: int, chunk: Chunk) -> None:
        logger.debug(
            'Stream chunk received',
            exchange_id=exchange_id,
            is_first=chunk.is_first,
            is_last=chunk.is_last,
            preview=chunk.text[:50],
        )
        self.relay.relay_chunk(exchange_id, chunk)

    def submit_result(self, exchange_id: int, result: ExchangeResult) -> None:
        logger.debug('Result received', exchange_id=exchange_id, success=result.success)
        self.relay.resolve(exchange_id, result)
