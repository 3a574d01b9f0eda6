"""Relays fulfiller output to the caller holding an exchange open."""

from __future__ import annotations

from typing import List

import orjson

from app.bridge.exceptions import (
    BridgeException,
    CallerDisconnectedException,
    ExchangeNotFoundException,
    ExchangeTimeoutException,
    FulfillerException,
    SinkClosedException,
    get_status_code,
)
from app.bridge.models import Chunk, Exchange, ExchangeResult, ExchangeState
from app.bridge.registry import CorrelationRegistry
from app.config.log import get_logger

logger = get_logger(__name__)


class StreamingRelay:
    """Writes chunks, results and errors to exchange sinks.

    Every terminal path first claims the exchange from the registry, so at
    most one terminal write sequence reaches a sink. No await happens
    between the claim and the writes.
    """

    def __init__(self, registry: CorrelationRegistry):
        self.registry = registry

    def relay_chunk(self, exchange_id: int, chunk: Chunk) -> None:
        exchange = self.registry.get(exchange_id)
        if not exchange.options.stream:
            raise ExchangeNotFoundException(exchange_id, 'Request is not a streaming request')

        if chunk.is_last:
            exchange = self.registry.claim(exchange_id)
            if exchange is None:
                raise ExchangeNotFoundException(exchange_id)
            exchange.fragments.append(chunk.text)
            full_response = chunk.full_response if chunk.full_response is not None else exchange.relayed_text
            self._finish_stream(exchange, chunk.text, full_response)
            return

        exchange.state = ExchangeState.STREAMING
        exchange.fragments.append(chunk.text)
        if chunk.text:
            frames = exchange.formatter.chunk_frames(chunk.text, first=exchange.frames_written == 0, last=False, full_response='')
            self._write(exchange, frames)

    def resolve(self, exchange_id: int, result: ExchangeResult) -> None:
        exchange = self.registry.claim(exchange_id)
        if exchange is None:
            raise ExchangeNotFoundException(exchange_id)

        if not result.success:
            self.fail(exchange, FulfillerException(result.error or 'Fulfiller reported an unknown error', exchange.correlation_id))
            return

        full_response = result.response if result.response is not None else exchange.relayed_text
        if exchange.options.stream:
            relayed = exchange.relayed_text
            remaining = full_response[len(relayed) :] if full_response.startswith(relayed) else ''
            self._finish_stream(exchange, remaining, full_response)
            return

        exchange.state = ExchangeState.RESOLVED
        self._write_body(exchange, orjson.dumps(exchange.formatter.result_body(full_response)), 200)
        logger.info('Exchange resolved', exchange_id=exchange.id, response_chars=len(full_response))

    def expire(self, exchange_id: int) -> None:
        exchange = self.registry.claim(exchange_id)
        if exchange is None:
            logger.debug('Deadline elapsed for already resolved exchange', exchange_id=exchange_id)
            return

        logger.warning('Exchange timed out', exchange_id=exchange_id, state=exchange.state.value)
        self.fail(exchange, ExchangeTimeoutException('Request timeout - fulfiller did not respond', exchange.correlation_id), state=ExchangeState.TIMED_OUT)

    def fail(self, exchange: Exchange, exc: BridgeException, state: ExchangeState = ExchangeState.RESOLVED) -> None:
        """Write a terminal error for an exchange that has already been claimed."""
        exchange.state = state
        if exchange.options.stream:
            self._write(exchange, [exchange.formatter.error_frame(exc)])
            self._close(exchange)
        else:
            self._write_body(exchange, exchange.formatter.error_body(exc), get_status_code(exc))
        logger.info('Exchange failed', exchange_id=exchange.id, error=exc.message)

    def abort_all(self, message: str) -> int:
        exchanges = self.registry.drain()
        for exchange in exchanges:
            self.fail(exchange, BridgeException(message, exchange.correlation_id))
        if exchanges:
            logger.warning('Aborted outstanding exchanges', count=len(exchanges))
        return len(exchanges)

    def _finish_stream(self, exchange: Exchange, text: str, full_response: str) -> None:
        exchange.state = ExchangeState.RESOLVED
        frames = exchange.formatter.chunk_frames(text, first=exchange.frames_written == 0, last=True, full_response=full_response)
        self._write(exchange, frames)
        self._close(exchange)
        logger.info('Exchange stream completed', exchange_id=exchange.id, frames=exchange.frames_written)

    def _write(self, exchange: Exchange, frames: List[bytes]) -> None:
        sink = exchange.sink
        if sink.disconnected:
            return
        for frame in frames:
            try:
                sink.write(frame)
            except (CallerDisconnectedException, SinkClosedException) as exc:
                logger.info('Dropping frames for unreachable caller', exchange_id=exchange.id, reason=exc.message)
                return
            exchange.frames_written += 1

    def _write_body(self, exchange: Exchange, body: bytes, status_code: int) -> None:
        sink = exchange.sink
        if sink.disconnected:
            return
        try:
            sink.write_body(body, status_code)
        except (CallerDisconnectedException, SinkClosedException) as exc:
            logger.info('Dropping reply for unreachable caller', exchange_id=exchange.id, reason=exc.message)
            return
        exchange.frames_written += 1

    def _close(self, exchange: Exchange) -> None:
        if not exchange.sink.disconnected:
            exchange.sink.close()
