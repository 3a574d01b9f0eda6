"""Tests for StreamingRelay."""

import orjson
import pytest

from app.bridge.exceptions import ExchangeNotFoundException
from app.bridge.formatters import SSE_DONE, BridgeEnvelopeFormatter
from app.bridge.models import Chunk, ExchangeOptions, ExchangeResult, ExchangeState
from app.bridge.registry import CorrelationRegistry
from app.bridge.relay import StreamingRelay
from app.bridge.sink import ExchangeSink


def _drain(sink):
    frames = []
    while not sink._queue.empty():
        frame = sink._queue.get_nowait()
        if frame is None:
            break
        frames.append(frame)
    return frames


def _events(frames):
    return [orjson.loads(frame[len(b'data: ') :]) for frame in frames if frame != SSE_DONE]


@pytest.fixture
def registry():
    return CorrelationRegistry()


@pytest.fixture
def relay(registry):
    return StreamingRelay(registry)


def _open(registry, stream):
    sink = ExchangeSink(stream)
    exchange_id = registry.create('prompt', ExchangeOptions(stream=stream), sink, BridgeEnvelopeFormatter())
    return exchange_id, sink


class TestRelayChunk:
    def test_chunks_written_in_order(self, registry, relay):
        exchange_id, sink = _open(registry, stream=True)

        relay.relay_chunk(exchange_id, Chunk(text='Hel', is_first=True))
        relay.relay_chunk(exchange_id, Chunk(text='lo'))
        assert registry.get(exchange_id).state is ExchangeState.STREAMING

        relay.relay_chunk(exchange_id, Chunk(text='!', is_last=True))

        frames = _drain(sink)
        assert frames[-1] == SSE_DONE
        events = _events(frames)
        assert [event['chunk']['text'] for event in events if 'chunk' in event] == ['Hel', 'lo', '!']
        assert events[-1] == {'success': True, 'isStream': True, 'isComplete': True, 'fullResponse': 'Hello!'}
        assert sink.closed
        assert exchange_id not in registry

    def test_empty_chunk_writes_nothing(self, registry, relay):
        exchange_id, sink = _open(registry, stream=True)
        relay.relay_chunk(exchange_id, Chunk(text=''))
        assert _drain(sink) == []

    def test_last_chunk_full_response_wins(self, registry, relay):
        exchange_id, sink = _open(registry, stream=True)
        relay.relay_chunk(exchange_id, Chunk(text='a'))
        relay.relay_chunk(exchange_id, Chunk(text='', is_last=True, full_response='abc'))

        events = _events(_drain(sink))
        assert events[-1]['fullResponse'] == 'abc'

    def test_chunk_for_non_streaming_exchange_is_rejected(self, registry, relay):
        exchange_id, sink = _open(registry, stream=False)
        with pytest.raises(ExchangeNotFoundException):
            relay.relay_chunk(exchange_id, Chunk(text='x'))
        assert exchange_id in registry
        assert _drain(sink) == []

    def test_chunk_after_completion_is_rejected(self, registry, relay):
        exchange_id, sink = _open(registry, stream=True)
        relay.relay_chunk(exchange_id, Chunk(text='done', is_last=True))
        with pytest.raises(ExchangeNotFoundException):
            relay.relay_chunk(exchange_id, Chunk(text='late'))


class TestResolve:
    def test_non_streaming_success_writes_one_body(self, registry, relay):
        exchange_id, sink = _open(registry, stream=False)
        relay.resolve(exchange_id, ExchangeResult(success=True, response='Hello'))

        frames = _drain(sink)
        assert len(frames) == 1
        assert sink.status_code == 200
        assert orjson.loads(frames[0]) == {'success': True, 'isStream': False, 'response': 'Hello', 'fullResponse': 'Hello'}
        assert exchange_id not in registry

    def test_second_resolution_is_rejected(self, registry, relay):
        exchange_id, sink = _open(registry, stream=False)
        relay.resolve(exchange_id, ExchangeResult(success=True, response='first'))
        with pytest.raises(ExchangeNotFoundException):
            relay.resolve(exchange_id, ExchangeResult(success=True, response='second'))
        assert len(_drain(sink)) == 1

    def test_failure_maps_to_api_error(self, registry, relay):
        exchange_id, sink = _open(registry, stream=False)
        relay.resolve(exchange_id, ExchangeResult(success=False, error='quota exceeded'))

        body = orjson.loads(_drain(sink)[0])
        assert sink.status_code == 500
        assert body == {'success': False, 'error': 'quota exceeded', 'type': 'api_error'}

    def test_streaming_result_writes_unrelayed_suffix(self, registry, relay):
        exchange_id, sink = _open(registry, stream=True)
        relay.relay_chunk(exchange_id, Chunk(text='Hel'))
        relay.resolve(exchange_id, ExchangeResult(success=True, response='Hello'))

        events = _events(_drain(sink))
        assert [event['chunk']['text'] for event in events if 'chunk' in event] == ['Hel', 'lo']
        assert events[-1]['fullResponse'] == 'Hello'

    def test_streaming_failure_writes_error_frame(self, registry, relay):
        exchange_id, sink = _open(registry, stream=True)
        relay.relay_chunk(exchange_id, Chunk(text='partial'))
        relay.resolve(exchange_id, ExchangeResult(success=False, error='boom'))

        frames = _drain(sink)
        assert _events(frames)[-1] == {'success': False, 'error': 'boom', 'type': 'api_error'}
        assert sink.closed


class TestExpireAndAbort:
    def test_expire_non_streaming_writes_408(self, registry, relay):
        exchange_id, sink = _open(registry, stream=False)
        exchange = registry.get(exchange_id)
        relay.expire(exchange_id)

        body = orjson.loads(_drain(sink)[0])
        assert sink.status_code == 408
        assert body['type'] == 'timeout'
        assert exchange.state is ExchangeState.TIMED_OUT
        assert exchange.state.is_terminal
        assert exchange_id not in registry

    def test_expire_after_resolution_is_noop(self, registry, relay):
        exchange_id, sink = _open(registry, stream=False)
        relay.resolve(exchange_id, ExchangeResult(success=True, response='ok'))
        relay.expire(exchange_id)
        assert len(_drain(sink)) == 1
        assert sink.status_code == 200

    def test_abort_all_fails_everything(self, registry, relay):
        _, plain = _open(registry, stream=False)
        _, streaming = _open(registry, stream=True)

        assert relay.abort_all('Server shutting down') == 2
        assert len(registry) == 0
        assert orjson.loads(_drain(plain)[0])['error'] == 'Server shutting down'
        assert _events(_drain(streaming))[0]['type'] == 'api_error'

    def test_disconnected_caller_does_not_block_resolution(self, registry, relay):
        exchange_id, sink = _open(registry, stream=True)
        sink.disconnect()

        relay.relay_chunk(exchange_id, Chunk(text='ignored'))
        relay.resolve(exchange_id, ExchangeResult(success=True, response='ignored'))

        assert exchange_id not in registry
