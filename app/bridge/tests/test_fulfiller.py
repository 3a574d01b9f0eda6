"""Tests for FulfillerService."""

from unittest.mock import Mock

import pytest

from app.bridge.exceptions import ExchangeNotFoundException
from app.bridge.formatters import BridgeEnvelopeFormatter
from app.bridge.fulfiller import FulfillerService
from app.bridge.models import Chunk, ExchangeOptions, ExchangeResult
from app.bridge.registry import CorrelationRegistry
from app.bridge.relay import StreamingRelay
from app.bridge.sink import ExchangeSink


@pytest.fixture
def session():
    return Mock()


@pytest.fixture
def service(session):
    registry = CorrelationRegistry()
    return FulfillerService(registry, StreamingRelay(registry), session)


def test_list_pending_records_poll(service, session):
    service.registry.create('hi', ExchangeOptions(), ExchangeSink(False), BridgeEnvelopeFormatter())

    pending = service.list_pending()

    assert [item.input for item in pending] == ['hi']
    session.mark_fulfiller_seen.assert_called_once()


def test_unknown_id_has_no_side_effect(service):
    exchange_id = service.registry.create('hi', ExchangeOptions(stream=True), ExchangeSink(True), BridgeEnvelopeFormatter())

    with pytest.raises(ExchangeNotFoundException):
        service.submit_chunk(exchange_id + 100, Chunk(text='x'))
    with pytest.raises(ExchangeNotFoundException):
        service.submit_result(exchange_id + 100, ExchangeResult(success=True, response='x'))

    assert [item.id for item in service.list_pending()] == [exchange_id]
    assert service.registry.get(exchange_id).fragments == []


def test_result_removes_exchange_from_pending(service):
    exchange_id = service.registry.create('hi', ExchangeOptions(), ExchangeSink(False), BridgeEnvelopeFormatter())

    service.submit_result(exchange_id, ExchangeResult(success=True, response='done'))

    assert service.list_pending() == []
    with pytest.raises(ExchangeNotFoundException):
        service.submit_result(exchange_id, ExchangeResult(success=True, response='again'))


def test_works_without_session():
    registry = CorrelationRegistry()
    service = FulfillerService(registry, StreamingRelay(registry))
    assert service.list_pending() == []
