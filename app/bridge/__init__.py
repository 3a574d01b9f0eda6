"""Asynchronous request/reply bridge between HTTP callers and a polling fulfiller."""

from .exceptions import (
    ActorUnavailableException,
    BridgeException,
    ExchangeNotFoundException,
    ExchangeTimeoutException,
    FulfillerException,
    InvalidRequestException,
)
from .formatters import BridgeEnvelopeFormatter, EnvelopeFormatter
from .fulfiller import FulfillerService
from .models import Chunk, Exchange, ExchangeOptions, ExchangeResult, ExchangeState, PendingExchange
from .registry import CorrelationRegistry
from .relay import StreamingRelay
from .sink import ExchangeSink
from .sweeper import TimeoutSweeper

__all__ = [
    'ActorUnavailableException',
    'BridgeEnvelopeFormatter',
    'BridgeException',
    'Chunk',
    'CorrelationRegistry',
    'EnvelopeFormatter',
    'Exchange',
    'ExchangeNotFoundException',
    'ExchangeOptions',
    'ExchangeResult',
    'ExchangeSink',
    'ExchangeState',
    'ExchangeTimeoutException',
    'FulfillerException',
    'FulfillerService',
    'InvalidRequestException',
    'PendingExchange',
    'StreamingRelay',
    'TimeoutSweeper',
]
