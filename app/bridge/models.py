"""Exchange data model shared by the registry, relay and fulfiller interface."""

from __future__ import annotations

import asyncio
import copy
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional

if TYPE_CHECKING:
    from app.bridge.formatters import EnvelopeFormatter
    from app.bridge.sink import ExchangeSink


class ExchangeState(str, Enum):
    """Lifecycle of an exchange."""

    PENDING = 'pending'
    STREAMING = 'streaming'
    RESOLVED = 'resolved'
    TIMED_OUT = 'timed_out'

    @property
    def is_terminal(self) -> bool:
        return self in (ExchangeState.RESOLVED, ExchangeState.TIMED_OUT)


@dataclass(frozen=True, slots=True)
class ExchangeOptions:
    """Options forwarded to the fulfiller alongside the input."""

    stream: bool = False
    model: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {'stream': self.stream}
        if self.model:
            result['model'] = self.model
        return result


@dataclass(slots=True)
class Chunk:
    """One text fragment pushed by a fulfiller for a streaming exchange."""

    text: str = ''
    is_first: bool = False
    is_last: bool = False
    full_response: Optional[str] = None


@dataclass(slots=True)
class ExchangeResult:
    """Terminal outcome pushed by a fulfiller."""

    success: bool
    response: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> 'ExchangeResult':
        """Accept both the `response` and `fullResponse` spellings."""

        response = payload.get('response')
        if response is None:
            response = payload.get('fullResponse')
        error = payload.get('error')
        return cls(
            success=bool(payload.get('success', error is None)),
            response=None if response is None else str(response),
            error=None if error is None else str(error),
        )


@dataclass(frozen=True, slots=True)
class PendingExchange:
    """Point-in-time view of an exchange handed to fulfillers."""

    id: int
    input: Any
    options: ExchangeOptions
    created_at: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'input': self.input,
            'options': self.options.to_dict(),
            'timestamp': int(self.created_at * 1000),
        }


@dataclass(slots=True)
class Exchange:
    """An outstanding request waiting for a fulfiller."""

    id: int
    input: Any
    options: ExchangeOptions
    sink: 'ExchangeSink'
    formatter: 'EnvelopeFormatter'
    correlation_id: Optional[str] = None
    created_at: float = field(default_factory=time.time)
    state: ExchangeState = ExchangeState.PENDING
    timer: Optional[asyncio.TimerHandle] = None
    fragments: List[str] = field(default_factory=list)
    frames_written: int = 0

    @property
    def relayed_text(self) -> str:
        return ''.join(self.fragments)

    def snapshot(self) -> PendingExchange:
        return PendingExchange(id=self.id, input=copy.deepcopy(self.input), options=self.options, created_at=self.created_at)
