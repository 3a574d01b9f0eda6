"""Request context utilities for per-request state management."""

from __future__ import annotations

import uuid
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


def generate_correlation_id() -> str:
    return uuid.uuid4().hex


@dataclass
class RequestContext:
    """Structured context data attached to each inbound request."""

    correlation_id: str = field(default_factory=generate_correlation_id)
    path: Optional[str] = None
    method: Optional[str] = None

    # Populated by the chat completions route
    original_model: Optional[str] = None
    downstream_model: Optional[str] = None

    # Exchange registered for this request, if any
    exchange_id: Optional[int] = None
    stream: Optional[bool] = None

    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self, include_none: bool = False) -> Dict[str, Any]:
        """Serialize context for structured logging."""
        result: Dict[str, Any] = {}
        for key, value in {
            'correlation_id': self.correlation_id,
            'path': self.path,
            'method': self.method,
            'original_model': self.original_model,
            'downstream_model': self.downstream_model,
            'exchange_id': self.exchange_id,
            'stream': self.stream,
        }.items():
            if include_none or value is not None:
                result[key] = value

        result.update(self.extra)
        return result


request_context_var: ContextVar[RequestContext] = ContextVar('request_context', default=RequestContext(correlation_id='-'))


def get_request_context() -> RequestContext:
    """Return the active request context."""

    return request_context_var.get()


def get_correlation_id() -> str:
    """Expose the correlation ID for log formatting helpers."""

    return request_context_var.get().correlation_id


__all__ = [
    'RequestContext',
    'generate_correlation_id',
    'get_correlation_id',
    'get_request_context',
    'request_context_var',
]
