"""Envelope formatters that turn relayed text into caller-facing frames and bodies."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List

import orjson

from app.bridge.exceptions import get_error_type

SSE_DONE = b'data: [DONE]\n\n'


def sse_frame(data: Any) -> bytes:
    """Serialize one server-sent event data frame."""
    return b'data: ' + orjson.dumps(data) + b'\n\n'


class EnvelopeFormatter(ABC):
    """Interface for the wire envelope written to an exchange's sink."""

    @abstractmethod
    def chunk_frames(self, text: str, *, first: bool, last: bool, full_response: str) -> List[bytes]:
        """Frames for one relayed fragment.

        Args:
            text: Fragment text (may be empty).
            first: No frame has been written to the caller yet.
            last: The fragment ends the stream; include the finish marker and sentinel.
            full_response: Accumulated response text, meaningful when `last` is set.
        """
        pass

    @abstractmethod
    def result_body(self, full_response: str) -> Dict[str, Any]:
        """Single JSON body for a non-streaming exchange."""
        pass

    @abstractmethod
    def error_payload(self, exc: Exception) -> Dict[str, Any]:
        """Structured error used both as a body and as an inline frame."""
        pass

    def error_frame(self, exc: Exception) -> bytes:
        return sse_frame(self.error_payload(exc))

    def error_body(self, exc: Exception) -> bytes:
        return orjson.dumps(self.error_payload(exc))


class BridgeEnvelopeFormatter(EnvelopeFormatter):
    """Envelope spoken to raw `/bridge` callers."""

    def chunk_frames(self, text: str, *, first: bool, last: bool, full_response: str) -> List[bytes]:
        frames = []
        if text:
            frames.append(sse_frame({'success': True, 'chunk': {'text': text}, 'isStream': True}))
        if last:
            frames.append(sse_frame({'success': True, 'isStream': True, 'isComplete': True, 'fullResponse': full_response}))
            frames.append(SSE_DONE)
        return frames

    def result_body(self, full_response: str) -> Dict[str, Any]:
        return {'success': True, 'isStream': False, 'response': full_response, 'fullResponse': full_response}

    def error_payload(self, exc: Exception) -> Dict[str, Any]:
        return {'success': False, 'error': str(exc), 'type': get_error_type(exc)}


__all__ = ['SSE_DONE', 'BridgeEnvelopeFormatter', 'EnvelopeFormatter', 'sse_frame']
