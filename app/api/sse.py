"""Turns an exchange sink into the caller's HTTP response."""

from __future__ import annotations

from fastapi import Response
from fastapi.responses import StreamingResponse

from app.bridge.sink import ExchangeSink

SSE_HEADERS = {
    'Cache-Control': 'no-cache',
    'Connection': 'keep-alive',
    'X-Accel-Buffering': 'no',
}


async def sink_response(sink: ExchangeSink) -> Response:
    """Hold the caller until the exchange resolves.

    Streaming sinks become an event stream right away; non-streaming sinks
    are awaited and returned as one JSON body with the relay's status code.
    """

    if sink.stream:
        return StreamingResponse(sink.frames(), media_type='text/event-stream', headers=SSE_HEADERS)

    status_code, body = await sink.read_body()
    return Response(content=body, status_code=status_code, media_type='application/json')


__all__ = ['SSE_HEADERS', 'sink_response']
