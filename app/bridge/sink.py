"""Caller-side response channel held open until its exchange resolves."""

from __future__ import annotations

import asyncio
from typing import AsyncIterator, Callable, Optional, Tuple

from app.bridge.exceptions import CallerDisconnectedException, SinkClosedException
from app.config.log import get_logger

logger = get_logger(__name__)

_CLOSED = None


class ExchangeSink:
    """Queue-backed channel between the relay and the caller's HTTP response.

    Writes never block. A streaming caller consumes `frames()`; a
    non-streaming caller awaits `read_body()`, which resolves once the relay
    writes the single JSON body and closes the sink.
    """

    def __init__(
        self,
        stream: bool,
        on_frame: Optional[Callable[[bytes], None]] = None,
        on_close: Optional[Callable[[], None]] = None,
    ):
        self.stream = stream
        self.status_code = 200
        self._queue: asyncio.Queue[Optional[bytes]] = asyncio.Queue()
        self._on_frame = on_frame
        self._on_close = on_close
        self._closed = False
        self._disconnected = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def disconnected(self) -> bool:
        return self._disconnected

    def write(self, frame: bytes) -> None:
        if self._closed:
            raise SinkClosedException('Sink already received its terminal frame')
        if self._disconnected:
            raise CallerDisconnectedException('Caller disconnected')

        self._queue.put_nowait(frame)
        if self._on_frame:
            self._on_frame(frame)

    def write_body(self, body: bytes, status_code: int = 200) -> None:
        """Write a complete non-streaming reply and close the sink."""
        self.status_code = status_code
        self.write(body)
        self.close()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)
        if self._on_close:
            self._on_close()

    def disconnect(self) -> None:
        """Mark the caller as gone and discard anything still queued."""
        if self._disconnected or self._closed:
            return
        self._disconnected = True
        while not self._queue.empty():
            self._queue.get_nowait()
        if self._on_close:
            self._on_close()
        logger.info('Caller disconnected before exchange resolved')

    async def frames(self) -> AsyncIterator[bytes]:
        try:
            while True:
                frame = await self._queue.get()
                if frame is _CLOSED:
                    return
                yield frame
        finally:
            if not self._closed:
                self.disconnect()

    async def read_body(self) -> Tuple[int, bytes]:
        parts = [frame async for frame in self.frames()]
        return self.status_code, b''.join(parts)
