"""Test utilities for building the app and driving a fake fulfiller."""

import asyncio
from typing import Any, Dict, List, Optional

import httpx
import orjson
from fastapi import FastAPI

from app.config import ConfigurationService
from app.config.models import BridgeConfig, ConfigModel, LoggingConfig
from app.main import create_app


class TestConfigFactory:
    """Factory for real (non-mock) configs suitable for tests."""

    @staticmethod
    def create_test_config(session_token: Optional[str] = 'test-session', request_timeout: float = 5.0, **overrides: Any) -> ConfigModel:
        return ConfigModel(
            host='127.0.0.1',
            port=3001,
            dev=False,
            dump_dir=None,
            session_token=session_token,
            bridge=BridgeConfig(request_timeout=request_timeout),
            logging=LoggingConfig(level='WARNING', file_enabled=False),
            **overrides,
        )


def create_test_app(session_token: Optional[str] = 'test-session', request_timeout: float = 5.0, **overrides: Any) -> FastAPI:
    config = TestConfigFactory.create_test_config(session_token=session_token, request_timeout=request_timeout, **overrides)
    return create_app(ConfigurationService(config=config))


def create_client(app: FastAPI) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url='http://testserver')


async def wait_for_pending(client: httpx.AsyncClient, count: int = 1, attempts: int = 200) -> List[Dict[str, Any]]:
    """Poll `/bridge/pending` until at least `count` exchanges are visible."""
    for _ in range(attempts):
        response = await client.get('/bridge/pending')
        requests = response.json()['requests']
        if len(requests) >= count:
            return requests
        await asyncio.sleep(0.01)
    raise AssertionError(f'expected {count} pending exchanges')


def parse_sse(body: bytes) -> List[Any]:
    """Split an event-stream body into decoded events; `[DONE]` stays a string."""
    events: List[Any] = []
    for block in body.split(b'\n\n'):
        if not block.startswith(b'data: '):
            continue
        data = block[len(b'data: ') :]
        events.append('[DONE]' if data == b'[DONE]' else orjson.loads(data))
    return events
