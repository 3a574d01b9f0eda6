"""Service container wiring the bridge, translator and browser session together."""

from __future__ import annotations

from typing import Optional

from app.bridge.fulfiller import FulfillerService
from app.bridge.registry import CorrelationRegistry
from app.bridge.relay import StreamingRelay
from app.bridge.sweeper import TimeoutSweeper
from app.config import ConfigurationService
from app.config.log import get_logger
from app.session.browser import BrowserSession
from app.translator.openai import OpenAITranslator

logger = get_logger(__name__)


class ServiceContainer:
    """Holds the process-wide bridge components built from configuration."""

    def __init__(self, config_service: Optional[ConfigurationService] = None, session: Optional[BrowserSession] = None) -> None:
        self.config_service = config_service or ConfigurationService()
        self.app_config = self.config_service.get_config()
        bridge_config = self.app_config.bridge
        openai_config = self.app_config.openai

        self.session = session or BrowserSession(token=self.app_config.session_token, stale_after=bridge_config.fulfiller_stale_after)

        self.sweeper = TimeoutSweeper(bridge_config.request_timeout)
        self.registry = CorrelationRegistry(self.sweeper)
        self.relay = StreamingRelay(self.registry)
        self.sweeper.on_expire(self.relay.expire)

        self.fulfiller = FulfillerService(self.registry, self.relay, self.session)
        self.translator = OpenAITranslator(
            model_aliases=openai_config.model_aliases,
            forward_full_conversation=openai_config.forward_full_conversation,
        )

        logger.info(
            'Service container initialized',
            request_timeout=bridge_config.request_timeout,
            model_aliases=sorted(openai_config.model_aliases),
            session_ready=self.session.is_ready(),
        )

    def shutdown(self) -> int:
        """Fail every outstanding exchange; returns how many were aborted."""
        return self.relay.abort_all('Server shutting down')


def build_service_container(config_service: ConfigurationService) -> ServiceContainer:
    return ServiceContainer(config_service)


__all__ = ['ServiceContainer', 'build_service_container']
