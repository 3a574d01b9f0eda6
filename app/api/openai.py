"""OpenAI-compatible routes backed by the bridge."""

import time

from fastapi import APIRouter, Depends, Request

from app.api.errors import error_response
from app.api.sse import sink_response
from app.bridge.exceptions import ActorUnavailableException, InvalidRequestException
from app.bridge.sink import ExchangeSink
from app.config import ConfigurationService
from app.config.log import get_logger
from app.context import get_request_context
from app.dependencies import get_config_service_dependency, get_service_container_dependency
from app.dependencies.container import ServiceContainer
from app.dependencies.dumper import get_dumper
from app.observability.dumper import Dumper
from app.translator.models import ChatCompletionRequest, SessionTokenRequest

router = APIRouter(prefix='/v1', tags=['openai'])
logger = get_logger(__name__)


@router.post('/chat/completions')
async def chat_completions(
    payload: ChatCompletionRequest,
    request: Request,
    service_container: ServiceContainer = Depends(get_service_container_dependency),
    dumper: Dumper = Depends(get_dumper),
):
    ctx = get_request_context()
    ctx.original_model = payload.model

    if not service_container.session.is_ready():
        logger.warning('Rejecting completion without a browser session', session=service_container.session.status())
        return error_response(ActorUnavailableException('No browser session available. Please authenticate first.', ctx.correlation_id))

    translator = service_container.translator
    try:
        bridge_input, options = translator.to_bridge_call(payload)
    except InvalidRequestException as exc:
        return error_response(exc)

    ctx.downstream_model = options.model
    ctx.stream = options.stream

    handles = dumper.begin(request, payload.model_dump(exclude_none=True), ctx.correlation_id)
    sink = ExchangeSink(
        options.stream,
        on_frame=lambda frame: dumper.write_response_chunk(handles, frame),
        on_close=lambda: dumper.close(handles),
    )
    ctx.exchange_id = service_container.registry.create(
        bridge_input,
        options,
        sink,
        translator.formatter_for(payload),
        correlation_id=ctx.correlation_id,
    )

    return await sink_response(sink)


@router.get('/models')
async def list_models(config_service: ConfigurationService = Depends(get_config_service_dependency)):
    openai_config = config_service.get_config().openai
    created = int(time.time())
    return {
        'object': 'list',
        'data': [{'id': model, 'object': 'model', 'created': created, 'owned_by': openai_config.model_owner} for model in openai_config.advertised_models],
    }


@router.post('/auth/session')
async def set_session(payload: SessionTokenRequest, service_container: ServiceContainer = Depends(get_service_container_dependency)):
    """Register the token of the signed-in browser tab."""
    service_container.session.set_token(payload.token)
    return {'success': True, 'session': service_container.session.status()}


@router.delete('/auth/session')
async def clear_session(service_container: ServiceContainer = Depends(get_service_container_dependency)):
    service_container.session.clear()
    return {'success': True, 'session': service_container.session.status()}
