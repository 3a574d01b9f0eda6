"""Raw bridge routes: callers open exchanges, fulfillers poll and push."""

from fastapi import APIRouter, Depends, Request

from app.api.errors import fulfiller_error_response
from app.api.sse import sink_response
from app.bridge.exceptions import ExchangeNotFoundException
from app.bridge.formatters import BridgeEnvelopeFormatter
from app.bridge.schemas import BridgeCallRequest, ResultRequest, StreamChunkRequest
from app.bridge.sink import ExchangeSink
from app.config.log import get_logger
from app.context import get_request_context
from app.dependencies import get_service_container_dependency
from app.dependencies.container import ServiceContainer
from app.dependencies.dumper import get_dumper
from app.observability.dumper import Dumper

router = APIRouter(prefix='/bridge', tags=['bridge'])
logger = get_logger(__name__)


@router.post('')
async def open_exchange(
    payload: BridgeCallRequest,
    request: Request,
    service_container: ServiceContainer = Depends(get_service_container_dependency),
    dumper: Dumper = Depends(get_dumper),
):
    ctx = get_request_context()
    options = payload.options.to_options()

    handles = dumper.begin(request, payload.model_dump(), ctx.correlation_id)
    sink = ExchangeSink(
        options.stream,
        on_frame=lambda frame: dumper.write_response_chunk(handles, frame),
        on_close=lambda: dumper.close(handles),
    )
    exchange_id = service_container.registry.create(
        payload.input,
        options,
        sink,
        BridgeEnvelopeFormatter(),
        correlation_id=ctx.correlation_id,
    )
    ctx.exchange_id = exchange_id
    ctx.stream = options.stream
    ctx.downstream_model = options.model

    return await sink_response(sink)


@router.get('/pending')
async def pending(service_container: ServiceContainer = Depends(get_service_container_dependency)):
    requests = service_container.fulfiller.list_pending()
    if requests:
        logger.debug('Serving pending exchanges', count=len(requests))
    return {'requests': [item.to_dict() for item in requests]}


@router.post('/stream/{exchange_id}')
async def push_chunk(
    exchange_id: int,
    payload: StreamChunkRequest,
    service_container: ServiceContainer = Depends(get_service_container_dependency),
):
    try:
        service_container.fulfiller.submit_chunk(exchange_id, payload.to_chunk())
    except ExchangeNotFoundException as exc:
        logger.warning('Chunk for unknown exchange', exchange_id=exchange_id, reason=exc.message)
        return fulfiller_error_response(exc)
    return {'success': True}


@router.post('/result/{exchange_id}')
@router.post('/response/{exchange_id}', include_in_schema=False)
async def push_result(
    exchange_id: int,
    payload: ResultRequest,
    service_container: ServiceContainer = Depends(get_service_container_dependency),
):
    try:
        service_container.fulfiller.submit_result(exchange_id, payload.to_result())
    except ExchangeNotFoundException as exc:
        logger.warning('Result for unknown exchange', exchange_id=exchange_id, reason=exc.message)
        return fulfiller_error_response(exc)
    return {'success': True}
