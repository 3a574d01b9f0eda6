from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.config.log import get_logger
from app.context import RequestContext, generate_correlation_id, request_context_var

logger = get_logger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Creates the per-request context and echoes the correlation ID header."""

    def __init__(self, app, correlation_header: str = 'X-Correlation-ID'):
        super().__init__(app)
        self.correlation_header = correlation_header

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get(self.correlation_header) or generate_correlation_id()

        context = RequestContext(correlation_id=correlation_id, path=str(request.url.path), method=request.method)
        request.state.request_context = context

        token = request_context_var.set(context)
        try:
            response = await call_next(request)
            logger.debug('Request handled', status_code=response.status_code, **context.to_dict())
        finally:
            request_context_var.reset(token)

        response.headers[self.correlation_header] = context.correlation_id
        return response
