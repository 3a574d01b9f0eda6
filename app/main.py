import logging
from contextlib import asynccontextmanager
from pprint import pprint
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from app.api.bridge import router as bridge_router
from app.api.errors import error_response
from app.api.health import router as health_router
from app.api.openai import router as openai_router
from app.bridge.exceptions import BridgeException
from app.config import ConfigurationService, setup_config
from app.config.log import configure_structlog, get_logger
from app.dependencies.container import build_service_container
from app.dependencies.dumper import get_dumper
from app.middlewares.request_context import RequestContextMiddleware

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info('Bridge started', pending=len(app.state.service_container.registry))
    try:
        yield
    finally:
        aborted = app.state.service_container.shutdown()
        logger.info('Bridge stopped', aborted=aborted)


def create_app(config_service: Optional[ConfigurationService] = None) -> FastAPI:
    """Application factory for creating FastAPI instances.

    Args:
        config_service: Optional configuration service. If None, the user
            config directory is set up and the default config is loaded.

    Returns:
        Configured FastAPI application instance.
    """
    if config_service is None:
        # Set up user config directory and file on startup
        setup_config()
        config_service = ConfigurationService()
    config = config_service.get_config()

    # Configure structured logging
    configure_structlog(config_service)

    service_container = build_service_container(config_service)

    app = FastAPI(title='browser-bridge', version='0.1.0', lifespan=lifespan)

    # Store dependencies in app state
    app.state.config = config
    app.state.config_service = config_service
    app.state.service_container = service_container

    # Configure logging levels
    for k in logging.root.manager.loggerDict.keys():
        if any(k.startswith(v) for v in {'fastapi', 'uvicorn', 'httpx', 'httpcore'}):
            logging.getLogger(k).setLevel('INFO')

    # Register routers
    app.include_router(health_router, tags=['health'])
    app.include_router(openai_router)
    app.include_router(bridge_router)

    # Add middlewares (executed LIFO)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_allow_origins,
        allow_credentials=True,
        allow_methods=['GET', 'POST', 'DELETE', 'OPTIONS'],
        allow_headers=['*'],
    )
    app.add_middleware(RequestContextMiddleware)

    # Add exception handlers
    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError):
        payload = exc.body
        if isinstance(payload, bytes):
            payload = payload.decode('utf-8', errors='replace')

        dumper = get_dumper(request.app.state.config_service)
        handles = dumper.begin(request=request, payload=payload)
        logger.debug('validation error', path=request.url.path)
        try:
            error_msg = f'request validation error: {str(exc.errors())}'
            dumper.write_response_chunk(handles, error_msg)
            return ORJSONResponse(status_code=400, content={'error': {'type': 'invalid_request_error', 'message': error_msg}})
        finally:
            dumper.close(handles)

    @app.exception_handler(BridgeException)
    async def bridge_exception_handler(request: Request, exc: BridgeException):
        logger.warning('Bridge error', error=exc.message, error_type=type(exc).__name__)
        return error_response(exc)

    # Print config in dev mode
    if config.dev:
        pprint(config.model_dump())

    return app


def main() -> None:
    import uvicorn

    setup_config()
    config = ConfigurationService().get_config()

    uvicorn.run(
        'app.main:create_app',
        factory=True,
        host=config.host,
        port=config.port,
        reload=config.dev,
    )


if __name__ == '__main__':
    main()
