from fastapi import APIRouter, Depends

from app.config.log import get_logger
from app.dependencies import get_service_container_dependency
from app.dependencies.container import ServiceContainer

router = APIRouter()
log = get_logger(__name__)


@router.get('/health')
async def health(service_container: ServiceContainer = Depends(get_service_container_dependency)):
    pending = len(service_container.registry)
    log.debug('Health check ok', pending=pending)
    return {'status': 'ok', 'pending': pending, 'session': service_container.session.status()}
