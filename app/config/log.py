import logging
import logging.handlers
import re
from pathlib import Path
from typing import TYPE_CHECKING

import orjson
import structlog
from structlog.types import FilteringBoundLogger

from app.config.paths import get_log_dir

if TYPE_CHECKING:
    from app.config import ConfigurationService
    from app.config.models import LoggingConfig

_SIZE_MULTIPLIERS = {'B': 1, 'KB': 1024, 'MB': 1024**2, 'GB': 1024**3, 'TB': 1024**4}


def _orjson_serializer(*args, **kwargs) -> str:
    return orjson.dumps(*args, **kwargs).decode('utf-8')


def parse_file_size(value: str) -> int:
    """Parse sizes such as "10MB" into bytes, falling back to 10MB."""
    size_match = re.match(r'(\d+)\s*([KMGT]?B?)$', value.strip().upper())
    if not size_match:
        return 10 * 1024**2
    size_num = int(size_match.group(1))
    size_unit = size_match.group(2)
    if size_unit and not size_unit.endswith('B'):
        size_unit += 'B'
    return size_num * _SIZE_MULTIPLIERS.get(size_unit, _SIZE_MULTIPLIERS['MB'])


def _create_log_handlers(log_config: 'LoggingConfig', log_dir: Path) -> list:
    """Create logging handlers based on configuration."""
    handlers = []

    if log_config.console_enabled:
        formatter = structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, structlog.processors.format_exc_info, structlog.dev.ConsoleRenderer()]
        )
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    if log_config.file_enabled:
        formatter = structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.JSONRenderer(serializer=_orjson_serializer),
            ]
        )
        file_handler = logging.handlers.RotatingFileHandler(
            log_dir / 'app.log', maxBytes=parse_file_size(log_config.max_file_size), backupCount=log_config.backup_count
        )
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    return handlers


def _correlation_id_processor(logger, method_name, event_dict):
    """Add correlation ID to log events if available in context."""
    from app.context import get_correlation_id

    if 'correlation_id' not in event_dict:
        event_dict['correlation_id'] = get_correlation_id()

    return event_dict


def get_logger(name: str) -> FilteringBoundLogger:
    """Get a configured structlog logger."""
    return structlog.get_logger(name)


def configure_structlog(config_service: 'ConfigurationService') -> None:
    """Configure structlog with console + rotating JSON file output on top of stdlib logging."""
    log_config = config_service.get_config().logging
    level = getattr(logging, log_config.level.upper(), logging.INFO)

    log_dir = Path(log_config.log_file_dir) if log_config.log_file_dir else get_log_dir()
    if log_config.file_enabled:
        if log_dir.exists() and not log_dir.is_dir():
            raise ValueError(f'Log directory {log_dir} is not a directory')
        log_dir.mkdir(exist_ok=True, parents=True)

    logging.basicConfig(
        level=level,
        handlers=_create_log_handlers(log_config, log_dir),
        format='%(message)s',  # structlog will handle formatting
        force=True,
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.format_exc_info,
        structlog.processors.TimeStamper(fmt='ISO', utc=True),
        _correlation_id_processor,
        structlog.processors.UnicodeDecoder(),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
