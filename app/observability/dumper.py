"""Per-exchange request/response dumps for debugging."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, BinaryIO, Dict, List, Optional

import orjson
from fastapi import Request

from app.config.log import get_logger
from app.config.models import ConfigModel
from app.context import get_correlation_id

logger = get_logger(__name__)


class HeaderSanitizer:
    """Redact sensitive headers before writing them to disk."""

    def __init__(self, redact_headers: Optional[List[str]] = None):
        self.sensitive_headers = {'authorization', 'cookie', 'set-cookie'} | {value.lower() for value in (redact_headers or [])}

    def sanitize(self, headers: Dict[str, str]) -> Dict[str, str]:
        return {key: '***REDACTED***' if key.lower() in self.sensitive_headers else value for key, value in headers.items()}


class DumpType(Enum):
    """Artifacts captured for one caller request."""

    CALLER_HEADERS = 'caller_headers'
    CALLER_REQUEST = 'caller_request'
    RELAYED_RESPONSE = 'relayed_response'


_SUFFIXES = {
    DumpType.CALLER_HEADERS: '1_caller_headers.json',
    DumpType.CALLER_REQUEST: '2_caller_request.json',
    DumpType.RELAYED_RESPONSE: '3_relayed_response.sse',
}


@dataclass
class DumpHandles:
    """Open state for one dumped request."""

    correlation_id: str
    base_path: str
    response_file: Optional[BinaryIO] = None


class Dumper:
    """Persist sanitized caller requests and every relayed frame."""

    def __init__(self, cfg: ConfigModel):
        self.cfg = cfg
        self.sanitizer = HeaderSanitizer(cfg.redact_headers)

    @property
    def enabled(self) -> bool:
        return bool(self.cfg.dump_dir) and (self.cfg.dump_headers or self.cfg.dump_requests or self.cfg.dump_responses)

    def path_for(self, handles: DumpHandles, dump_type: DumpType) -> str:
        return f'{handles.base_path}_{_SUFFIXES[dump_type]}'

    def begin(self, request: Request, payload: Any, correlation_id: Optional[str] = None) -> DumpHandles:
        corr_id = correlation_id or get_correlation_id()
        if not self.enabled:
            return DumpHandles(correlation_id=corr_id, base_path='')

        try:
            os.makedirs(self.cfg.dump_dir, exist_ok=True)
        except OSError as exc:
            logger.warning('Dump directory unavailable', dump_dir=self.cfg.dump_dir, error=str(exc))
            return DumpHandles(correlation_id=corr_id, base_path='')

        timestamp = datetime.now(timezone.utc).strftime('%Y-%m-%dT%H-%M-%S.%fZ')
        handles = DumpHandles(correlation_id=corr_id, base_path=os.path.join(self.cfg.dump_dir, f'{timestamp}_{corr_id}'))

        if self.cfg.dump_headers:
            self._write_json(self.path_for(handles, DumpType.CALLER_HEADERS), self.sanitizer.sanitize(dict(request.headers)))
        if self.cfg.dump_requests:
            self._write_json(self.path_for(handles, DumpType.CALLER_REQUEST), payload)
        if self.cfg.dump_responses:
            try:
                handles.response_file = open(self.path_for(handles, DumpType.RELAYED_RESPONSE), 'wb')
            except OSError as exc:
                logger.warning('Could not open response dump', error=str(exc))

        return handles

    def write_response_chunk(self, handles: DumpHandles, chunk: bytes | str) -> None:
        if handles.response_file is None or not chunk:
            return
        if isinstance(chunk, str):
            chunk = chunk.encode('utf-8')
        try:
            handles.response_file.write(chunk)
            handles.response_file.flush()
        except (OSError, ValueError) as exc:
            logger.warning('Could not write response dump', error=str(exc))

    def close(self, handles: DumpHandles) -> None:
        if handles.response_file is not None:
            handles.response_file.close()
            handles.response_file = None

    def _write_json(self, path: str, data: Any) -> None:
        try:
            with open(path, 'wb') as handle:
                handle.write(orjson.dumps(data, option=orjson.OPT_INDENT_2))
        except (OSError, TypeError) as exc:
            logger.warning('Could not write dump file', path=path, error=str(exc))


__all__ = ['DumpHandles', 'DumpType', 'Dumper', 'HeaderSanitizer']
