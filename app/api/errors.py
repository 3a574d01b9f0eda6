"""API error mapping helpers for the HTTP routers."""

from __future__ import annotations

from fastapi.responses import ORJSONResponse

from app.bridge.exceptions import BridgeException, get_error_type, get_status_code


def error_response(exc: Exception) -> ORJSONResponse:
    """OpenAI-style error body with the status mapped from the exception."""

    message = exc.message if isinstance(exc, BridgeException) else str(exc)
    return ORJSONResponse({'error': {'type': get_error_type(exc), 'message': message}}, status_code=get_status_code(exc))


def fulfiller_error_response(exc: BridgeException) -> ORJSONResponse:
    """Error body returned to a fulfiller push; never touches other exchanges."""

    return ORJSONResponse({'success': False, 'error': exc.message, 'type': get_error_type(exc)}, status_code=get_status_code(exc))


__all__ = ['error_response', 'fulfiller_error_response']
