"""Bridge domain exceptions."""

from typing import Optional


class BridgeException(Exception):
    """Base exception for bridge operations."""

    def __init__(self, message: str, correlation_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.correlation_id = correlation_id


class ActorUnavailableException(BridgeException):
    """No authenticated browser session is reachable."""

    pass


class InvalidRequestException(BridgeException):
    """Caller input could not be turned into an exchange."""

    pass


class ExchangeNotFoundException(BridgeException):
    """Exchange id is unknown or was already resolved."""

    def __init__(self, exchange_id: int, message: Optional[str] = None, correlation_id: Optional[str] = None):
        super().__init__(message or 'Request not found or already processed', correlation_id)
        self.exchange_id = exchange_id


class ExchangeTimeoutException(BridgeException):
    """Exchange deadline elapsed before a fulfiller resolved it."""

    pass


class FulfillerException(BridgeException):
    """Fulfiller reported a failure for the exchange."""

    pass


class SinkClosedException(BridgeException):
    """Write attempted after the sink received its terminal frame."""

    pass


class CallerDisconnectedException(BridgeException):
    """The caller holding the sink went away."""

    pass


def get_error_type(exc: Exception) -> str:
    """Map exceptions to the public error type string."""
    match exc:
        case ActorUnavailableException():
            return 'authentication_error'
        case InvalidRequestException():
            return 'invalid_request_error'
        case ExchangeNotFoundException():
            return 'not_found'
        case ExchangeTimeoutException():
            return 'timeout'
        case FulfillerException():
            return 'api_error'
        case BridgeException():
            return 'api_error'
        case _:
            return 'server_error'


def get_status_code(exc: Exception) -> int:
    """Map exceptions to the HTTP status returned to callers."""
    match exc:
        case ActorUnavailableException():
            return 401
        case InvalidRequestException():
            return 400
        case ExchangeNotFoundException():
            return 404
        case ExchangeTimeoutException():
            return 408
        case _:
            return 500
