class FalError(Exception):
    """Base error for everything raised by fal_queue."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class UnauthorizedError(FalError):
    """HTTP 401."""


class ForbiddenError(FalError):
    """HTTP 403."""


class NotFoundError(FalError):
    """HTTP 404."""


class ServerError(FalError):
    """Any other non-success HTTP status."""


class DecodeError(FalError):
    """Malformed JSON in a response body or an SSE data field."""


class TransportError(FalError):
    """Connection or timeout failure below the HTTP layer."""


class ConfigurationError(FalError):
    """Missing or invalid credentials, base URLs or timeouts."""


_STATUS_ERRORS: dict[int, type[FalError]] = {
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
}


def error_for_status(status_code: int, body: str | None) -> FalError:
    error_cls = _STATUS_ERRORS.get(status_code, ServerError)
    message = f"HTTP {status_code}"
    if body:
        message += f": {body[:300]}"
    return error_cls(message, status_code=status_code, body=body)
