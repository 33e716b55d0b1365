"""Error taxonomy raised by the request executor.

Every failure of a call surfaces as exactly one :class:`HTTPEaseError`
subclass. Callers can branch on the exception type or on ``exc.kind``.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Stage of the call that failed."""

    INVALID_BASE_URL = "invalid_base_url"
    INVALID_ENDPOINT_URL = "invalid_endpoint_url"
    MARSHAL = "marshal"
    REQUEST_CONSTRUCTION = "request_construction"
    TRANSPORT = "transport"
    CANCELED = "canceled"
    DEADLINE_EXCEEDED = "deadline_exceeded"
    RESPONSE_BODY_READ = "response_body_read"
    HTTP_STATUS = "http_status"
    DECODE = "decode"


class HTTPEaseError(Exception):
    """Base class for every error raised by httpease."""

    kind: ErrorKind

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class InvalidBaseURLError(HTTPEaseError):
    """The client's base URL could not be parsed."""

    kind = ErrorKind.INVALID_BASE_URL

    def __init__(self, cause: Optional[BaseException] = None):
        super().__init__("invalid base URL", cause)


class InvalidEndpointURLError(HTTPEaseError):
    """The endpoint could not be parsed."""

    kind = ErrorKind.INVALID_ENDPOINT_URL

    def __init__(self, cause: Optional[BaseException] = None):
        super().__init__("invalid endpoint URL", cause)


class MarshalError(HTTPEaseError):
    """The request body could not be serialized to JSON."""

    kind = ErrorKind.MARSHAL

    def __init__(self, cause: Optional[BaseException] = None):
        super().__init__("error marshaling JSON", cause)


class RequestConstructionError(HTTPEaseError):
    """The request could not be built (bad method, bad parameters)."""

    kind = ErrorKind.REQUEST_CONSTRUCTION

    def __init__(self, cause: Optional[BaseException] = None):
        super().__init__("error creating request", cause)


class TransportError(HTTPEaseError):
    """Network-level failure while sending the request."""

    kind = ErrorKind.TRANSPORT

    def __init__(self, cause: Optional[BaseException] = None):
        super().__init__("error making request", cause)


class CancellationError(HTTPEaseError):
    """The call's context was cancelled or ran out of time."""

    kind = ErrorKind.CANCELED


class CanceledError(CancellationError):
    """The context was cancelled explicitly."""

    kind = ErrorKind.CANCELED

    def __init__(self) -> None:
        super().__init__("context canceled")


class DeadlineExceededError(CancellationError):
    """The context deadline or the client timeout passed."""

    kind = ErrorKind.DEADLINE_EXCEEDED

    def __init__(self) -> None:
        super().__init__("context deadline exceeded")


class ResponseBodyReadError(HTTPEaseError):
    """The response body stream could not be fully read."""

    kind = ErrorKind.RESPONSE_BODY_READ

    def __init__(
        self,
        status_code: int,
        status: str,
        cause: Optional[BaseException] = None,
    ):
        self.status_code = status_code
        self.status = status
        if 200 <= status_code < 300:
            message = "failed to read response body"
        else:
            message = (
                f"received non-2xx status ({status}), "
                "but failed to read response body"
            )
        super().__init__(message, cause)


class HTTPError(HTTPEaseError):
    """Raised when the server answers outside the 200-299 range."""

    kind = ErrorKind.HTTP_STATUS

    def __init__(self, status_code: int, status: str, body: bytes):
        self.status_code = status_code
        self.status = status
        self.body = body
        super().__init__(
            f"http error: status code {status_code}, status {status}, "
            f"body: {body.decode('utf-8', errors='replace')}"
        )

    @property
    def text(self) -> str:
        """Body decoded as UTF-8."""
        return self.body.decode("utf-8", errors="replace")


class DecodeError(HTTPEaseError):
    """The success body is not JSON or does not match the declared model."""

    kind = ErrorKind.DECODE

    def __init__(self, cause: Optional[BaseException] = None):
        super().__init__("error decoding response JSON", cause)
