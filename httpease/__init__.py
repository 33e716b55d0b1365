"""Typed JSON-over-HTTP request helper."""

from .config import Settings, get_settings
from .services.client import (
    Client,
    ClientOption,
    RequestOption,
    delete,
    execute,
    get,
    post,
    put,
    with_header,
    with_headers,
    with_http_client,
    with_query,
    with_strict_decoding,
    with_timeout,
    with_transport,
)
from .services.context import Context
from .services.errors import (
    CancellationError,
    CanceledError,
    DeadlineExceededError,
    DecodeError,
    ErrorKind,
    HTTPEaseError,
    HTTPError,
    InvalidBaseURLError,
    InvalidEndpointURLError,
    MarshalError,
    RequestConstructionError,
    ResponseBodyReadError,
    TransportError,
)

__version__ = "0.1.0"

__all__ = [
    "CancellationError",
    "CanceledError",
    "Client",
    "ClientOption",
    "Context",
    "DeadlineExceededError",
    "DecodeError",
    "ErrorKind",
    "HTTPEaseError",
    "HTTPError",
    "InvalidBaseURLError",
    "InvalidEndpointURLError",
    "MarshalError",
    "RequestConstructionError",
    "RequestOption",
    "ResponseBodyReadError",
    "Settings",
    "TransportError",
    "delete",
    "execute",
    "get",
    "get_settings",
    "post",
    "put",
    "with_header",
    "with_headers",
    "with_http_client",
    "with_query",
    "with_strict_decoding",
    "with_timeout",
    "with_transport",
]
