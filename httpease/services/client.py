"""Async JSON request helper built on top of httpx."""

from __future__ import annotations

import asyncio
import re
from contextlib import asynccontextmanager
from typing import (
    Any,
    AsyncIterator,
    Callable,
    Dict,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Type,
    TypeVar,
)

import httpx
from loguru import logger

from httpease.config import Settings, get_settings
from httpease.services import codec
from httpease.services.context import Context
from httpease.services.errors import (
    HTTPError,
    InvalidBaseURLError,
    InvalidEndpointURLError,
    RequestConstructionError,
    ResponseBodyReadError,
    TransportError,
)

T = TypeVar("T")

DEFAULT_TIMEOUT = 60.0

# RFC 9110 token characters
_TOKEN = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")
_FORBIDDEN_HEADER_VALUE = re.compile(rb"[\r\n\x00]")

ClientOption = Callable[["Client"], None]
RequestOption = Callable[[httpx.Request], None]


# --- Client options ---


def with_timeout(seconds: Optional[float]) -> ClientOption:
    """Bound the wall-clock duration of every call; ``None`` or ``0`` disables it."""

    def apply(client: "Client") -> None:
        client.timeout = seconds or None

    return apply


def with_http_client(http_client: httpx.AsyncClient) -> ClientOption:
    """Use a caller-owned ``httpx.AsyncClient`` with its own timeouts."""

    def apply(client: "Client") -> None:
        client.http_client = http_client
        client.timeout = None

    return apply


def with_transport(transport: httpx.AsyncBaseTransport) -> ClientOption:
    """Route the default client through ``transport``."""

    def apply(client: "Client") -> None:
        client.http_client = None  # type: ignore[assignment]
        client.transport = transport

    return apply


def with_strict_decoding(strict: bool) -> ClientOption:
    def apply(client: "Client") -> None:
        client.strict = strict

    return apply


# --- Request options ---


def with_header(key: str, value: str) -> RequestOption:
    """Set (or overwrite) a header on the outgoing request."""

    def apply(request: httpx.Request) -> None:
        request.headers[key] = value

    return apply


def with_headers(headers: Mapping[str, str]) -> RequestOption:
    def apply(request: httpx.Request) -> None:
        request.headers.update(headers)

    return apply


def with_query(params: Mapping[str, Any]) -> RequestOption:
    """Merge query parameters into the resolved URL."""

    def apply(request: httpx.Request) -> None:
        request.url = request.url.copy_merge_params(dict(params))

    return apply


class Client:
    """Base URL plus a shared httpx transport.

    The transport may be injected and shared between clients; it is only
    closed here when this client created it.
    """

    def __init__(self, base_url: str, *options: ClientOption):
        if not base_url.endswith("/"):
            base_url += "/"
        self.base_url = base_url
        self.timeout: Optional[float] = DEFAULT_TIMEOUT
        self.strict = True
        self.default_headers: Dict[str, str] = {}
        self.http_client: httpx.AsyncClient = None  # type: ignore[assignment]
        self.transport: Optional[httpx.AsyncBaseTransport] = None

        for option in options:
            option(self)

        self._owns_http_client = self.http_client is None
        if self.http_client is None:
            self.http_client = httpx.AsyncClient(
                transport=self.transport,
                timeout=None,
                follow_redirects=True,
            )
        logger.debug(
            "httpease client initialized with base_url={base_url} timeout={timeout}",
            base_url=self.base_url,
            timeout=self.timeout,
        )

    @classmethod
    def from_settings(
        cls, settings: Optional[Settings] = None, *options: ClientOption
    ) -> "Client":
        """Create a client from environment configuration, then apply ``options``."""
        settings = settings or get_settings()
        client = cls(
            settings.base_url,
            with_timeout(settings.timeout),
            with_strict_decoding(settings.strict_decoding),
            *options,
        )
        client.default_headers.update(settings.default_headers)
        return client

    async def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_http_client:
            await self.http_client.aclose()

    async def __aenter__(self) -> "Client":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @asynccontextmanager
    async def lifespan(self) -> AsyncIterator["Client"]:
        """Async context manager to ensure resource cleanup."""
        try:
            yield self
        finally:
            await self.close()

    def resolve(self, endpoint: str) -> httpx.URL:
        """Resolve ``endpoint`` against the base URL (absolute endpoints win)."""
        try:
            base = httpx.URL(self.base_url)
        except (httpx.InvalidURL, TypeError, ValueError) as exc:
            raise InvalidBaseURLError(exc) from exc
        try:
            return base.join(httpx.URL(endpoint))
        except (httpx.InvalidURL, TypeError, ValueError) as exc:
            raise InvalidEndpointURLError(exc) from exc

    def build_request(
        self,
        method: str,
        endpoint: str,
        body: Any = None,
        options: Sequence[RequestOption] = (),
    ) -> httpx.Request:
        """Build the outgoing request without sending it."""
        url = self.resolve(endpoint)
        content = codec.marshal(body) if body is not None else None

        if not isinstance(method, str) or not _TOKEN.fullmatch(method):
            raise RequestConstructionError(ValueError(f"invalid method {method!r}"))

        headers = {"Content-Type": "application/json", **self.default_headers}
        try:
            request = self.http_client.build_request(
                method, url, content=content, headers=headers
            )
        except (httpx.InvalidURL, TypeError, ValueError) as exc:
            raise RequestConstructionError(exc) from exc

        for option in options:
            option(request)
        _check_headers(request)
        return request

    async def send(
        self, ctx: Context, request: httpx.Request
    ) -> Tuple[httpx.Response, bytes]:
        """Send ``request`` and read the whole body, honoring ``ctx``.

        The client timeout is folded into ``ctx`` so it bounds sending and
        reading together.
        """
        err = ctx.err()
        if err is not None:
            logger.warning(
                "Not sending {method} {url}: {err}",
                method=request.method,
                url=str(request.url),
                err=err,
            )
            raise err
        if self.timeout is not None:
            ctx = ctx.with_timeout(self.timeout)

        roundtrip = asyncio.create_task(self._roundtrip(request))
        waiter = asyncio.create_task(ctx.wait())
        try:
            await asyncio.wait({roundtrip, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            roundtrip.cancel()
            waiter.cancel()
            raise

        if roundtrip.done():
            waiter.cancel()
            return roundtrip.result()

        # abort the in-flight request and let it release its connection
        roundtrip.cancel()
        await asyncio.wait({roundtrip})
        err = waiter.result()
        logger.warning(
            "{method} {url} aborted: {err}",
            method=request.method,
            url=str(request.url),
            err=err,
        )
        raise err

    async def _roundtrip(self, request: httpx.Request) -> Tuple[httpx.Response, bytes]:
        logger.debug(
            "HTTP request {method} {url}", method=request.method, url=str(request.url)
        )
        try:
            response = await self.http_client.send(request, stream=True)
        except httpx.RequestError as exc:
            logger.warning(
                "{method} {url} failed: {exc!r}",
                method=request.method,
                url=str(request.url),
                exc=exc,
            )
            raise TransportError(exc) from exc

        try:
            data = await response.aread()
        except (httpx.RequestError, httpx.StreamError) as exc:
            raise ResponseBodyReadError(
                response.status_code, status_text(response), exc
            ) from exc
        finally:
            await response.aclose()

        logger.info(
            "{method} {url} -> {status}",
            method=request.method,
            url=str(request.url),
            status=response.status_code,
        )
        return response, data


def status_text(response: httpx.Response) -> str:
    """Return e.g. ``"404 Not Found"``."""
    return f"{response.status_code} {response.reason_phrase}".strip()


def _check_headers(request: httpx.Request) -> None:
    for name, value in request.headers.raw:
        if not _TOKEN.fullmatch(name.decode("latin-1")):
            raise RequestConstructionError(ValueError(f"invalid header name {name!r}"))
        if _FORBIDDEN_HEADER_VALUE.search(value):
            raise RequestConstructionError(
                ValueError(f"invalid header value for {name.decode('latin-1')!r}")
            )


# --- Request executor ---


async def execute(
    ctx: Optional[Context],
    client: Client,
    method: str,
    endpoint: str,
    body: Any = None,
    *options: RequestOption,
    response_model: Type[T],
) -> T:
    """Issue one JSON request and decode the response into ``response_model``.

    Raises exactly one :class:`~httpease.services.errors.HTTPEaseError`
    subclass on failure; :class:`HTTPError` carries the status and raw body of
    any response outside 200-299. Passing ``response_model=None`` skips
    decoding and returns ``None``.
    """
    if ctx is None:
        ctx = Context.background()
    request = client.build_request(method, endpoint, body, options)
    response, data = await client.send(ctx, request)

    if response.status_code < 200 or response.status_code >= 300:
        logger.error(
            "HTTP error {status} on {url}: {body}",
            status=response.status_code,
            url=str(request.url),
            body=data.decode("utf-8", errors="replace"),
        )
        raise HTTPError(response.status_code, status_text(response), data)

    return codec.decode(data, response_model, strict=client.strict)


async def get(
    ctx: Optional[Context],
    client: Client,
    endpoint: str,
    *options: RequestOption,
    response_model: Type[T],
) -> T:
    return await execute(
        ctx, client, "GET", endpoint, None, *options, response_model=response_model
    )


async def post(
    ctx: Optional[Context],
    client: Client,
    endpoint: str,
    body: Any,
    *options: RequestOption,
    response_model: Type[T],
) -> T:
    return await execute(
        ctx, client, "POST", endpoint, body, *options, response_model=response_model
    )


async def put(
    ctx: Optional[Context],
    client: Client,
    endpoint: str,
    body: Any,
    *options: RequestOption,
    response_model: Type[T],
) -> T:
    return await execute(
        ctx, client, "PUT", endpoint, body, *options, response_model=response_model
    )


async def delete(
    ctx: Optional[Context],
    client: Client,
    endpoint: str,
    body: Any = None,
    *options: RequestOption,
    response_model: Type[T],
) -> T:
    """DELETE, optionally with a JSON body for APIs that expect one."""
    return await execute(
        ctx, client, "DELETE", endpoint, body, *options, response_model=response_model
    )
