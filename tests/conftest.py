import asyncio
from typing import Any, Dict, List

import httpx
import pytest
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response

from httpease import Client, with_transport

BASE_URL = "http://testserver"

SUCCESS = {"message": "success", "value": 123}


def build_app() -> FastAPI:
    """Target server used by the executor tests."""
    app = FastAPI()
    received: List[Dict[str, Any]] = []
    app.state.received = received  # type: ignore[attr-defined]

    @app.api_route("/echo", methods=["GET", "POST", "PUT", "DELETE", "PATCH"])
    async def echo(request: Request) -> Dict[str, Any]:
        raw = await request.body()
        return {
            "method": request.method,
            "url": str(request.url),
            "query": dict(request.query_params),
            "headers": dict(request.headers),
            "body": raw.decode() if raw else None,
        }

    @app.get("/notfound")
    async def notfound() -> Response:
        return Response(
            content=b'{"error": "not found"}',
            status_code=404,
            media_type="application/json",
        )

    @app.get("/plain-error")
    async def plain_error() -> PlainTextResponse:
        return PlainTextResponse("upstream exploded", status_code=502)

    @app.get("/slow")
    async def slow(delay: float = 1.0) -> Dict[str, Any]:
        await asyncio.sleep(delay)
        return SUCCESS

    @app.get("/malformed")
    async def malformed() -> Response:
        return Response(
            content=b'{"message": "success", "value": "not-an-int"}',
            media_type="application/json",
        )

    @app.get("/stringly")
    async def stringly() -> Dict[str, Any]:
        return {"message": "success", "value": "123"}

    @app.get("/not-json")
    async def not_json() -> PlainTextResponse:
        return PlainTextResponse("<html>hi</html>")

    @app.delete("/no-content")
    async def no_content() -> Response:
        return Response(status_code=204)

    @app.api_route("/{path:path}", methods=["GET", "POST", "PUT", "DELETE"])
    async def authorized(path: str, request: Request) -> Any:
        received.append({"method": request.method, "path": "/" + path})
        if request.headers.get("authorization") != "Bearer test-token":
            return PlainTextResponse(
                "missing or invalid authorization header", status_code=401
            )
        return SUCCESS

    return app


@pytest.fixture()
def app() -> FastAPI:
    return build_app()


@pytest.fixture()
def transport(app: FastAPI) -> httpx.ASGITransport:
    return httpx.ASGITransport(app=app)


@pytest.fixture()
async def client(transport: httpx.ASGITransport):
    async with Client(BASE_URL, with_transport(transport)) as c:
        yield c
