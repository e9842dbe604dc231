"""Round-robin request dispatcher in front of identical storage nodes.

The dispatcher holds no storage state. Every node observes the same blob
tree and metadata index, so any node can serve any request and no session
affinity is needed. Each inbound request is forwarded verbatim (method, path,
query, headers, body) to the next backend in rotation, and the backend's
status, headers and body are relayed back unchanged.

Usage:
    from cas_store.adapters.inbound.dispatcher import create_dispatcher_app

    app = create_dispatcher_app(["http://localhost:8081", "http://localhost:8082"])
    # Run with: uvicorn module:app --host 0.0.0.0 --port 8080
"""

from __future__ import annotations

import threading
from contextlib import asynccontextmanager
from typing import Iterable, Sequence

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, StreamingResponse
from starlette.background import BackgroundTask

from cas_store.infrastructure.logging import get_logger
from cas_store.infrastructure.metrics import CasStoreMetrics, get_metrics

logger = get_logger(__name__)

HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailers",
        "transfer-encoding",
        "upgrade",
    }
)

FORWARDED_METHODS = ["GET", "HEAD", "PUT", "POST", "DELETE", "OPTIONS", "PATCH"]


class RoundRobinSelector:
    """Cycles through backends in order.

    Thread Safety:
        The rotation index is guarded by a lock, so concurrent callers each
        receive the next backend exactly once per turn.
    """

    def __init__(self, backends: Sequence[str]) -> None:
        if not backends:
            raise ValueError("At least one backend is required")
        self._backends = [b.rstrip("/") for b in backends]
        self._index = 0
        self._lock = threading.Lock()

    @property
    def backends(self) -> list[str]:
        return list(self._backends)

    def next(self) -> str:
        with self._lock:
            backend = self._backends[self._index]
            self._index = (self._index + 1) % len(self._backends)
            return backend


def _forwardable(header_items: Iterable[tuple[str, str]]) -> list[tuple[str, str]]:
    """Drop hop-by-hop headers and Host, keeping repeated headers apart."""
    return [
        (name, value)
        for name, value in header_items
        if name.lower() not in HOP_BY_HOP_HEADERS and name.lower() != "host"
    ]


def create_dispatcher_app(
    backends: Sequence[str],
    timeout_seconds: float = 30.0,
    metrics: CasStoreMetrics | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create the dispatcher application.

    Args:
        backends: Ordered backend base URLs.
        timeout_seconds: Per-request timeout towards backends.
        metrics: Metrics collector (defaults to the process singleton).
        transport: Optional httpx transport (tests inject a mock).

    Returns:
        Configured FastAPI application.

    Raises:
        ValueError: If backends is empty.
    """
    selector = RoundRobinSelector(backends)
    metrics = metrics or get_metrics()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        for i, backend in enumerate(selector.backends, start=1):
            logger.info("dispatch_backend_registered", position=i, backend=backend)
        async with httpx.AsyncClient(timeout=timeout_seconds, transport=transport) as client:
            app.state.http_client = client
            yield

    app = FastAPI(
        title="CAS Store Dispatcher",
        description="Round-robin request dispatcher for CAS Store nodes",
        lifespan=lifespan,
    )
    app.state.selector = selector

    @app.api_route("/{path:path}", methods=FORWARDED_METHODS, include_in_schema=False)
    async def forward(path: str, request: Request):
        backend = selector.next()
        url = backend + request.url.path
        if request.url.query:
            url += "?" + request.url.query

        client_host = request.client.host if request.client else "-"
        logger.info(
            "dispatch_forward",
            client=client_host,
            method=request.method,
            path=request.url.path,
            backend=backend,
        )

        client: httpx.AsyncClient = request.app.state.http_client
        has_body = "content-length" in request.headers or "transfer-encoding" in request.headers
        outbound = client.build_request(
            request.method,
            url,
            headers=_forwardable(request.headers.items()),
            content=request.stream() if has_body else None,
        )
        try:
            upstream = await client.send(outbound, stream=True)
        except httpx.RequestError as exc:
            metrics.dispatch_requests.labels(backend=backend, status="error").inc()
            logger.warning("dispatch_backend_error", backend=backend, error=str(exc))
            return PlainTextResponse(f"Backend error: {exc}", status_code=502)

        metrics.dispatch_requests.labels(backend=backend, status=str(upstream.status_code)).inc()
        response = StreamingResponse(
            upstream.aiter_raw(),
            status_code=upstream.status_code,
            background=BackgroundTask(upstream.aclose),
        )
        response.raw_headers = [
            (name.encode("latin-1"), value.encode("latin-1"))
            for name, value in _forwardable(upstream.headers.multi_items())
        ]
        return response

    return app
