"""FastAPI REST adapter for the CAS Store.

Provides the HTTP surface of a storage node. Object bodies are raw bytes, not
JSON envelopes.

Usage:
    from cas_store.adapters.inbound.rest_api import create_app

    app = create_app()
    # Run with: uvicorn module:app --host 0.0.0.0 --port 8081

Endpoints:
    PUT    /buckets/{bucket}/objects/{key}  store body, returns etag
    GET    /buckets/{bucket}/objects/{key}  stream body
    HEAD   /buckets/{bucket}/objects/{key}  Content-Length + ETag
    DELETE /buckets/{bucket}/objects/{key}  drop the record
    GET    /objects?bucket=                 list records
"""

from __future__ import annotations

from typing import AsyncIterator, BinaryIO, Iterator, Optional

import anyio.from_thread
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response, StreamingResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from cas_store import __version__
from cas_store.domain.errors import (
    BlobIOError,
    BlobNotFoundError,
    IntegrityViolationError,
    InvalidDigestError,
    InvalidObjectNameError,
    MetadataIndexError,
    ObjectNotFoundError,
)
from cas_store.infrastructure.config import Config
from cas_store.infrastructure.logging import get_logger
from cas_store.infrastructure.metrics import CasStoreMetrics
from cas_store.ports.inbound import ObjectServicePort

logger = get_logger(__name__)

STREAM_CHUNK_SIZE = 64 * 1024


class PutObjectResponse(BaseModel):
    """Result of a successful upload."""

    message: str
    path: str
    etag: str


class DeleteObjectResponse(BaseModel):
    """Result of a successful delete."""

    message: str


class ObjectRecordResponse(BaseModel):
    """One listing entry."""

    bucket: str
    key: str
    hash: str
    size: int


class StatsResponse(BaseModel):
    """Index statistics."""

    total_objects: int
    distinct_blobs: int
    total_size_bytes: int
    buckets: int


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    node_id: str
    version: str = __version__


class RequestBodyReader:
    """Blocking iterator over an ASGI request body.

    Used from a worker thread: each chunk is awaited on the event loop and
    handed back, so the upload is hashed and staged as it arrives without
    any intermediate copy.
    """

    def __init__(self, chunks: AsyncIterator[bytes]) -> None:
        self._chunks = chunks

    async def _next_chunk(self) -> Optional[bytes]:
        try:
            return await self._chunks.__anext__()
        except StopAsyncIteration:
            return None

    def __iter__(self) -> Iterator[bytes]:
        while True:
            chunk = anyio.from_thread.run(self._next_chunk)
            if chunk is None:
                return
            yield chunk


def _iter_file(body: BinaryIO) -> Iterator[bytes]:
    try:
        while True:
            chunk = body.read(STREAM_CHUNK_SIZE)
            if not chunk:
                break
            yield chunk
    finally:
        body.close()


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ObjectNotFoundError)
    async def not_found_handler(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": "Object not found"})

    # Same status as not-found; already logged and counted by the service.
    @app.exception_handler(IntegrityViolationError)
    async def integrity_handler(request: Request, exc: IntegrityViolationError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": "Object not found"})

    @app.exception_handler(BlobNotFoundError)
    async def blob_not_found_handler(request: Request, exc: BlobNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(InvalidObjectNameError)
    async def invalid_name_handler(request: Request, exc: InvalidObjectNameError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})

    @app.exception_handler(InvalidDigestError)
    async def invalid_digest_handler(request: Request, exc: InvalidDigestError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})

    @app.exception_handler(BlobIOError)
    async def blob_io_handler(request: Request, exc: BlobIOError) -> JSONResponse:
        logger.error("storage_io_error", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": str(exc)}
        )

    @app.exception_handler(MetadataIndexError)
    async def index_error_handler(request: Request, exc: MetadataIndexError) -> JSONResponse:
        logger.error("metadata_index_error", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": str(exc)}
        )


def create_app(
    object_service: ObjectServicePort | None = None,
    config: Config | None = None,
    metrics: CasStoreMetrics | None = None,
) -> FastAPI:
    """Create FastAPI application with CAS Store endpoints.

    Args:
        object_service: Service to expose. Defaults to the container's.
        config: Configuration (node id, CORS). Defaults to the container's.
        metrics: Metrics whose registry backs /metrics.

    Returns:
        Configured FastAPI application.
    """
    if object_service is None or config is None or metrics is None:
        from cas_store.infrastructure.container import get_container

        container = get_container()
        object_service = object_service or container.object_service
        config = config or container.config
        metrics = metrics or container.metrics

    service = object_service
    node_id = config.server.node_id

    app = FastAPI(
        title="CAS Store API",
        description="Content-addressable object storage with deduplication",
        version=__version__,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "HEAD"],
        allow_headers=["Content-Type"],
        expose_headers=["ETag", "Content-Length"],
    )
    _register_error_handlers(app)

    # System endpoints
    @app.get("/", response_class=PlainTextResponse, tags=["System"])
    async def root():
        return "ok"

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    async def health_check():
        """Check node health."""
        return HealthResponse(status="healthy", node_id=node_id)

    @app.get("/metrics", tags=["System"])
    async def prometheus_metrics():
        """Prometheus exposition."""
        return Response(content=generate_latest(metrics.registry), media_type=CONTENT_TYPE_LATEST)

    @app.get("/stats", response_model=StatsResponse, tags=["System"])
    def get_stats():
        """Index statistics."""
        stats = service.get_stats()
        return StatsResponse(
            total_objects=stats.total_objects,
            distinct_blobs=stats.distinct_blobs,
            total_size_bytes=stats.total_size_bytes,
            buckets=stats.buckets,
        )

    # Object endpoints
    @app.put(
        "/buckets/{bucket}/objects/{key:path}",
        response_model=PutObjectResponse,
        tags=["Objects"],
    )
    async def put_object(bucket: str, key: str, request: Request):
        """Store the raw request body under bucket/key."""
        upload = RequestBodyReader(request.stream())
        digest = await run_in_threadpool(service.put_object, bucket, key, upload)

        logger.info("object_uploaded", node_id=node_id, bucket=bucket, key=key, digest=digest[:12])
        body = PutObjectResponse(message="Upload successful", path=request.url.path, etag=digest)
        return JSONResponse(content=body.model_dump(), headers={"ETag": digest})

    # Registered ahead of GET so HEAD never falls through to the body route.
    @app.head("/buckets/{bucket}/objects/{key:path}", tags=["Objects"])
    def head_object(bucket: str, key: str):
        """Size and digest without a body."""
        record = service.head_object(bucket, key)
        return Response(
            status_code=status.HTTP_200_OK,
            headers={"Content-Length": str(record.size), "ETag": record.digest},
        )

    @app.get("/buckets/{bucket}/objects/{key:path}", tags=["Objects"])
    def get_object(bucket: str, key: str):
        """Stream the object's bytes."""
        body = service.get_object(bucket, key)
        logger.info("object_downloaded", node_id=node_id, bucket=bucket, key=key)
        return StreamingResponse(_iter_file(body), media_type="application/octet-stream")

    @app.delete(
        "/buckets/{bucket}/objects/{key:path}",
        response_model=DeleteObjectResponse,
        tags=["Objects"],
    )
    def delete_object(bucket: str, key: str):
        """Remove the bucket/key record. Content stays in the blob tree."""
        service.delete_object(bucket, key)
        logger.info("object_deleted", node_id=node_id, bucket=bucket, key=key)
        return DeleteObjectResponse(message="Delete successful")

    @app.get("/objects", response_model=list[ObjectRecordResponse], tags=["Objects"])
    def list_objects(bucket: Optional[str] = None):
        """List records ordered by bucket then key."""
        records = service.list_objects(bucket or None)
        return [ObjectRecordResponse(**record.to_dict()) for record in records]

    return app
