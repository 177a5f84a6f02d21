from __future__ import annotations

"""FastAPI application entrypoint for grounded text generation."""

import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from text_generator.app.dependencies import get_pipeline
from text_generator.app.logging_setup import configure_logging
from text_generator.app.metrics import metrics_middleware, metrics_response, record_outcome
from text_generator.app.schemas import (
    ErrorResponse,
    GenerateRequest,
    GenerateResponse,
    VectorStoreHealthResponse,
)
from text_generator.rag.errors import (
    MalformedReplyError,
    PipelineError,
    PipelineTimeoutError,
    RemoteCallError,
)
from text_generator.rag.types import Query

logger = logging.getLogger(__name__)

configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the shared vector table before the first request."""
    try:
        await get_pipeline().startup()
    except RemoteCallError as exc:
        # Requests retry the open lazily; /health/vectorstore reports it.
        logger.error("vectorstore_startup_failed", extra={"detail": str(exc)})
    yield


app = FastAPI(title="Text Generator", version="0.1.0", lifespan=lifespan)


def error_status(exc: PipelineError) -> int:
    """Map a pipeline error onto an HTTP status code."""
    if isinstance(exc, PipelineTimeoutError):
        return 504
    if isinstance(exc, (RemoteCallError, MalformedReplyError)):
        return 502
    return 500


@app.exception_handler(PipelineError)
async def pipeline_error_handler(request: Request, exc: PipelineError) -> JSONResponse:
    record_outcome(type(exc).__name__)
    payload = ErrorResponse(detail=type(exc).__name__, stage=exc.stage)
    return JSONResponse(status_code=error_status(exc), content=payload.model_dump())


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Attach or create a request ID for traceability."""
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.middleware("http")
async def record_metrics(request: Request, call_next):
    """Capture request metrics before returning the response."""
    return await metrics_middleware(request, call_next)


@app.get("/metrics")
async def metrics():
    """Expose Prometheus-style metrics."""
    return metrics_response()


@app.get("/health")
async def health() -> dict[str, str]:
    """Simple health probe for uptime checks."""
    return {"status": "ok"}


@app.get("/health/vectorstore", response_model=VectorStoreHealthResponse)
async def vectorstore_health() -> VectorStoreHealthResponse:
    """Report whether the vector table is open."""
    return VectorStoreHealthResponse(**get_pipeline().vectorstore.health())


@app.post("/generate", response_model=GenerateResponse)
async def generate(request: GenerateRequest, http_request: Request) -> GenerateResponse:
    """Answer a prompt with context retrieved from the vector table."""
    request_id = getattr(http_request.state, "request_id", None) or str(uuid.uuid4())
    query = Query(prompt=request.prompt, request_id=request_id)
    envelope, outcome = await get_pipeline().respond_with_outcome(query)
    record_outcome(outcome)
    logger.info(
        "generate_completed",
        extra={
            "request_id": request_id,
            "outcome": outcome,
            "message_length": len(envelope.msg),
        },
    )
    return GenerateResponse(req_id=envelope.req_id, msg=envelope.msg)
