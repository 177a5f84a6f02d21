from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Protocol, TypeVar

from prometheus_client import Counter, Histogram
from pydantic import BaseModel

from text_generator.rag.context import DEFAULT_NO_CONTEXT, assemble_context
from text_generator.rag.embeddings import EmbeddingProvider
from text_generator.rag.errors import EmptyRetrievalError, PipelineError, PipelineTimeoutError
from text_generator.rag.llm import GenerationReply, Generator, render_message
from text_generator.rag.retry import retry_remote
from text_generator.rag.types import ContextChunk, EmbeddingVector, Query, SearchResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

STAGE_LATENCY = Histogram(
    "rag_stage_duration_seconds",
    "Pipeline stage duration in seconds",
    ["stage"],
)
PIPELINE_FAILURES = Counter(
    "rag_pipeline_failures_total",
    "Pipeline failures by stage and error type",
    ["stage", "error"],
)


class VectorStore(Protocol):
    async def startup(self) -> None: ...

    async def nearest(self, vector: EmbeddingVector, limit: int) -> list[SearchResult]: ...

    def health(self) -> dict[str, Any]: ...


class ResponseEnvelope(BaseModel):
    req_id: str
    msg: str


@dataclass
class RAGPipeline:
    embedder: EmbeddingProvider
    vectorstore: VectorStore
    generator: Generator
    search_limit: int = 2
    retry_attempts: int = 3
    retry_backoff: float = 0.2
    request_timeout: float | None = None
    empty_retrieval_message: str = DEFAULT_NO_CONTEXT

    async def startup(self) -> None:
        await self.vectorstore.startup()

    async def embed(self, query: Query) -> EmbeddingVector:
        return await self._timed(
            "embed",
            query,
            lambda: retry_remote(
                lambda: self.embedder.embed(query.prompt),
                attempts=self.retry_attempts,
                backoff=self.retry_backoff,
                stage="embed",
                request_id=query.request_id,
            ),
        )

    async def nearest(self, query: Query, vector: EmbeddingVector) -> list[SearchResult]:
        return await self._timed(
            "search",
            query,
            lambda: retry_remote(
                lambda: self.vectorstore.nearest(vector, self.search_limit),
                attempts=self.retry_attempts,
                backoff=self.retry_backoff,
                stage="search",
                request_id=query.request_id,
            ),
        )

    def assemble(self, results: list[SearchResult]) -> ContextChunk:
        start = time.monotonic()
        context = assemble_context(results)
        STAGE_LATENCY.labels("assemble").observe(time.monotonic() - start)
        return context

    async def generate(self, query: Query, context: ContextChunk) -> GenerationReply:
        # Generation is not idempotent, so it gets a single attempt.
        return await self._timed(
            "generate",
            query,
            lambda: self.generator.generate(query.prompt, context),
        )

    async def run(self, query: Query) -> GenerationReply:
        """Run embed, search, assemble and generate in order.

        Raises the tagged pipeline errors; nothing is retried beyond the
        read-only stages and nothing partial is returned.
        """
        if self.request_timeout is None or self.request_timeout <= 0:
            return await self._run(query)
        try:
            return await asyncio.wait_for(self._run(query), timeout=self.request_timeout)
        except asyncio.TimeoutError as exc:
            PIPELINE_FAILURES.labels("pipeline", "PipelineTimeoutError").inc()
            logger.error(
                "pipeline_timeout",
                extra={"request_id": query.request_id, "timeout": self.request_timeout},
            )
            raise PipelineTimeoutError(self.request_timeout) from exc

    async def respond(self, query: Query) -> ResponseEnvelope:
        """Map a pipeline run onto the response envelope."""
        envelope, _ = await self.respond_with_outcome(query)
        return envelope

    async def respond_with_outcome(self, query: Query) -> tuple[ResponseEnvelope, str]:
        """Like `respond`, also naming the outcome (`answered` or `no_context`)."""
        try:
            reply = await self.run(query)
        except EmptyRetrievalError:
            logger.warning("empty_retrieval", extra={"request_id": query.request_id})
            envelope = ResponseEnvelope(req_id=query.request_id, msg=self.empty_retrieval_message)
            return envelope, "no_context"
        return ResponseEnvelope(req_id=query.request_id, msg=render_message(reply)), "answered"

    async def _run(self, query: Query) -> GenerationReply:
        logger.info(
            "pipeline_started",
            extra={"request_id": query.request_id, "prompt_length": len(query.prompt)},
        )
        vector = await self.embed(query)
        results = await self.nearest(query, vector)
        try:
            context = self.assemble(results)
        except EmptyRetrievalError:
            # An outcome for `respond`, not a failure.
            raise
        except PipelineError as exc:
            self._record_failure("assemble", query, exc)
            raise
        return await self.generate(query, context)

    async def _timed(
        self,
        stage: str,
        query: Query,
        operation: Callable[[], Awaitable[T]],
    ) -> T:
        start = time.monotonic()
        try:
            return await operation()
        except PipelineError as exc:
            self._record_failure(stage, query, exc)
            raise
        finally:
            STAGE_LATENCY.labels(stage).observe(time.monotonic() - start)

    def _record_failure(self, stage: str, query: Query, exc: Exception) -> None:
        PIPELINE_FAILURES.labels(stage, type(exc).__name__).inc()
        logger.error(
            "pipeline_failed",
            extra={
                "request_id": query.request_id,
                "stage": stage,
                "error": type(exc).__name__,
                "detail": str(exc),
            },
        )
