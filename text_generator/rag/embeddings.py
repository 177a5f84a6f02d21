from __future__ import annotations

"""Embedding providers for turning prompts into vectors."""

import asyncio
import hashlib
import logging
import math
import re
import time
from dataclasses import dataclass, field
from typing import Any, Protocol

from text_generator.rag.bedrock import build_bedrock_client, invoke_json
from text_generator.rag.errors import MalformedReplyError
from text_generator.rag.types import EmbeddingVector

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"[a-z0-9]+")

TITAN_DIMENSIONS = {
    "amazon.titan-embed-text-v1": 1536,
    "amazon.titan-embed-text-v2:0": 1024,
}


class EmbeddingProvider(Protocol):
    """Protocol for embedding providers."""
    dimension: int

    async def embed(self, text: str) -> EmbeddingVector:
        """Return an embedding vector for the provided text."""
        raise NotImplementedError


def validate_vector(vector: list[float], dimension: int) -> list[float]:
    """Validate and normalize embedding vectors."""
    if len(vector) != dimension:
        raise MalformedReplyError(
            f"Embedding dimension mismatch: expected {dimension}, got {len(vector)}",
            stage="embed",
        )
    cleaned: list[float] = []
    for value in vector:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise MalformedReplyError("Embedding contains a non-numeric value", stage="embed")
        if not math.isfinite(value):
            raise MalformedReplyError("Embedding contains a non-finite value", stage="embed")
        cleaned.append(float(value))
    return cleaned


def resolve_titan_dimension(model_id: str) -> int | None:
    """Return expected dimension for a Titan embedding model."""
    return TITAN_DIMENSIONS.get(model_id)


def parse_titan_reply(data: dict[str, Any], dimension: int) -> EmbeddingVector:
    """Turn `{embedding, inputTextTokenCount}` into an EmbeddingVector."""
    embedding = data.get("embedding")
    if not isinstance(embedding, list):
        raise MalformedReplyError("Embedding reply missing embedding vector", stage="embed")
    token_count = data.get("inputTextTokenCount", 0)
    if isinstance(token_count, bool) or not isinstance(token_count, int) or token_count < 0:
        raise MalformedReplyError("Embedding reply has an invalid token count", stage="embed")
    return EmbeddingVector(
        values=validate_vector(embedding, dimension),
        input_token_count=token_count,
    )


@dataclass
class HashEmbedder:
    """Deterministic hash-based embedder for testing or offline use."""
    dimension: int = 256

    async def embed(self, text: str) -> EmbeddingVector:
        """Embed text using token hashing and L2 normalization."""
        tokens = _TOKEN_RE.findall(text.lower())
        if not tokens:
            return EmbeddingVector(values=[0.0] * self.dimension, input_token_count=0)
        vector = [0.0] * self.dimension
        for token in tokens:
            digest = hashlib.sha256(token.encode("utf-8")).digest()
            idx = digest[0] % self.dimension
            vector[idx] += 1.0
        values = validate_vector(self._l2_normalize(vector), self.dimension)
        return EmbeddingVector(values=values, input_token_count=len(tokens))

    def _l2_normalize(self, vector: list[float]) -> list[float]:
        """Normalize vector magnitude to 1.0."""
        norm = math.sqrt(sum(value * value for value in vector))
        if norm == 0.0:
            return vector
        return [value / norm for value in vector]


@dataclass
class BedrockEmbedder:
    """Embedding provider backed by a Titan model on Bedrock."""
    model_id: str
    dimension: int
    region: str | None = None
    read_timeout: float | None = None
    client: Any = field(default=None, repr=False)

    def __post_init__(self) -> None:
        """Resolve the model dimension and create a runtime client."""
        resolved = resolve_titan_dimension(self.model_id)
        if self.dimension <= 0:
            if resolved is None:
                raise ValueError(
                    f"EMBEDDING_DIMENSION must be set for unknown model {self.model_id}"
                )
            self.dimension = resolved
        elif resolved is not None and resolved != self.dimension:
            raise ValueError(
                f"EMBEDDING_DIMENSION={self.dimension} does not match {self.model_id} "
                f"(expected {resolved})"
            )
        if self.client is None:
            self.client = build_bedrock_client(self.region, self.read_timeout)

    async def embed(self, text: str) -> EmbeddingVector:
        """Embed text with a single `invoke_model` call."""
        start = time.monotonic()
        data = await asyncio.to_thread(
            invoke_json, self.client, self.model_id, {"inputText": text}, "embed"
        )
        vector = parse_titan_reply(data, self.dimension)
        logger.info(
            "embedding_complete",
            extra={
                "model": self.model_id,
                "dimension": vector.dimension,
                "input_tokens": vector.input_token_count,
                "elapsed_seconds": round(time.monotonic() - start, 4),
            },
        )
        return vector
