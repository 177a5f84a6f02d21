from __future__ import annotations

"""Core data types for queries, embeddings and retrieval."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Query:
    """Prompt text and the correlation id assigned by the caller."""
    prompt: str
    request_id: str


@dataclass(frozen=True)
class EmbeddingVector:
    """Embedding values plus the number of input tokens consumed."""
    values: list[float]
    input_token_count: int = 0

    @property
    def dimension(self) -> int:
        return len(self.values)


@dataclass(frozen=True)
class Document:
    """Stored passage with metadata."""
    doc_id: str
    content: str | None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SearchResult:
    """Search hit with its distance from the query vector."""
    document: Document
    score: float


@dataclass(frozen=True)
class ContextChunk:
    """Grounding context selected for generation."""
    document_id: str
    content: str
    metadata: dict[str, Any]
    score: float
