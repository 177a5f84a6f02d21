from __future__ import annotations

"""In-memory vector store for local testing and small datasets."""

import logging
import math
from dataclasses import dataclass, field

from text_generator.rag.types import Document, EmbeddingVector, SearchResult

logger = logging.getLogger(__name__)


@dataclass
class InMemoryVectorStore:
    """Simple in-memory vector store ranked by cosine distance."""
    documents: list[Document] = field(default_factory=list)
    vectors: list[list[float]] = field(default_factory=list)

    def add(self, vector: list[float], document: Document) -> None:
        """Store a precomputed vector with its passage."""
        if self.vectors and len(vector) != len(self.vectors[0]):
            raise ValueError(
                f"Vector dimension mismatch: expected {len(self.vectors[0])}, got {len(vector)}"
            )
        self.documents.append(document)
        self.vectors.append(list(vector))

    async def startup(self) -> None:
        return None

    async def nearest(self, vector: EmbeddingVector, limit: int) -> list[SearchResult]:
        """Return up to `limit` stored passages, nearest first."""
        if limit <= 0:
            raise ValueError("limit must be a positive integer")
        if not self.documents:
            return []
        scored = [
            SearchResult(document=doc, score=self._cosine_distance(vector.values, vec))
            for doc, vec in zip(self.documents, self.vectors)
        ]
        scored.sort(key=lambda item: item.score)
        results = scored[:limit]
        logger.info(
            "retrieval_complete",
            extra={"results": len(results), "limit": limit, "backend": "memory"},
        )
        return results

    def _cosine_distance(self, a: list[float], b: list[float]) -> float:
        """Compute 1 - cosine similarity between two vectors."""
        dot = sum(x * y for x, y in zip(a, b))
        norm_a = math.sqrt(sum(x * x for x in a))
        norm_b = math.sqrt(sum(y * y for y in b))
        if norm_a == 0.0 or norm_b == 0.0:
            return 1.0
        return 1.0 - dot / (norm_a * norm_b)

    def health(self) -> dict[str, str | bool | int]:
        """Return health information for the vector store."""
        return {
            "backend": "memory",
            "ok": True,
            "document_count": len(self.documents),
        }
