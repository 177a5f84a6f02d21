from __future__ import annotations

"""Grounding context assembly from ranked search results."""

import logging
import re

from text_generator.rag.errors import EmptyRetrievalError
from text_generator.rag.types import ContextChunk, SearchResult

logger = logging.getLogger(__name__)

# Non-breaking space, tab and newline; nothing else is rewritten.
_CONTROL_RUN_RE = re.compile("[\u00a0\t\n]+")

DEFAULT_NO_CONTEXT = "No relevant context found for this question."


def normalize_passage(text: str) -> str:
    """Collapse each run of NBSP/tab/newline characters into one space."""
    return _CONTROL_RUN_RE.sub(" ", text)


def assemble_context(results: list[SearchResult]) -> ContextChunk:
    """Build grounding context from the best-ranked result only."""
    if not results:
        raise EmptyRetrievalError()
    best = results[0]
    content = best.document.content or ""
    if not content:
        logger.warning(
            "empty_best_match",
            extra={"document_id": best.document.doc_id, "candidates": len(results)},
        )
    return ContextChunk(
        document_id=best.document.doc_id,
        content=normalize_passage(content),
        metadata=best.document.metadata,
        score=best.score,
    )
