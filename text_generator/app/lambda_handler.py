from __future__ import annotations

"""AWS Lambda entrypoint: `{"prompt": ...}` in, `{"req_id", "msg"}` out."""

import asyncio
import logging
import uuid
from typing import Any

from text_generator.app.dependencies import get_pipeline
from text_generator.app.logging_setup import configure_logging
from text_generator.rag.types import Query

logger = logging.getLogger(__name__)

configure_logging()

# One loop per process so the shared clients outlive a single invocation.
_LOOP = asyncio.new_event_loop()
_started = False


def _ensure_started() -> None:
    global _started
    if _started:
        return
    _LOOP.run_until_complete(get_pipeline().startup())
    _started = True


def parse_event(event: Any, context: Any) -> Query:
    """Build a Query from the invocation event and context."""
    prompt = event.get("prompt") if isinstance(event, dict) else None
    if not isinstance(prompt, str) or not prompt.strip():
        raise ValueError("Event must carry a non-empty 'prompt' string")
    request_id = getattr(context, "aws_request_id", None) or str(uuid.uuid4())
    return Query(prompt=prompt, request_id=request_id)


def handler(event: Any, context: Any) -> dict[str, str]:
    """Run one pipeline invocation; unrecovered errors fail the invocation."""
    query = parse_event(event, context)
    logger.info(
        "invocation_received",
        extra={"request_id": query.request_id, "prompt_length": len(query.prompt)},
    )
    _ensure_started()
    envelope = _LOOP.run_until_complete(get_pipeline().respond(query))
    return envelope.model_dump()
