from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest

from text_generator.app import lambda_handler
from text_generator.app.dependencies import get_pipeline, reset_pipeline_cache
from text_generator.rag.types import Document


def seed(text: str) -> None:
    pipeline = get_pipeline()
    vector = asyncio.run(pipeline.embedder.embed(text))
    pipeline.vectorstore.add(vector.values, Document(doc_id="doc-0", content=text))


def test_handler_returns_envelope_with_request_id() -> None:
    reset_pipeline_cache()
    seed("Apply SPF 50 sunscreen every two hours.")

    result = lambda_handler.handler(
        {"prompt": "Which SPF sunscreen for kids?"},
        SimpleNamespace(aws_request_id="lambda-req-1"),
    )

    assert result["req_id"] == "lambda-req-1"
    assert "Apply SPF 50 sunscreen" in result["msg"]


def test_handler_rejects_event_without_prompt() -> None:
    with pytest.raises(ValueError):
        lambda_handler.handler({"question": "hi"}, SimpleNamespace(aws_request_id="x"))


def test_parse_event_generates_request_id_without_context() -> None:
    query = lambda_handler.parse_event({"prompt": "hello"}, None)

    assert query.prompt == "hello"
    assert query.request_id
