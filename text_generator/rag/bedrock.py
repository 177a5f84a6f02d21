from __future__ import annotations

"""Thin helpers around the Bedrock runtime `invoke_model` call."""

import json
from typing import Any

from text_generator.rag.errors import MalformedReplyError, RemoteCallError


def build_bedrock_client(region: str | None, read_timeout: float | None = None) -> Any:
    """Create a bedrock-runtime client from the default credential chain."""
    try:
        import boto3
        from botocore.config import Config
    except ImportError as exc:
        raise RemoteCallError("boto3 is required for Bedrock models", stage="startup") from exc

    session = boto3.session.Session(region_name=region)
    config = Config(read_timeout=read_timeout) if read_timeout else None
    return session.client("bedrock-runtime", config=config)


def invoke_json(client: Any, model_id: str, payload: dict[str, Any], stage: str) -> dict[str, Any]:
    """Send a JSON payload to a model and decode the JSON reply.

    The payload is always serialized with `json.dumps`, so caller text never
    needs escaping.
    """
    body = json.dumps(payload).encode("utf-8")
    try:
        response = client.invoke_model(
            modelId=model_id,
            contentType="application/json",
            accept="application/json",
            body=body,
        )
    except Exception as exc:
        raise RemoteCallError(f"{model_id} invocation failed: {exc}", stage=stage) from exc
    stream = response.get("body") if isinstance(response, dict) else None
    if stream is None:
        raise MalformedReplyError(f"{model_id} reply is missing a body", stage=stage)
    try:
        raw = stream.read()
    except Exception as exc:
        raise RemoteCallError(f"Failed to read {model_id} reply: {exc}", stage=stage) from exc
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise MalformedReplyError(f"{model_id} reply is not valid JSON", stage=stage) from exc
    if not isinstance(data, dict):
        raise MalformedReplyError(f"{model_id} reply is not a JSON object", stage=stage)
    return data
