from __future__ import annotations

"""Generation client for grounded answers from Claude on Bedrock."""

from dataclasses import dataclass, field
import asyncio
import logging
import time
from typing import Any, Protocol

from pydantic import BaseModel, Field, ValidationError

from text_generator.rag.bedrock import build_bedrock_client, invoke_json
from text_generator.rag.errors import MalformedReplyError
from text_generator.rag.types import ContextChunk

logger = logging.getLogger(__name__)
raw_logger = logging.getLogger("text_generator.generation.raw")

DEFAULT_LANGUAGE = "Polish"
DEFAULT_TOPIC = "health and safety for kids during vacations"
DEFAULT_MAX_WORDS = 500
DEFAULT_ANTHROPIC_VERSION = "bedrock-2023-05-31"


class Usage(BaseModel):
    input_tokens: int = Field(ge=0)
    output_tokens: int = Field(ge=0)


class ContentBlock(BaseModel):
    type: str
    text: str = ""


class GenerationReply(BaseModel):
    """Structured reply of the Messages API."""
    id: str
    type: str
    role: str
    model: str
    stop_reason: str | None = None
    stop_sequence: str | None = None
    usage: Usage
    content: list[ContentBlock]


class Generator(Protocol):
    """Protocol for grounded text generators."""

    async def generate(self, prompt: str, context: ContextChunk) -> GenerationReply:
        raise NotImplementedError


def build_system_prompt(
    context: str,
    language: str = DEFAULT_LANGUAGE,
    topic: str = DEFAULT_TOPIC,
    max_words: int = DEFAULT_MAX_WORDS,
) -> str:
    """Return the fixed persona plus the grounding document."""
    return (
        f"Respond only in {language}. "
        "Informative style. "
        f"Information focused on {topic}. "
        f"Keep it short and use max {max_words} words. "
        f"Please use examples from the following document in {language}: {context}"
    )


def build_generation_request(
    prompt: str,
    system_prompt: str,
    max_tokens: int,
    anthropic_version: str = DEFAULT_ANTHROPIC_VERSION,
) -> dict[str, Any]:
    """Build the Messages API request body as a plain mapping."""
    return {
        "system": system_prompt,
        "anthropic_version": anthropic_version,
        "max_tokens": max_tokens,
        "messages": [
            {
                "role": "user",
                "content": [{"type": "text", "text": prompt}],
            }
        ],
    }


def parse_generation_reply(data: dict[str, Any]) -> GenerationReply:
    """Validate a decoded reply against the expected shape."""
    try:
        return GenerationReply.model_validate(data)
    except ValidationError as exc:
        raise MalformedReplyError(
            f"Generation reply has an unexpected shape: {exc.error_count()} errors",
            stage="generate",
        ) from exc


def render_message(reply: GenerationReply) -> str:
    """Join the text blocks of a reply into the final message."""
    parts = [block.text.strip() for block in reply.content if block.type == "text"]
    return "\n\n".join(part for part in parts if part)


@dataclass
class BedrockGenerator:
    """Generator backed by an Anthropic model on Bedrock."""
    model_id: str
    max_tokens: int = 500
    anthropic_version: str = DEFAULT_ANTHROPIC_VERSION
    language: str = DEFAULT_LANGUAGE
    topic: str = DEFAULT_TOPIC
    max_words: int = DEFAULT_MAX_WORDS
    region: str | None = None
    read_timeout: float | None = None
    client: Any = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.max_tokens <= 0:
            raise ValueError("GENERATION_MAX_TOKENS must be greater than zero")
        if self.client is None:
            self.client = build_bedrock_client(self.region, self.read_timeout)

    async def generate(self, prompt: str, context: ContextChunk) -> GenerationReply:
        """Generate an answer grounded in the supplied context."""
        start = time.monotonic()
        system_prompt = build_system_prompt(
            context.content,
            language=self.language,
            topic=self.topic,
            max_words=self.max_words,
        )
        payload = build_generation_request(
            prompt,
            system_prompt,
            max_tokens=self.max_tokens,
            anthropic_version=self.anthropic_version,
        )
        data = await asyncio.to_thread(
            invoke_json, self.client, self.model_id, payload, "generate"
        )
        reply = parse_generation_reply(data)
        raw_logger.info("%s", render_message(reply))
        logger.info(
            "generation_complete",
            extra={
                "model": reply.model,
                "stop_reason": reply.stop_reason,
                "input_tokens": reply.usage.input_tokens,
                "output_tokens": reply.usage.output_tokens,
                "elapsed_seconds": round(time.monotonic() - start, 4),
            },
        )
        return reply
