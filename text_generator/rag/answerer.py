from __future__ import annotations

"""Offline generator that quotes the grounding context."""

import uuid
from dataclasses import dataclass

from text_generator.rag.llm import ContentBlock, GenerationReply, Usage
from text_generator.rag.types import ContextChunk


@dataclass
class ExtractiveGenerator:
    """Return a short extract from the grounding context without a model call."""
    max_chars: int = 480

    async def generate(self, prompt: str, context: ContextChunk) -> GenerationReply:
        """Build a reply shaped like a model reply."""
        snippet = self._truncate(context.content.strip())
        text = f"Based on the provided context: {snippet}" if snippet else ""
        return GenerationReply(
            id=f"extractive-{uuid.uuid4().hex}",
            type="message",
            role="assistant",
            model="extractive",
            stop_reason="end_turn",
            usage=Usage(
                input_tokens=len(prompt.split()) + len(context.content.split()),
                output_tokens=len(text.split()),
            ),
            content=[ContentBlock(type="text", text=text)],
        )

    def _truncate(self, text: str) -> str:
        """Trim text to the max character budget without cutting words."""
        if len(text) <= self.max_chars:
            return text
        return text[: self.max_chars].rsplit(" ", 1)[0] + "..."
