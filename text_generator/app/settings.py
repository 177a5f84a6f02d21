from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from text_generator.vectorstore.lancedb_store import build_lancedb_uri

load_dotenv()


def _optional_int(name: str) -> int | None:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    return int(raw)


@dataclass(frozen=True)
class Settings:
    bucket_name: str = os.getenv("BUCKET_NAME", "")
    prefix: str = os.getenv("PREFIX", "lance_db")
    table_name: str = os.getenv("TABLE_NAME", "embeddings")
    lancedb_uri_raw: str | None = os.getenv("LANCEDB_URI")
    aws_region: str = os.getenv("AWS_REGION", "us-east-1")
    vectorstore_backend: str = os.getenv("RAG_VECTORSTORE", "lancedb")
    text_column: str = os.getenv("RAG_TEXT_COLUMN", "text")
    text_column_index: int | None = _optional_int("RAG_TEXT_COLUMN_INDEX")
    search_limit: int = int(os.getenv("RAG_SEARCH_LIMIT", "2"))
    embedding_provider: str = os.getenv("EMBEDDING_PROVIDER", "bedrock")
    embedding_model_id: str = os.getenv("EMBEDDING_MODEL_ID", "amazon.titan-embed-text-v1")
    embedding_dimension: int = int(os.getenv("EMBEDDING_DIMENSION", "0"))
    generator_mode: str = os.getenv("RAG_GENERATOR", "bedrock")
    generation_model_id: str = os.getenv(
        "GENERATION_MODEL_ID", "anthropic.claude-3-sonnet-20240229-v1:0"
    )
    anthropic_version: str = os.getenv("ANTHROPIC_VERSION", "bedrock-2023-05-31")
    generation_max_tokens: int = int(os.getenv("GENERATION_MAX_TOKENS", "500"))
    response_language: str = os.getenv("RESPONSE_LANGUAGE", "Polish")
    response_topic: str = os.getenv(
        "RESPONSE_TOPIC", "health and safety for kids during vacations"
    )
    response_max_words: int = int(os.getenv("RESPONSE_MAX_WORDS", "500"))
    retry_attempts: int = int(os.getenv("RAG_RETRY_ATTEMPTS", "3"))
    retry_backoff: float = float(os.getenv("RAG_RETRY_BACKOFF", "0.2"))
    request_timeout: float = float(os.getenv("RAG_REQUEST_TIMEOUT", "25"))
    bedrock_read_timeout: float = float(os.getenv("RAG_BEDROCK_READ_TIMEOUT", "60"))
    empty_retrieval_message: str = os.getenv(
        "RAG_EMPTY_RETRIEVAL_MESSAGE", "No relevant context found for this question."
    )
    metrics_enabled: bool = os.getenv("RAG_METRICS_ENABLED", "true").lower() in {"1", "true", "yes"}
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def lancedb_uri(self) -> str:
        """Explicit LANCEDB_URI, else `s3://{bucket}/{prefix}/`."""
        raw = (self.lancedb_uri_raw or "").strip()
        if raw:
            return raw
        return build_lancedb_uri(self.bucket_name, self.prefix)


settings = Settings()
