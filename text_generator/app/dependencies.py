from __future__ import annotations

from functools import lru_cache

from text_generator.app.settings import Settings, settings
from text_generator.rag.answerer import ExtractiveGenerator
from text_generator.rag.embeddings import BedrockEmbedder, EmbeddingProvider, HashEmbedder
from text_generator.rag.llm import BedrockGenerator, Generator
from text_generator.rag.pipeline import RAGPipeline, VectorStore
from text_generator.vectorstore.inmemory import InMemoryVectorStore
from text_generator.vectorstore.lancedb_store import LanceDBVectorStore


@lru_cache
def get_pipeline() -> RAGPipeline:
    return build_pipeline(settings)


def reset_pipeline_cache() -> None:
    get_pipeline.cache_clear()


def build_pipeline(config: Settings) -> RAGPipeline:
    return RAGPipeline(
        embedder=build_embedder(config),
        vectorstore=build_vectorstore(config),
        generator=build_generator(config),
        search_limit=config.search_limit,
        retry_attempts=config.retry_attempts,
        retry_backoff=config.retry_backoff,
        request_timeout=config.request_timeout,
        empty_retrieval_message=config.empty_retrieval_message,
    )


def build_embedder(config: Settings) -> EmbeddingProvider:
    provider = config.embedding_provider.lower().strip()
    if provider == "hash":
        return HashEmbedder(dimension=config.embedding_dimension or 256)
    if provider == "bedrock":
        return BedrockEmbedder(
            model_id=config.embedding_model_id,
            dimension=config.embedding_dimension,
            region=config.aws_region,
            read_timeout=config.bedrock_read_timeout,
        )
    raise ValueError(f"Unsupported embedding provider: {provider}")


def build_vectorstore(config: Settings) -> VectorStore:
    backend = config.vectorstore_backend.lower().strip()
    if backend == "memory":
        return InMemoryVectorStore()
    if backend == "lancedb":
        return LanceDBVectorStore(
            uri=config.lancedb_uri,
            table_name=config.table_name,
            text_column=config.text_column,
            text_column_index=config.text_column_index,
        )
    raise ValueError(f"Unsupported vector store backend: {backend}")


def build_generator(config: Settings) -> Generator:
    mode = config.generator_mode.lower().strip()
    if mode == "extractive":
        return ExtractiveGenerator()
    if mode == "bedrock":
        return BedrockGenerator(
            model_id=config.generation_model_id,
            max_tokens=config.generation_max_tokens,
            anthropic_version=config.anthropic_version,
            language=config.response_language,
            topic=config.response_topic,
            max_words=config.response_max_words,
            region=config.aws_region,
            read_timeout=config.bedrock_read_timeout,
        )
    raise ValueError(f"Unsupported generator: {mode}")
