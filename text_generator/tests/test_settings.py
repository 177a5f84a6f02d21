from __future__ import annotations

import dataclasses

import pytest

from text_generator.app.dependencies import build_embedder, build_generator, build_vectorstore
from text_generator.app.settings import settings
from text_generator.rag.answerer import ExtractiveGenerator
from text_generator.rag.embeddings import HashEmbedder
from text_generator.vectorstore.inmemory import InMemoryVectorStore
from text_generator.vectorstore.lancedb_store import LanceDBVectorStore


def test_defaults_match_bedrock_deployment() -> None:
    assert settings.search_limit == 2
    assert settings.embedding_model_id == "amazon.titan-embed-text-v1"
    assert settings.generation_model_id == "anthropic.claude-3-sonnet-20240229-v1:0"
    assert settings.anthropic_version == "bedrock-2023-05-31"
    assert settings.generation_max_tokens == 500


def test_lancedb_uri_is_derived_from_bucket_and_prefix() -> None:
    config = dataclasses.replace(settings, bucket_name="vectors", prefix="lance_db", lancedb_uri_raw=None)

    assert config.lancedb_uri == "s3://vectors/lance_db/"


def test_lancedb_uri_requires_bucket_without_override() -> None:
    config = dataclasses.replace(settings, bucket_name="", lancedb_uri_raw=None)

    with pytest.raises(ValueError):
        _ = config.lancedb_uri


def test_builders_use_offline_backends_in_tests() -> None:
    assert isinstance(build_embedder(settings), HashEmbedder)
    assert isinstance(build_vectorstore(settings), InMemoryVectorStore)
    assert isinstance(build_generator(settings), ExtractiveGenerator)


def test_lancedb_backend_is_built_lazily(tmp_path) -> None:
    config = dataclasses.replace(
        settings,
        vectorstore_backend="lancedb",
        lancedb_uri_raw=str(tmp_path),
        table_name="embeddings",
        text_column_index=1,
    )

    store = build_vectorstore(config)

    assert isinstance(store, LanceDBVectorStore)
    assert store.uri == str(tmp_path)
    assert store.text_column_index == 1
    assert store.table is None


def test_unknown_backends_are_rejected() -> None:
    with pytest.raises(ValueError):
        build_vectorstore(dataclasses.replace(settings, vectorstore_backend="milvus"))
    with pytest.raises(ValueError):
        build_embedder(dataclasses.replace(settings, embedding_provider="openai"))


def test_unset_dimension_falls_back_for_hash_embedder() -> None:
    embedder = build_embedder(dataclasses.replace(settings, embedding_dimension=0))

    assert isinstance(embedder, HashEmbedder)
    assert embedder.dimension == 256
