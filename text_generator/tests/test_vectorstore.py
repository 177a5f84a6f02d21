from __future__ import annotations

import pytest

from text_generator.rag.errors import MalformedReplyError, RemoteCallError
from text_generator.rag.types import Document, EmbeddingVector
from text_generator.vectorstore.inmemory import InMemoryVectorStore
from text_generator.vectorstore.lancedb_store import LanceDBVectorStore, build_lancedb_uri

ROWS = [
    {"vector": [1.0, 0.0], "text": "Apply SPF 50 sunscreen every two hours."},
    {"vector": [0.0, 1.0], "text": "Keep medicines out of reach."},
    {"vector": [0.9, 0.1], "text": "Wear a hat in the sun."},
]


def seeded_memory_store() -> InMemoryVectorStore:
    store = InMemoryVectorStore()
    for idx, row in enumerate(ROWS):
        store.add(row["vector"], Document(doc_id=f"doc-{idx}", content=row["text"]))
    return store


@pytest.fixture
def lance_table_path(tmp_path):
    lancedb = pytest.importorskip("lancedb")
    db = lancedb.connect(str(tmp_path))
    db.create_table("embeddings", data=ROWS)
    return str(tmp_path)


@pytest.mark.anyio
async def test_memory_store_orders_nearest_first() -> None:
    store = seeded_memory_store()

    results = await store.nearest(EmbeddingVector(values=[1.0, 0.0]), limit=2)

    assert [result.document.doc_id for result in results] == ["doc-0", "doc-2"]
    assert results[0].score <= results[1].score


@pytest.mark.anyio
async def test_memory_store_never_exceeds_limit() -> None:
    store = seeded_memory_store()

    for limit in (1, 2, 3, 10):
        results = await store.nearest(EmbeddingVector(values=[0.5, 0.5]), limit=limit)
        assert len(results) <= limit


@pytest.mark.anyio
async def test_memory_store_empty_returns_no_results() -> None:
    results = await InMemoryVectorStore().nearest(EmbeddingVector(values=[1.0]), limit=2)

    assert results == []


def test_memory_store_rejects_mixed_dimensions() -> None:
    store = seeded_memory_store()

    with pytest.raises(ValueError):
        store.add([1.0, 0.0, 0.0], Document(doc_id="bad", content="x"))


@pytest.mark.anyio
async def test_lancedb_store_resolves_text_by_name(lance_table_path) -> None:
    store = LanceDBVectorStore(uri=lance_table_path, table_name="embeddings")

    results = await store.nearest(EmbeddingVector(values=[1.0, 0.0]), limit=2)

    assert len(results) == 2
    assert results[0].document.content == "Apply SPF 50 sunscreen every two hours."
    assert results[1].document.content == "Wear a hat in the sun."
    assert results[0].score <= results[1].score
    assert store.health()["ok"] is True


@pytest.mark.anyio
async def test_lancedb_store_positional_text_column(lance_table_path) -> None:
    store = LanceDBVectorStore(
        uri=lance_table_path,
        table_name="embeddings",
        text_column="unused",
        text_column_index=1,
    )

    results = await store.nearest(EmbeddingVector(values=[0.0, 1.0]), limit=1)

    assert [result.document.content for result in results] == ["Keep medicines out of reach."]


@pytest.mark.anyio
async def test_lancedb_store_missing_column_is_malformed(lance_table_path) -> None:
    store = LanceDBVectorStore(uri=lance_table_path, table_name="embeddings", text_column="body")

    with pytest.raises(MalformedReplyError):
        await store.nearest(EmbeddingVector(values=[1.0, 0.0]), limit=2)


@pytest.mark.anyio
async def test_lancedb_store_missing_table_is_remote_error(lance_table_path) -> None:
    store = LanceDBVectorStore(uri=lance_table_path, table_name="missing")

    with pytest.raises(RemoteCallError):
        await store.startup()
    assert store.health()["ok"] is False


def test_build_lancedb_uri() -> None:
    assert build_lancedb_uri("vectors", "lance_db") == "s3://vectors/lance_db/"
    assert build_lancedb_uri("vectors", "/nested/prefix/") == "s3://vectors/nested/prefix/"
    assert build_lancedb_uri("vectors", "") == "s3://vectors/"
    with pytest.raises(ValueError):
        build_lancedb_uri("", "lance_db")
