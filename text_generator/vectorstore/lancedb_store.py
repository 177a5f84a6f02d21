from __future__ import annotations

"""LanceDB-backed similarity search over a persisted vector table."""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any

from text_generator.rag.errors import MalformedReplyError, PipelineError, RemoteCallError
from text_generator.rag.types import Document, EmbeddingVector, SearchResult

logger = logging.getLogger(__name__)

DISTANCE_COLUMN = "_distance"
ID_COLUMN = "id"


class LanceDBDependencyError(RuntimeError):
    """Raised when LanceDB dependencies are missing."""
    pass


def build_lancedb_uri(bucket_name: str, prefix: str) -> str:
    """Return the `s3://bucket/prefix/` connection string for a table location."""
    bucket = bucket_name.strip().strip("/")
    if not bucket:
        raise ValueError("BUCKET_NAME is required to build the LanceDB connection string")
    cleaned_prefix = prefix.strip().strip("/")
    if not cleaned_prefix:
        return f"s3://{bucket}/"
    return f"s3://{bucket}/{cleaned_prefix}/"


@dataclass
class LanceDBVectorStore:
    """Read-only view over an existing LanceDB table.

    Rows are resolved by column name. `text_column_index` pins the text
    column by position instead, for tables written without a stable schema.
    """
    uri: str
    table_name: str
    text_column: str = "text"
    text_column_index: int | None = None
    connection: Any = field(default=None, repr=False)
    table: Any = field(default=None, repr=False)

    def open(self) -> None:
        """Connect and open the table once; later calls are no-ops."""
        if self.table is not None:
            return
        try:
            import lancedb
        except ImportError as exc:
            raise LanceDBDependencyError("lancedb is required for LanceDBVectorStore") from exc
        start = time.monotonic()
        try:
            if self.connection is None:
                self.connection = lancedb.connect(self.uri)
            self.table = self.connection.open_table(self.table_name)
        except Exception as exc:
            raise RemoteCallError(
                f"Failed to open LanceDB table {self.table_name}: {exc}", stage="startup"
            ) from exc
        logger.info(
            "vectorstore_opened",
            extra={
                "uri": self.uri,
                "table": self.table_name,
                "elapsed_seconds": round(time.monotonic() - start, 4),
            },
        )

    async def startup(self) -> None:
        await asyncio.to_thread(self.open)

    async def nearest(self, vector: EmbeddingVector, limit: int) -> list[SearchResult]:
        """Return up to `limit` rows nearest to `vector`, nearest first."""
        if limit <= 0:
            raise ValueError("limit must be a positive integer")
        if self.table is None:
            await self.startup()
        start = time.monotonic()
        try:
            arrow_table = await asyncio.to_thread(self._query, vector.values, limit)
        except PipelineError:
            raise
        except Exception as exc:
            raise RemoteCallError(f"LanceDB query failed: {exc}", stage="search") from exc
        results = self._to_results(arrow_table, limit)
        logger.info(
            "retrieval_complete",
            extra={
                "table": self.table_name,
                "results": len(results),
                "limit": limit,
                "elapsed_seconds": round(time.monotonic() - start, 4),
            },
        )
        return results

    def _query(self, values: list[float], limit: int) -> Any:
        return self.table.search(values).limit(limit).to_arrow()

    def _to_results(self, arrow_table: Any, limit: int) -> list[SearchResult]:
        """Flatten the result row groups into scored documents."""
        results: list[SearchResult] = []
        for batch in arrow_table.to_batches():
            schema = batch.schema
            texts = batch.column(self._text_index(schema)).to_pylist()
            distance_idx = schema.get_field_index(DISTANCE_COLUMN)
            distances = batch.column(distance_idx).to_pylist() if distance_idx >= 0 else None
            id_idx = schema.get_field_index(ID_COLUMN)
            ids = batch.column(id_idx).to_pylist() if id_idx >= 0 else None
            for row, text in enumerate(texts):
                rank = len(results)
                doc_id = str(ids[row]) if ids and ids[row] is not None else f"{self.table_name}:{rank}"
                score = float(distances[row]) if distances and distances[row] is not None else float(rank)
                results.append(
                    SearchResult(
                        document=Document(
                            doc_id=doc_id,
                            content=text if text is None else str(text),
                            metadata={"source": f"lancedb:{self.table_name}", "rank": rank},
                        ),
                        score=score,
                    )
                )
        return results[:limit]

    def _text_index(self, schema: Any) -> int:
        if self.text_column_index is not None:
            if not 0 <= self.text_column_index < len(schema.names):
                raise MalformedReplyError(
                    f"Text column index {self.text_column_index} is outside the result schema",
                    stage="search",
                )
            return self.text_column_index
        index = schema.get_field_index(self.text_column)
        if index < 0:
            raise MalformedReplyError(
                f"Result schema has no '{self.text_column}' column: {schema.names}",
                stage="search",
            )
        return index

    def health(self) -> dict[str, str | bool]:
        """Return health information for the vector store."""
        return {
            "backend": "lancedb",
            "ok": self.table is not None,
            "table": self.table_name,
        }
