from __future__ import annotations

"""Shared pytest fixtures and test environment defaults."""

import os
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ["RAG_VECTORSTORE"] = "memory"
os.environ["EMBEDDING_PROVIDER"] = "hash"
os.environ["EMBEDDING_DIMENSION"] = "256"
os.environ["RAG_GENERATOR"] = "extractive"
os.environ["RAG_RETRY_BACKOFF"] = "0"
os.environ.pop("LANCEDB_URI", None)
os.environ.setdefault("RAG_METRICS_ENABLED", "true")


import pytest


@pytest.fixture
def anyio_backend() -> str:
    """The code under test is built on asyncio; run anyio tests on that backend."""
    return "asyncio"
