from __future__ import annotations

from pydantic import BaseModel, Field


class GenerateRequest(BaseModel):
    prompt: str = Field(min_length=1)


class GenerateResponse(BaseModel):
    req_id: str
    msg: str


class VectorStoreHealthResponse(BaseModel):
    backend: str
    ok: bool
    table: str | None = None
    document_count: int | None = None


class ErrorResponse(BaseModel):
    detail: str
    stage: str | None = None
