"""Pydantic request/response models for the filededup server API."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, TypeAdapter, field_validator


# ---------------------------------------------------------------------------
# Ingest models
# ---------------------------------------------------------------------------

class FileRecord(BaseModel):
    machine_id: str
    path: str
    filename: str
    size: int = Field(ge=0)
    mtime: datetime
    hash: str = Field(pattern=r"^[0-9a-f]{64}$")

    @field_validator("machine_id", "path", "filename")
    @classmethod
    def _encodable(cls, v: str) -> str:
        # JSON "\udcff" escapes decode to lone surrogates DuckDB can't bind
        try:
            v.encode("utf-8")
        except UnicodeEncodeError:
            raise ValueError("must be valid UTF-8 text")
        return v


FileRecordList = TypeAdapter(list[FileRecord])


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------

class DuplicateFile(BaseModel):
    hash: str
    duplicate_count: int
    paths: list[str]


class FileCount(BaseModel):
    count: int
