from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field


class ImportResult(BaseModel):
    message: str
    processed: int = Field(ge=0)
    skipped: int = Field(ge=0)


class ImportHistoryEntry(BaseModel):
    import_date: date
    record_count: int = Field(ge=0)
    start_date: date | None = None
    end_date: date | None = None


class ImportHistoryResponse(BaseModel):
    history: list[ImportHistoryEntry] = Field(default_factory=list)


class DeleteRecordsResponse(BaseModel):
    message: str
    deleted_count: int = Field(ge=0)
