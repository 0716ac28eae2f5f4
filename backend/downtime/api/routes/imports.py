from __future__ import annotations

import shutil
import tempfile
from datetime import date
from pathlib import Path

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from downtime.api.deps import get_db
from downtime.schemas.imports import DeleteRecordsResponse, ImportHistoryResponse, ImportResult
from downtime.services import stop_queries
from downtime.services.stop_import import StopImportError, import_production_stops
from downtime.services.tabular_reader import SUPPORTED_SUFFIXES

router = APIRouter()


@router.post("", response_model=ImportResult)
def import_file(
    file: UploadFile = File(...),
    delete_existing: bool = Form(False),
    db: Session = Depends(get_db),
) -> ImportResult | JSONResponse:
    suffix = Path(file.filename or "").suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported file type. Allowed: {', '.join(sorted(SUPPORTED_SUFFIXES))}",
        )

    upload_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as buffer:
            upload_path = Path(buffer.name)
            shutil.copyfileobj(file.file, buffer)
        summary = import_production_stops(db, upload_path, delete_existing=delete_existing)
    except StopImportError as exc:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": f"Error importing file: {exc}"},
        )
    finally:
        if upload_path is not None:
            upload_path.unlink(missing_ok=True)

    return ImportResult(
        message="File imported successfully",
        processed=summary.processed,
        skipped=summary.skipped,
    )


@router.get("/history", response_model=ImportHistoryResponse)
def get_import_history(db: Session = Depends(get_db)) -> ImportHistoryResponse:
    return ImportHistoryResponse(history=stop_queries.get_import_history(db))


@router.delete("/records", response_model=DeleteRecordsResponse)
def delete_imported_records(
    from_date: date,
    to_date: date,
    db: Session = Depends(get_db),
) -> DeleteRecordsResponse:
    try:
        count = stop_queries.delete_records_between(db, from_date, to_date)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return DeleteRecordsResponse(
        message=f"{count} records deleted successfully",
        deleted_count=count,
    )
