"""Spreadsheet file API routes — upload, list, read worksheet data, delete."""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from starlette.concurrency import run_in_threadpool

from app.application.services.ingestion_orchestrator import IngestionOrchestrator
from app.domain.schemas.auth import Identity
from app.domain.schemas.spreadsheet import SpreadsheetFileRead, WorksheetData
from app.interfaces.api.deps import get_current_user, require_admin
from app.interfaces.deps import get_orchestrator

router = APIRouter(prefix="/api/files", tags=["Files"])


def _split_tags(tags: Optional[str]) -> List[str]:
    if not tags:
        return []
    return [tag.strip() for tag in tags.split(",") if tag.strip()]


@router.post("/upload", response_model=SpreadsheetFileRead, status_code=status.HTTP_201_CREATED)
async def upload_file(
    file: UploadFile = File(...),
    description: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    is_public: bool = Form(False),
    orchestrator: IngestionOrchestrator = Depends(get_orchestrator),
    user: Identity = Depends(get_current_user),
):
    """
    Upload an .xls/.xlsx workbook. Unparseable workbooks are still stored
    and come back with status='error'.
    """
    content = await file.read()
    # Parsing and commits are blocking; keep them off the event loop
    record = await run_in_threadpool(
        orchestrator.ingest,
        content=content,
        original_name=file.filename or "",
        owner=user,
        content_type=file.content_type,
        description=description,
        tags=_split_tags(tags),
        is_public=is_public,
    )
    return SpreadsheetFileRead.model_validate(record)


@router.get("", response_model=List[SpreadsheetFileRead])
def list_files(
    status: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    orchestrator: IngestionOrchestrator = Depends(get_orchestrator),
    user: Identity = Depends(get_current_user),
):
    files = orchestrator.list_files(user, status=status, limit=limit)
    return [SpreadsheetFileRead.model_validate(f) for f in files]


@router.get("/admin/all", response_model=List[SpreadsheetFileRead])
def list_all_files(
    status: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    orchestrator: IngestionOrchestrator = Depends(get_orchestrator),
    admin: Identity = Depends(require_admin),
):
    files = orchestrator.list_all_files(admin, status=status, limit=limit)
    return [SpreadsheetFileRead.model_validate(f) for f in files]


@router.get("/{file_id}", response_model=SpreadsheetFileRead)
def get_file(
    file_id: int,
    orchestrator: IngestionOrchestrator = Depends(get_orchestrator),
    user: Identity = Depends(get_current_user),
):
    return SpreadsheetFileRead.model_validate(orchestrator.get_file(file_id, user))


@router.get("/{file_id}/data/{worksheet_name}", response_model=WorksheetData)
def get_worksheet_data(
    file_id: int,
    worksheet_name: str,
    orchestrator: IngestionOrchestrator = Depends(get_orchestrator),
    user: Identity = Depends(get_current_user),
):
    return orchestrator.read_worksheet(file_id, worksheet_name, user)


@router.delete("/{file_id}")
def delete_file(
    file_id: int,
    orchestrator: IngestionOrchestrator = Depends(get_orchestrator),
    user: Identity = Depends(get_current_user),
):
    orchestrator.delete_file(file_id, user)
    return {"message": "File deleted successfully", "file_id": file_id}
