"""Ingestion orchestrator — upload → parse → persist, and chart creation.

File lifecycle: processing → completed | processing → error (terminal).
A failed file is never re-processed; it has to be uploaded again.
"""

import os
from datetime import datetime
from typing import List, Optional

import pytz
import structlog

from app.application.services.chart_transformer import transform_chart_data
from app.application.services.insight_generator import generate_insights
from app.application.services.workbook_parser import build_metadata, parse_workbook
from app.application.services.worksheet_reader import WorksheetReader
from app.config import get_settings
from app.core.exceptions import (
    AccessDeniedException,
    ColumnNotFoundException,
    EmptyDatasetException,
    EntityNotFoundException,
    FileNotReadyException,
    FileStorageError,
    FileTooLargeException,
    MalformedWorkbookError,
    UnsupportedFileTypeException,
)
from app.domain.models.analytics_record import AnalyticsRecord
from app.domain.models.spreadsheet_file import FileStatus, SpreadsheetFile, XLS_MIME, XLSX_MIME, SPREADSHEET_MIME_TYPES
from app.domain.repositories.analytics_repository import AnalyticsRepository
from app.domain.repositories.spreadsheet_repository import SpreadsheetFileRepository
from app.domain.schemas.analytics import ChartConfig, ChartSpec
from app.domain.schemas.auth import Identity
from app.domain.schemas.spreadsheet import WorksheetData
from app.infrastructure.storage import FileStorage

settings = get_settings()
logger = structlog.get_logger(__name__)

EXTENSION_MIME_TYPES = {".xls": XLS_MIME, ".xlsx": XLSX_MIME}

DEFAULT_CHART_COLORS = ["#3498db", "#e74c3c", "#2ecc71", "#f39c12", "#9b59b6"]


def can_view_file(file: SpreadsheetFile, caller: Identity) -> bool:
    return file.owner_id == caller.id or bool(file.is_public) or caller.is_admin


def can_manage_file(file: SpreadsheetFile, caller: Identity) -> bool:
    return file.owner_id == caller.id or caller.is_admin


class IngestionOrchestrator:
    """Coordinates storage, parsing, persistence and chart derivation for spreadsheets."""

    def __init__(
        self,
        files: SpreadsheetFileRepository,
        analytics: AnalyticsRepository,
        storage: FileStorage,
        reader: Optional[WorksheetReader] = None,
        max_upload_bytes: Optional[int] = None,
    ):
        self.files = files
        self.analytics = analytics
        self.storage = storage
        self.reader = reader or WorksheetReader(storage)
        self.max_upload_bytes = max_upload_bytes or settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024

    # --- Upload -------------------------------------------------------------

    def _resolve_mime_type(self, original_name: str, content_type: Optional[str]) -> str:
        ext = os.path.splitext(original_name)[1].lower()
        if ext not in EXTENSION_MIME_TYPES:
            raise UnsupportedFileTypeException(details={"filename": original_name})
        if content_type in SPREADSHEET_MIME_TYPES:
            return content_type
        return EXTENSION_MIME_TYPES[ext]

    def ingest(
        self,
        content: bytes,
        original_name: str,
        owner: Identity,
        content_type: Optional[str] = None,
        description: Optional[str] = None,
        tags: Optional[List[str]] = None,
        is_public: bool = False,
    ) -> SpreadsheetFile:
        """
        Store and parse an uploaded workbook.
        A workbook that cannot be parsed is kept with status='error'; it is not raised.
        """
        if not original_name:
            raise UnsupportedFileTypeException("File name is required")
        mime_type = self._resolve_mime_type(original_name, content_type)
        if len(content) > self.max_upload_bytes:
            raise FileTooLargeException(details={"max_bytes": self.max_upload_bytes, "size": len(content)})

        stored = self.storage.save(owner_id=owner.id, file_name=original_name, content=content)
        try:
            file = self.files.create(
                {
                    "filename": stored.filename,
                    "original_name": original_name,
                    "storage_path": stored.storage_path,
                    "file_size": stored.size,
                    "mime_type": mime_type,
                    "owner_id": owner.id,
                    "status": FileStatus.PROCESSING,
                    "description": description or "",
                    "tags": [tag.strip() for tag in tags or [] if tag.strip()],
                    "is_public": is_public,
                }
            )
        except Exception:
            self._delete_stored_file_quietly(stored.storage_path)
            raise

        log = logger.bind(file_id=file.id, owner_id=owner.id, original_name=original_name)
        try:
            parsed = parse_workbook(content)
        except MalformedWorkbookError as exc:
            log.warning("Workbook parse failed", error=str(exc))
            return self.files.mark_error(file, str(exc))

        ingested_at = datetime.now(pytz.timezone(settings.TIMEZONE))
        file = self.files.mark_completed(file, parsed.worksheets, build_metadata(parsed, ingested_at))
        log.info(
            "Workbook ingested",
            worksheets=file.worksheet_count,
            total_rows=file.total_rows,
            size=stored.size,
        )
        return file

    def _delete_stored_file_quietly(self, storage_path: str) -> None:
        try:
            self.storage.delete(storage_path)
        except FileStorageError:
            logger.exception("Failed to remove orphaned upload", storage_path=storage_path)

    # --- Files --------------------------------------------------------------

    def get_file(self, file_id: int, caller: Identity) -> SpreadsheetFile:
        file = self.files.get_by_id(file_id)
        if file is None:
            raise EntityNotFoundException("File not found", {"file_id": file_id})
        if not can_view_file(file, caller):
            raise AccessDeniedException("Access denied to file", {"file_id": file_id})
        return file

    def list_files(self, caller: Identity, status: Optional[str] = None, limit: int = 50) -> List[SpreadsheetFile]:
        return self.files.list_by_owner(caller.id, status=status, limit=limit)

    def list_all_files(self, caller: Identity, status: Optional[str] = None, limit: int = 50) -> List[SpreadsheetFile]:
        if not caller.is_admin:
            raise AccessDeniedException("Admin access required")
        return self.files.list_all(status=status, limit=limit)

    def delete_file(self, file_id: int, caller: Identity) -> SpreadsheetFile:
        """Remove the stored binary, then the record. Saved charts are kept."""
        file = self.files.get_by_id(file_id)
        if file is None:
            raise EntityNotFoundException("File not found", {"file_id": file_id})
        if not can_manage_file(file, caller):
            raise AccessDeniedException(details={"file_id": file_id})

        self.storage.delete(file.storage_path)
        self.files.delete(file.id)
        logger.info("File deleted", file_id=file_id, deleted_by=caller.id)
        return file

    def read_worksheet(self, file_id: int, worksheet_name: str, caller: Identity) -> WorksheetData:
        file = self.get_file(file_id, caller)
        return self.reader.read(file, worksheet_name)

    # --- Charts -------------------------------------------------------------

    def create_chart(self, spec: ChartSpec, caller: Identity) -> AnalyticsRecord:
        """
        Derive chart data and insights from a fresh read of the worksheet and save them.
        Axis columns are checked against that read, not the stored summary.
        """
        file = self.get_file(spec.file_id, caller)
        if file.status != FileStatus.COMPLETED:
            raise FileNotReadyException(details={"file_id": file.id, "status": file.status})

        worksheet_name = spec.worksheet_name or file.worksheets[0].name
        data = self.reader.read(file, worksheet_name)
        if not data.records:
            raise EmptyDatasetException(details={"worksheet": worksheet_name})

        z_axis = spec.z_axis if spec.z_axis is not None and spec.z_axis.column else None
        for axis in (spec.x_axis, spec.y_axis, z_axis):
            if axis is not None and axis.column not in data.columns:
                raise ColumnNotFoundException(axis.column)

        chart_type = spec.chart_type.value
        chart_data = transform_chart_data(
            data.records, chart_type, spec.x_axis, spec.y_axis, z_axis, spec.colors
        )
        insights = generate_insights(data.records, spec.x_axis, spec.y_axis)
        config = ChartConfig(
            x_axis=spec.x_axis,
            y_axis=spec.y_axis,
            z_axis=z_axis,
            title=spec.title or f"{chart_type} Chart",
            colors=spec.colors or DEFAULT_CHART_COLORS,
            custom_options=spec.custom_options,
        )

        record = self.analytics.create(
            {
                "file_id": file.id,
                "owner_id": caller.id,
                "worksheet_name": worksheet_name,
                "chart_type": chart_type,
                "chart_config": config.model_dump(mode="json"),
                "chart_data": chart_data.model_dump(mode="json"),
                "insights": insights.model_dump(mode="json"),
            }
        )
        logger.info(
            "Chart created",
            analytics_id=record.id,
            file_id=file.id,
            chart_type=chart_type,
            records=len(data.records),
        )
        return record
