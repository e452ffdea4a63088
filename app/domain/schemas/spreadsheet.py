"""Pydantic schemas for uploaded spreadsheets and worksheet data."""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Optional


class WorksheetSummary(BaseModel):
    name: str
    row_count: int
    column_count: int
    columns: list[str]

    model_config = {"from_attributes": True}


class FileMetadataRead(BaseModel):
    total_rows: int
    total_columns: int
    worksheet_count: int
    created_date: Optional[datetime] = None
    modified_date: Optional[datetime] = None
    author: Optional[str] = None


class SpreadsheetFileRead(BaseModel):
    id: int
    filename: str
    original_name: str
    file_size: int
    mime_type: str
    owner_id: int
    status: str
    processing_error: Optional[str] = None
    worksheets: list[WorksheetSummary] = []
    metadata: Optional[FileMetadataRead] = Field(default=None, validation_alias="file_metadata")
    tags: list[str] = []
    description: Optional[str] = None
    is_public: bool = False
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class WorksheetData(BaseModel):
    """Rows of one worksheet, keyed by the sheet's own header row."""

    worksheet_name: str
    records: list[dict[str, Any]]
    row_count: int
    columns: list[str]
