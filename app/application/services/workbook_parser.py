"""Workbook parser — decodes .xlsx/.xls bytes into worksheet summaries.

Handles:
- Detecting the container format from the file signature
- Reading every worksheet's occupied cell range (openpyxl / pandas+xlrd)
- Deriving header labels from the first row of each range
- Aggregating workbook-level metadata
"""

from dataclasses import dataclass
from datetime import datetime
from io import BytesIO
from typing import Any, Optional

import openpyxl
import pandas as pd
import structlog

from app.core.exceptions import MalformedWorkbookError
from app.domain.models.spreadsheet_file import XLS_MIME, XLSX_MIME
from app.domain.schemas.spreadsheet import WorksheetSummary

logger = structlog.get_logger(__name__)

ZIP_SIGNATURE = b"PK\x03\x04"
OLE2_SIGNATURE = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"


@dataclass
class SheetGrid:
    """Values of a sheet's occupied rectangle, header row first."""

    name: str
    first_row: int  # 1-based
    first_column: int  # 1-based
    rows: list[list[Any]]

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.rows[0])


@dataclass
class WorkbookProperties:
    created: Optional[datetime] = None
    modified: Optional[datetime] = None
    author: Optional[str] = None


@dataclass
class ParsedWorkbook:
    worksheets: list[WorksheetSummary]
    properties: WorkbookProperties


def detect_mime_type(content: bytes) -> Optional[str]:
    """Spreadsheet MIME type implied by the file signature, or None."""
    if content.startswith(ZIP_SIGNATURE):
        return XLSX_MIME
    if content.startswith(OLE2_SIGNATURE):
        return XLS_MIME
    return None


def header_label(value: Any, column_index: int) -> str:
    """Header text for a column; `column_index` is the 1-based sheet column."""
    if value is None or value == "":
        return f"Column {column_index}"
    return str(value)


def _grid_from_openpyxl(worksheet) -> SheetGrid:
    # An empty sheet reports A1:A1, which gives the single-cell range we want
    rows = [
        list(row)
        for row in worksheet.iter_rows(
            min_row=worksheet.min_row,
            max_row=worksheet.max_row,
            min_col=worksheet.min_column,
            max_col=worksheet.max_column,
            values_only=True,
        )
    ]
    return SheetGrid(
        name=worksheet.title,
        first_row=worksheet.min_row,
        first_column=worksheet.min_column,
        rows=rows or [[None]],
    )


def _load_xlsx(content: bytes) -> tuple[list[SheetGrid], WorkbookProperties]:
    workbook = openpyxl.load_workbook(BytesIO(content), data_only=True)
    try:
        grids = [_grid_from_openpyxl(ws) for ws in workbook.worksheets]
        props = workbook.properties
        properties = WorkbookProperties(
            created=props.created,
            modified=props.modified,
            author=props.creator,
        )
    finally:
        workbook.close()
    return grids, properties


def _load_xls(content: bytes) -> tuple[list[SheetGrid], WorkbookProperties]:
    frames = pd.read_excel(BytesIO(content), sheet_name=None, header=None, engine="xlrd")
    grids = []
    for name, frame in frames.items():
        if frame.empty:
            rows = [[None]]
        else:
            rows = frame.astype(object).where(frame.notna(), None).values.tolist()
        grids.append(SheetGrid(name=str(name), first_row=1, first_column=1, rows=rows))
    return grids, WorkbookProperties()


def load_workbook_grids(content: bytes) -> tuple[list[SheetGrid], WorkbookProperties]:
    """Decode every worksheet of a workbook. Raises MalformedWorkbookError."""
    mime_type = detect_mime_type(content)
    if mime_type is None:
        raise MalformedWorkbookError("Unrecognized spreadsheet format")

    try:
        if mime_type == XLSX_MIME:
            grids, properties = _load_xlsx(content)
        else:
            grids, properties = _load_xls(content)
    except Exception as exc:
        raise MalformedWorkbookError(str(exc) or exc.__class__.__name__) from exc

    if not grids:
        raise MalformedWorkbookError("Workbook contains no worksheets")
    return grids, properties


def summarize_sheet(grid: SheetGrid) -> WorksheetSummary:
    """Shape of a sheet: bounding-range counts plus the header row."""
    headers = [
        header_label(value, grid.first_column + offset)
        for offset, value in enumerate(grid.rows[0])
    ]
    return WorksheetSummary(
        name=grid.name,
        row_count=grid.row_count,
        column_count=grid.column_count,
        columns=headers,
    )


def parse_workbook(content: bytes) -> ParsedWorkbook:
    """
    Parse workbook bytes into ordered worksheet summaries.
    All sheets succeed or the whole parse fails with MalformedWorkbookError.
    """
    grids, properties = load_workbook_grids(content)
    try:
        summaries = [summarize_sheet(grid) for grid in grids]
    except Exception as exc:
        raise MalformedWorkbookError(str(exc)) from exc

    logger.debug("Workbook parsed", worksheets=[s.name for s in summaries])
    return ParsedWorkbook(worksheets=summaries, properties=properties)


def build_metadata(parsed: ParsedWorkbook, ingested_at: datetime) -> dict:
    """Aggregate metadata; timestamps fall back to the ingestion time."""
    worksheets = parsed.worksheets
    return {
        "total_rows": sum(ws.row_count for ws in worksheets),
        "total_columns": max(ws.column_count for ws in worksheets),
        "worksheet_count": len(worksheets),
        "created_date": parsed.properties.created or ingested_at,
        "modified_date": parsed.properties.modified or ingested_at,
        "author": parsed.properties.author,
    }
