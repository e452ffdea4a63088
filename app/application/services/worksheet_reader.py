"""Worksheet data reader — materializes a sheet's rows as field-keyed records.

Records are keyed by the sheet's own header row, read fresh from storage on
every call. Fully blank rows are dropped and absent cells are left out of
their record, so `columns` (the first record's keys) reflects the populated
shape of the data rather than the declared header range of the summary.
"""

from typing import Any

import pandas as pd

from app.application.services.workbook_parser import SheetGrid, header_label, load_workbook_grids
from app.core.exceptions import FileNotReadyException, WorksheetNotFoundException
from app.domain.models.spreadsheet_file import FileStatus, SpreadsheetFile
from app.domain.schemas.spreadsheet import WorksheetData
from app.infrastructure.storage import FileStorage


def _unique_headers(headers: list[str]) -> list[str]:
    """
    Suffix repeated header names: Region, Region_1, Region_2.
    The counter skips any name already assigned to an earlier column, so
    A, A, A_1 becomes A, A_1, A_1_1 and every column keeps its own key.
    """
    assigned: set[str] = set()
    unique = []
    for header in headers:
        name = header
        counter = 0
        while name in assigned:
            counter += 1
            name = f"{header}_{counter}"
        assigned.add(name)
        unique.append(name)
    return unique


def _is_blank(value: Any) -> bool:
    return value is None or value == "" or (isinstance(value, float) and pd.isna(value))


def sheet_records(grid: SheetGrid) -> list[dict[str, Any]]:
    """Rows below the header row as ordered {header: value} mappings."""
    header_row, *data_rows = grid.rows
    headers = _unique_headers(
        [header_label(value, grid.first_column + offset) for offset, value in enumerate(header_row)]
    )

    df = pd.DataFrame(data_rows, columns=headers, dtype=object)
    df = df.dropna(how="all")

    records = []
    for row in df.to_dict(orient="records"):
        record = {field: value for field, value in row.items() if not _is_blank(value)}
        if record:
            records.append(record)
    return records


def read_worksheet_content(content: bytes, worksheet_name: str) -> WorksheetData:
    """Read one named worksheet out of raw workbook bytes."""
    grids, _ = load_workbook_grids(content)
    grid = next((g for g in grids if g.name == worksheet_name), None)
    if grid is None:
        raise WorksheetNotFoundException(worksheet_name)

    records = sheet_records(grid)
    return WorksheetData(
        worksheet_name=worksheet_name,
        records=records,
        row_count=len(records),
        columns=list(records[0].keys()) if records else [],
    )


class WorksheetReader:
    """Reads worksheet data for ingested files from binary storage."""

    def __init__(self, storage: FileStorage):
        self.storage = storage

    def read(self, file: SpreadsheetFile, worksheet_name: str) -> WorksheetData:
        if file.status != FileStatus.COMPLETED:
            raise FileNotReadyException(details={"file_id": file.id, "status": file.status})
        content = self.storage.read(file.storage_path)
        return read_worksheet_content(content, worksheet_name)
