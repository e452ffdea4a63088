"""
SQLAlchemy Implementation of the Spreadsheet File Repository.
"""

from typing import List, Optional

from app.domain.models.spreadsheet_file import FileStatus, SpreadsheetFile, Worksheet
from app.domain.repositories.spreadsheet_repository import SpreadsheetFileRepository
from app.domain.schemas.spreadsheet import WorksheetSummary
from app.infrastructure.repositories.base_repository import SQLAlchemyRepository


class SQLAlchemySpreadsheetFileRepository(SQLAlchemyRepository[SpreadsheetFile], SpreadsheetFileRepository):
    """Spreadsheet file repository implementation using SQLAlchemy."""

    def _query(self, status: Optional[str]):
        query = self.db.query(SpreadsheetFile)
        if status:
            query = query.filter(SpreadsheetFile.status == status)
        return query

    def list_by_owner(self, owner_id: int, status: Optional[str] = None, limit: int = 50) -> List[SpreadsheetFile]:
        return (
            self._query(status)
            .filter(SpreadsheetFile.owner_id == owner_id)
            .order_by(SpreadsheetFile.created_at.desc(), SpreadsheetFile.id.desc())
            .limit(limit)
            .all()
        )

    def list_all(self, status: Optional[str] = None, limit: int = 50) -> List[SpreadsheetFile]:
        return (
            self._query(status)
            .order_by(SpreadsheetFile.created_at.desc(), SpreadsheetFile.id.desc())
            .limit(limit)
            .all()
        )

    def mark_completed(self, file: SpreadsheetFile, worksheets: List[WorksheetSummary], metadata: dict) -> SpreadsheetFile:
        file.worksheets = [
            Worksheet(
                position=position,
                name=summary.name,
                row_count=summary.row_count,
                column_count=summary.column_count,
                columns=list(summary.columns),
            )
            for position, summary in enumerate(worksheets)
        ]
        file.total_rows = metadata["total_rows"]
        file.total_columns = metadata["total_columns"]
        file.worksheet_count = metadata["worksheet_count"]
        file.source_created_at = metadata.get("created_date")
        file.source_modified_at = metadata.get("modified_date")
        file.author = metadata.get("author")
        file.processing_error = None
        file.status = FileStatus.COMPLETED
        self.db.commit()
        self.db.refresh(file)
        return file

    def mark_error(self, file: SpreadsheetFile, message: str) -> SpreadsheetFile:
        file.worksheets = []
        file.processing_error = message[:1000]
        file.status = FileStatus.ERROR
        self.db.commit()
        self.db.refresh(file)
        return file
